# spincart/repos/spin_repo.py
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from spincart.data.models.spin import SpinDefinitionModel


class SpinRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_definition(self, definition_id: int) -> SpinDefinitionModel | None:
        return self.db.get(SpinDefinitionModel, definition_id)

    def list_definitions(self, active_only: bool = False) -> List[SpinDefinitionModel]:
        # kolejnosc po id - losowanie zalezy od stalej kolejnosci
        stmt = select(SpinDefinitionModel).order_by(SpinDefinitionModel.id)
        if active_only:
            stmt = stmt.where(SpinDefinitionModel.is_active.is_(True))
        return list(self.db.execute(stmt).scalars().all())

    def active_probability_sum(self, exclude_id: Optional[int] = None) -> float:
        self.db.flush()
        stmt = select(func.coalesce(func.sum(SpinDefinitionModel.probability), 0.0)).where(
            SpinDefinitionModel.is_active.is_(True)
        )
        if exclude_id is not None:
            stmt = stmt.where(SpinDefinitionModel.id != exclude_id)
        return float(self.db.execute(stmt).scalar_one())

    def add_definition(self, definition: SpinDefinitionModel) -> SpinDefinitionModel:
        self.db.add(definition)
        self.db.flush()
        return definition

    def delete_definition(self, definition: SpinDefinitionModel) -> None:
        self.db.delete(definition)
        self.db.flush()
