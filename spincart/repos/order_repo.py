# spincart/repos/order_repo.py
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session, selectinload

from spincart.data.models.order import OrderModel, OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_items(self, items: Iterable[OrderItemModel]) -> List[OrderItemModel]:
        items = list(items)
        self.db.add_all(items)
        self.db.flush()
        return items

    def get_order(self, order_id: int) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(selectinload(OrderModel.items))
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_user_order(self, order_id: int, user_id: int) -> OrderModel | None:
        stmt = select(OrderModel).where(OrderModel.id == order_id, OrderModel.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_orders(self, filters: list, offset: int, limit: int) -> Tuple[List[OrderModel], int]:
        stmt = (
            select(OrderModel)
            .where(*filters)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        orders = list(self.db.execute(stmt).scalars().all())
        total = self.db.execute(select(func.count(OrderModel.id)).where(*filters)).scalar_one()
        return orders, total

    def status_counts(self, user_id: Optional[int] = None) -> dict:
        stmt = select(OrderModel.status, func.count(OrderModel.id)).group_by(OrderModel.status)
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        return {status: count for status, count in self.db.execute(stmt).all()}

    def update_order(self, order_id: int, values: dict, *conditions) -> int:
        stmt = (
            update(OrderModel)
            .where(OrderModel.id == order_id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount
