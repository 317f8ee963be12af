# spincart/data/unit_of_work.py
# unit of work: lista krokow wszystko albo nic
# kroki dziela slownik ctx, jeden commit na koncu, kazdy wyjatek = rollback + raise
from typing import Callable, Iterable

from sqlalchemy.orm import Session

from spincart.domain.errors import IntegrityFault
from spincart.utils.logging import get_logger

logger = get_logger(__name__)

Step = Callable[[dict], None]


class UnitOfWork:
    def __init__(self, db: Session):
        self.db = db

    def run(self, steps: Iterable[Step], context: dict | None = None) -> dict:
        ctx = {} if context is None else context
        try:
            for step in steps:
                step(ctx)
            self.db.commit()
        except IntegrityFault as e:
            self.db.rollback()
            logger.debug(f"Integrity fault, transaction rolled back: {e.message} {e.context}")
            raise
        except Exception:
            self.db.rollback()
            raise
        return ctx
