# spincart/repos/payment_repo.py
from typing import List, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from spincart.data.models.order import OrderModel
from spincart.data.models.payment import EsewaPaymentModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_transaction_uuid(self, transaction_uuid: str) -> EsewaPaymentModel | None:
        stmt = select(EsewaPaymentModel).where(EsewaPaymentModel.transaction_uuid == transaction_uuid)
        return self.db.execute(stmt).scalar_one_or_none()

    def add_payment(self, payment: EsewaPaymentModel) -> EsewaPaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_payment(self, payment_id: int) -> EsewaPaymentModel | None:
        # platnosc + zamowienie + pozycje w jednym odczycie
        stmt = (
            select(EsewaPaymentModel)
            .where(EsewaPaymentModel.id == payment_id)
            .options(selectinload(EsewaPaymentModel.order).selectinload(OrderModel.items))
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_payments(self, filters: list, offset: int, limit: int) -> Tuple[List[EsewaPaymentModel], int]:
        stmt = (
            select(EsewaPaymentModel)
            .where(*filters)
            .options(selectinload(EsewaPaymentModel.order))
            .order_by(EsewaPaymentModel.created_at.desc(), EsewaPaymentModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        payments = list(self.db.execute(stmt).scalars().all())
        total = self.db.execute(select(func.count(EsewaPaymentModel.id)).where(*filters)).scalar_one()
        return payments, total
