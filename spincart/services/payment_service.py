# spincart/services/payment_service.py
import math
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from spincart.data.models.payment import EsewaPaymentModel
from spincart.data.unit_of_work import UnitOfWork
from spincart.domain.enums import PaymentMethod, PaymentStatus
from spincart.domain.errors import ConflictError, NotFoundError, ValidationError
from spincart.repos.order_repo import OrderRepo
from spincart.repos.payment_repo import PaymentRepo
from spincart.services.esewa_client import EsewaClient
from spincart.services.order_service import MAX_PAGE_SIZE, order_view
from spincart.utils.settings import ESEWA_VERIFY
from spincart.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentService:
    """
    Zapis platnosci eSewa: rekord platnosci + PaymentStatus=PAID w jednej transakcji.
    Opcjonalnie weryfikacja transakcji w API eSewa przed zapisem.
    """

    def __init__(self, db: Session, esewa_client: Optional[EsewaClient] = None, verify: bool = ESEWA_VERIFY):
        self.db = db
        self.repo = PaymentRepo(db)
        self.order_repo = OrderRepo(db)
        self.uow = UnitOfWork(db)
        self.esewa_client = esewa_client or EsewaClient()
        self.verify = verify

    def record_esewa_payment(
        self,
        order_id: int,
        user_id: int,
        total_amount: Decimal,
        transaction_uuid: str,
        product_code: str,
        transaction_code: Optional[str] = None,
    ) -> EsewaPaymentModel:
        if not self.order_repo.get_user_order(order_id, user_id):
            raise NotFoundError("Order not found or doesn't belong to user", order_id=order_id)

        if self.repo.get_by_transaction_uuid(transaction_uuid):
            raise ConflictError("Payment already recorded for this transaction")

        if self.verify:
            status = self.esewa_client.fetch_status(product_code, total_amount, transaction_uuid)
            if status.get("status") != "COMPLETE":
                raise ValidationError(
                    f"eSewa transaction {transaction_uuid} is not complete: {status.get('status')}"
                )

        def record(ctx):
            ctx["payment"] = self.repo.add_payment(
                EsewaPaymentModel(
                    order_id=order_id,
                    user_id=user_id,
                    total_amount=Decimal(total_amount),
                    transaction_uuid=transaction_uuid,
                    product_code=product_code,
                    transaction_code=transaction_code,
                )
            )
            self.order_repo.update_order(
                order_id,
                {
                    "payment_status": PaymentStatus.PAID.value,
                    "payment_method": PaymentMethod.ESEWA.value,
                },
            )

        try:
            ctx = self.uow.run([record])
        except IntegrityError as e:
            raise ConflictError("Payment already exists for this order or transaction") from e

        logger.info(f"eSewa payment {transaction_uuid} recorded for order {order_id}")
        return ctx["payment"]

    # =====================================================
    # QUERY
    # =====================================================
    def get_payment(self, payment_id: int) -> Dict[str, Any]:
        payment = self.repo.get_payment(payment_id)
        if not payment:
            raise NotFoundError("eSewa payment not found", payment_id=payment_id)
        return {**self._payment_view(payment), "order": order_view(payment.order)}

    def list_payments(
        self,
        user_id: Optional[int] = None,
        order_id: Optional[int] = None,
        transaction_uuid: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}")

        filters = []
        if user_id is not None:
            filters.append(EsewaPaymentModel.user_id == user_id)
        if order_id is not None:
            filters.append(EsewaPaymentModel.order_id == order_id)
        if transaction_uuid:
            filters.append(EsewaPaymentModel.transaction_uuid == transaction_uuid)

        payments, total_count = self.repo.list_payments(filters, offset=(page - 1) * limit, limit=limit)
        total_pages = math.ceil(total_count / limit)

        return {
            "payments": [self._payment_view(p) for p in payments],
            "current_page": page,
            "total_pages": total_pages,
            "total_count": total_count,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        }

    def recent_payments(self, user_id: Optional[int] = None, limit: int = 5) -> list:
        """Ostatnie platnosci, najnowsze pierwsze."""
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        filters = [EsewaPaymentModel.user_id == user_id] if user_id is not None else []
        payments, _ = self.repo.list_payments(filters, offset=0, limit=limit)
        return [self._payment_view(p) for p in payments]

    @staticmethod
    def _payment_view(payment: EsewaPaymentModel) -> Dict[str, Any]:
        return {
            "id": payment.id,
            "order_id": payment.order_id,
            "user_id": payment.user_id,
            "total_amount": payment.total_amount,
            "transaction_uuid": payment.transaction_uuid,
            "product_code": payment.product_code,
            "transaction_code": payment.transaction_code,
            "created_at": payment.created_at,
            "order_status": payment.order.status,
            "payment_status": payment.order.payment_status,
        }
