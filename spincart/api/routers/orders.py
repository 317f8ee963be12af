# spincart/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from spincart.api.deps import get_notification_service
from spincart.data.database import get_db
from spincart.domain.schemas import (
    CancelIn,
    EsewaPaymentDetailOut,
    EsewaPaymentIn,
    EsewaPaymentItemOut,
    EsewaPaymentOut,
    EsewaPaymentPageOut,
    OrderCreate,
    OrderOut,
    OrderPageOut,
    StatusCountsOut,
    StatusIn,
    ThreeHourDeliveryIn,
)
from spincart.services.notification_service import NotificationService
from spincart.services.order_service import OrderService
from spincart.services.payment_service import PaymentService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, notification_service: NotificationService | None = None):
    return OrderService(db, notification_service=notification_service)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Tworzy zamowienie z koszyka i resetuje koszyk.
    Powiadomienie wysylane asynchronicznie.
    """
    return get_service(db, notification_service).create_order(
        cart_id=payload.cart_id,
        user_id=payload.user_id,
        address_id=payload.address_id,
        order_type=payload.order_type,
        payment_method=payload.payment_method,
    )


@router.get("/", response_model=OrderPageOut)
def list_orders(
    user_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    order_type: Optional[str] = Query(None),
    is_three_hour_delivery: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return get_service(db).list_orders(
        user_id=user_id,
        status=status,
        order_type=order_type,
        is_three_hour_delivery=is_three_hour_delivery,
        page=page,
        limit=limit,
    )


@router.get("/status-counts", response_model=StatusCountsOut)
def status_counts(user_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return get_service(db).status_counts(user_id)


@router.post("/esewa/payment", response_model=EsewaPaymentOut, status_code=201)
def record_esewa_payment(payload: EsewaPaymentIn, db: Session = Depends(get_db)):
    return PaymentService(db).record_esewa_payment(**payload.model_dump())


@router.get("/esewa/payments", response_model=EsewaPaymentPageOut)
def list_esewa_payments(
    user_id: Optional[int] = Query(None),
    order_id: Optional[int] = Query(None),
    transaction_uuid: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return PaymentService(db).list_payments(
        user_id=user_id,
        order_id=order_id,
        transaction_uuid=transaction_uuid,
        page=page,
        limit=limit,
    )


@router.get("/esewa/payments/recent", response_model=List[EsewaPaymentItemOut])
def recent_esewa_payments(
    user_id: Optional[int] = Query(None),
    limit: int = Query(5, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return PaymentService(db).recent_payments(user_id=user_id, limit=limit)


@router.get("/esewa/payments/{payment_id}", response_model=EsewaPaymentDetailOut)
def get_esewa_payment(payment_id: int, db: Session = Depends(get_db)):
    return PaymentService(db).get_payment(payment_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return get_service(db).get_order(order_id)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(order_id: int, payload: StatusIn, db: Session = Depends(get_db)):
    return get_service(db).update_order_status(order_id, payload.status)


@router.put("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(order_id: int, payload: CancelIn, db: Session = Depends(get_db)):
    return get_service(db).cancel_order(order_id, payload.user_id)


@router.put("/{order_id}/three-hour-delivery", response_model=OrderOut)
def set_three_hour_delivery(order_id: int, payload: ThreeHourDeliveryIn, db: Session = Depends(get_db)):
    return get_service(db).set_three_hour_delivery(order_id, payload.enabled)
