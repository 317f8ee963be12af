# spincart/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from spincart.data.database import get_db
from spincart.domain.schemas import (
    BulkAddOut,
    BulkItemsIn,
    CartOut,
    CartSummaryOut,
    ItemIn,
    MessageIn,
    QuantityIn,
)
from spincart.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db)


@router.get("/user/{user_id}", response_model=CartOut)
def get_or_create_user_cart(user_id: int, db: Session = Depends(get_db)):
    return get_service(db).get_or_create_cart(user_id)


@router.post("/guest", response_model=CartOut, status_code=201)
def create_guest_cart(db: Session = Depends(get_db)):
    return get_service(db).get_or_create_cart(None)


@router.get("/{cart_id}", response_model=CartOut)
def get_cart(cart_id: int, db: Session = Depends(get_db)):
    return get_service(db).get_cart(cart_id)


@router.get("/{cart_id}/summary", response_model=CartSummaryOut)
def get_cart_summary(cart_id: int, db: Session = Depends(get_db)):
    return get_service(db).get_cart_summary(cart_id)


@router.post("/{cart_id}/items", response_model=CartOut, status_code=201)
def add_item(cart_id: int, payload: ItemIn, db: Session = Depends(get_db)):
    return get_service(db).add_item(
        cart_id=cart_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
        variant_id=payload.variant_id,
    )


@router.post("/{cart_id}/items/bulk", response_model=BulkAddOut, status_code=201)
def bulk_add_items(cart_id: int, payload: BulkItemsIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    if "message" in payload.model_fields_set:
        return svc.bulk_add_items(cart_id, payload.items, message=payload.message)
    return svc.bulk_add_items(cart_id, payload.items)


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(item_id: int, payload: QuantityIn, db: Session = Depends(get_db)):
    return get_service(db).update_item_quantity(item_id, payload.quantity)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(item_id: int, db: Session = Depends(get_db)):
    return get_service(db).remove_item(item_id)


@router.delete("/{cart_id}/clear", response_model=CartOut)
def clear_cart(cart_id: int, db: Session = Depends(get_db)):
    return get_service(db).clear_cart(cart_id)


@router.put("/{cart_id}/message", response_model=CartOut)
def update_message(cart_id: int, payload: MessageIn, db: Session = Depends(get_db)):
    return get_service(db).update_message(cart_id, payload.message)
