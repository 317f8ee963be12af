# spincart/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from spincart.domain.enums import SpinType, OrderType, PaymentMethod


class ItemIn(BaseModel):
    """Dodanie produktu do koszyka."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0, description="Ilosc (musi byc > 0)")
    variant_id: Optional[int] = Field(None, gt=0)


class BulkItemsIn(BaseModel):
    """Masowe dodanie; ksztalt pozycji sprawdza serwis, zeby odrzucic cala paczke naraz."""

    items: List[dict] = Field(..., min_length=1)
    message: Optional[str] = None


class QuantityIn(BaseModel):
    quantity: int


class MessageIn(BaseModel):
    message: Optional[str] = None


class CartItemOut(BaseModel):
    id: int
    product_id: int
    variant_id: Optional[int] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    items: List[CartItemOut]
    total_price: Decimal
    discount: Decimal
    shipping_cost: Decimal
    spin_played: bool
    spin_reward: Optional[str] = None
    message: Optional[str] = None


class CartSummaryOut(BaseModel):
    cart_id: int
    items_count: int
    subtotal: Decimal
    discount: Decimal
    shipping_cost: Decimal
    final_total: Decimal
    spin_eligible: bool
    spin_played: bool
    spin_reward: Optional[str] = None


class BulkAddOut(BaseModel):
    added: int
    updated: int
    processed: int
    cart: CartOut


class SpinDefinitionIn(BaseModel):
    title: str = Field(..., min_length=1)
    type: SpinType
    value: str = Field(..., min_length=1)
    probability: float = Field(..., ge=0, le=1)
    is_active: bool = True


class SpinDefinitionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    type: Optional[SpinType] = None
    value: Optional[str] = Field(None, min_length=1)
    probability: Optional[float] = Field(None, ge=0, le=1)
    is_active: Optional[bool] = None


class SpinDefinitionOut(BaseModel):
    id: int
    title: str
    type: SpinType
    value: str
    probability: float
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PlaySpinIn(BaseModel):
    cart_id: int = Field(..., gt=0)


class PlaySpinOut(BaseModel):
    reward: SpinDefinitionOut
    cart: CartOut
    message: str


class OrderCreate(BaseModel):
    """Utworzenie zamowienia z koszyka."""

    cart_id: int = Field(..., gt=0)
    user_id: int = Field(..., gt=0)
    address_id: Optional[int] = Field(None, gt=0)
    order_type: OrderType = OrderType.STANDARD
    payment_method: PaymentMethod = PaymentMethod.COD


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    variant_id: Optional[int] = None
    quantity: int
    price_per_item: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    cart_id: Optional[int] = None
    user_id: int
    address_id: Optional[int] = None
    total_price: Decimal
    discount: Decimal
    shipping_cost: Decimal
    final_total: Decimal
    spin_reward: Optional[str] = None
    message: Optional[str] = None
    status: str
    order_type: str
    payment_method: str
    payment_status: str
    is_three_hour_delivery: bool
    created_at: datetime
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderPageOut(BaseModel):
    orders: List[OrderOut]
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool


class StatusCountsOut(BaseModel):
    counts: dict
    total: int


class StatusIn(BaseModel):
    status: str


class CancelIn(BaseModel):
    user_id: int = Field(..., gt=0)


class ThreeHourDeliveryIn(BaseModel):
    enabled: bool


class EsewaPaymentIn(BaseModel):
    order_id: int = Field(..., gt=0)
    user_id: int = Field(..., gt=0)
    total_amount: Decimal = Field(..., gt=0)
    transaction_uuid: str = Field(..., min_length=1)
    product_code: str = Field(..., min_length=1)
    transaction_code: Optional[str] = None


class EsewaPaymentOut(BaseModel):
    id: int
    order_id: int
    user_id: int
    total_amount: Decimal
    transaction_uuid: str
    product_code: str
    transaction_code: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EsewaPaymentItemOut(EsewaPaymentOut):
    order_status: Optional[str] = None
    payment_status: Optional[str] = None


class EsewaPaymentPageOut(BaseModel):
    payments: List[EsewaPaymentItemOut]
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool


class EsewaPaymentDetailOut(EsewaPaymentItemOut):
    """Platnosc razem z zamowieniem i jego pozycjami."""

    order: OrderOut
