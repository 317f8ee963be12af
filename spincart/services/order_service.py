# spincart/services/order_service.py
import math
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from spincart.data.models.order import OrderModel, OrderItemModel
from spincart.data.unit_of_work import UnitOfWork
from spincart.domain.enums import OrderStatus, OrderType, PaymentMethod, PaymentStatus
from spincart.domain.errors import ConflictError, EmptyCartError, NotFoundError, ValidationError
from spincart.domain.order_status import check_cancellation, check_transition, parse_status
from spincart.domain.pricing import final_total, resolve_unit_price, ZERO
from spincart.repos.cart_repo import CartRepo
from spincart.repos.order_repo import OrderRepo
from spincart.repos.user_repo import UserRepo
from spincart.services.notification_service import NotificationService
from spincart.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


class OrderService:
    """
    Serwis domeny zamowien, oddzielony od CartService.

    create_order zamienia koszyk w niezmienny snapshot (zamowienie + pozycje)
    w jednej transakcji i resetuje koszyk; sam koszyk zostaje.
    """

    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.user_repo = UserRepo(db)
        self.uow = UnitOfWork(db)
        self.notification_service = notification_service or NotificationService()

    # =====================================================
    # CREATE
    # =====================================================
    def create_order(
        self,
        cart_id: int,
        user_id: int,
        address_id: Optional[int] = None,
        order_type: str = OrderType.STANDARD,
        payment_method: str = PaymentMethod.COD,
    ) -> Dict[str, Any]:
        """
        1. Blokuje koszyk i sprawdza warunki (koszyk, pozycje, adres)
        2. Tworzy snapshot zamowienia
        3. Tworzy pozycje z cena jednostkowa z tej chwili
        4. Usuwa pozycje koszyka
        5. Resetuje pola pochodne koszyka
        Wszystko albo nic. Powiadomienie leci dopiero po commicie.
        """
        try:
            order_type = OrderType(order_type)
            payment_method = PaymentMethod(payment_method)
        except ValueError as e:
            raise ValidationError(str(e))

        ctx = self.uow.run(
            [
                self._load_cart_step(cart_id, user_id, address_id),
                self._create_order_step(user_id, address_id, order_type, payment_method),
                self._snapshot_items,
                self._clear_cart_items,
                self._reset_cart,
            ]
        )

        order = ctx["order"]
        logger.info(f"Order {order.id} created from cart {cart_id} ({len(ctx['order_items'])} items)")

        try:
            self.notification_service.send_order_notification(user_id, order.id)
        except Exception as e:
            # zamowienie juz zapisane, brak brokera nie moze go cofnac
            logger.warning(f"Failed to queue notification for order {order.id}: {e}")

        return self.get_order(order.id)

    def _load_cart_step(self, cart_id: int, user_id: int, address_id: Optional[int]):
        def load(ctx):
            cart = self.cart_repo.get_cart(cart_id, for_update=True)
            if not cart:
                raise NotFoundError("Cart not found", cart_id=cart_id)

            if not self.user_repo.get_user(user_id):
                raise NotFoundError("User not found", user_id=user_id)

            if address_id is not None and not self.user_repo.get_address(address_id):
                raise NotFoundError("Address not found", address_id=address_id)

            # pozycje czytane po zablokowaniu koszyka - drugi rownolegly create_order zobaczy pusty koszyk
            items = self.cart_repo.get_cart_items(cart_id)
            if not items:
                raise EmptyCartError("Cart is empty")

            ctx["cart"] = cart
            ctx["lines"] = [(item, resolve_unit_price(item)) for item in items]

        return load

    def _create_order_step(self, user_id, address_id, order_type: OrderType, payment_method: PaymentMethod):
        def create(ctx):
            cart = ctx["cart"]
            ctx["order"] = self.repo.create_order(
                OrderModel(
                    cart_id=cart.id,
                    user_id=user_id,
                    address_id=address_id,
                    total_price=Decimal(cart.total_price),
                    discount=Decimal(cart.discount),
                    shipping_cost=Decimal(cart.shipping_cost),
                    final_total=final_total(cart.total_price, cart.discount, cart.shipping_cost),
                    spin_reward=cart.spin_reward,
                    message=cart.message,
                    status=OrderStatus.PENDING.value,
                    order_type=order_type.value,
                    payment_method=payment_method.value,
                    # platnosc potwierdzana osobno, niezaleznie od metody
                    payment_status=PaymentStatus.PENDING.value,
                    is_three_hour_delivery=order_type == OrderType.THREE_HOUR_DELIVERY,
                )
            )

        return create

    def _snapshot_items(self, ctx):
        order = ctx["order"]
        ctx["order_items"] = self.repo.add_order_items(
            OrderItemModel(
                order_id=order.id,
                product_id=item.product_id,
                variant_id=item.variant_id,
                quantity=item.quantity,
                price_per_item=unit_price,
            )
            for item, unit_price in ctx["lines"]
        )

    def _clear_cart_items(self, ctx):
        self.cart_repo.delete_cart_items(ctx["cart"].id)

    def _reset_cart(self, ctx):
        self.cart_repo.update_cart(
            ctx["cart"].id,
            {
                "total_price": ZERO,
                "discount": ZERO,
                "spin_played": False,
                "spin_reward": None,
            },
        )

    # =====================================================
    # STATUS
    # =====================================================
    def update_order_status(self, order_id: int, status: str) -> Dict[str, Any]:
        def change(ctx):
            order = self._existing_order(order_id)
            target = check_transition(order.status, status)
            self._guarded_status_update(order, target)

        self.uow.run([change])
        logger.info(f"Order {order_id} status -> {status}")
        return self.get_order(order_id)

    def cancel_order(self, order_id: int, actor_user_id: int) -> Dict[str, Any]:
        def cancel(ctx):
            order = self._existing_order(order_id)

            actor = self.user_repo.get_user(actor_user_id)
            if not actor:
                raise NotFoundError("User not found", user_id=actor_user_id)

            check_cancellation(order.user_id, order.status, actor.id, actor.role)
            self._guarded_status_update(order, OrderStatus.CANCELLED)

        self.uow.run([cancel])
        logger.info(f"Order {order_id} cancelled by user {actor_user_id}")
        return self.get_order(order_id)

    def set_three_hour_delivery(self, order_id: int, enabled: bool) -> Dict[str, Any]:
        def change(ctx):
            self._existing_order(order_id)
            self.repo.update_order(order_id, {"is_three_hour_delivery": bool(enabled)})

        self.uow.run([change])
        return self.get_order(order_id)

    def _guarded_status_update(self, order: OrderModel, target: OrderStatus) -> None:
        # optimistic: update ... where status = <odczytany status>
        rowcount = self.repo.update_order(
            order.id,
            {"status": target.value},
            OrderModel.status == order.status,
        )
        if rowcount == 0:
            raise ConflictError("Order was modified by another operation", order_id=order.id)

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, order_id: int) -> Dict[str, Any]:
        return order_view(self._existing_order(order_id))

    def list_orders(
        self,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        order_type: Optional[str] = None,
        is_three_hour_delivery: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}")

        filters = []
        if user_id is not None:
            filters.append(OrderModel.user_id == user_id)
        if status is not None:
            filters.append(OrderModel.status == parse_status(status).value)
        if order_type is not None:
            filters.append(OrderModel.order_type == order_type)
        if is_three_hour_delivery is not None:
            filters.append(OrderModel.is_three_hour_delivery.is_(is_three_hour_delivery))

        orders, total_count = self.repo.list_orders(filters, offset=(page - 1) * limit, limit=limit)
        total_pages = math.ceil(total_count / limit)

        return {
            "orders": [order_view(o) for o in orders],
            "current_page": page,
            "total_pages": total_pages,
            "total_count": total_count,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        }

    def status_counts(self, user_id: Optional[int] = None) -> Dict[str, Any]:
        found = self.repo.status_counts(user_id)
        counts = {status.value: found.get(status.value, 0) for status in OrderStatus}
        return {"counts": counts, "total": sum(counts.values())}

    def _existing_order(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found", order_id=order_id)
        return order


def order_view(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "cart_id": order.cart_id,
        "user_id": order.user_id,
        "address_id": order.address_id,
        "total_price": order.total_price,
        "discount": order.discount,
        "shipping_cost": order.shipping_cost,
        "final_total": order.final_total,
        "spin_reward": order.spin_reward,
        "message": order.message,
        "status": order.status,
        "order_type": order.order_type,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "is_three_hour_delivery": order.is_three_hour_delivery,
        "created_at": order.created_at,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "variant_id": i.variant_id,
                "quantity": i.quantity,
                "price_per_item": i.price_per_item,
            }
            for i in order.items
        ],
    }
