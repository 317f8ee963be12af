# spincart/domain/order_status.py
from spincart.domain.enums import OrderStatus, UserRole
from spincart.domain.errors import AuthorizationError, ValidationError

TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def parse_status(status: str) -> OrderStatus:
    try:
        return OrderStatus(status)
    except ValueError:
        raise ValidationError(f"Invalid order status '{status}'")


def check_transition(current: str, target: str) -> OrderStatus:
    source = parse_status(current)
    destination = parse_status(target)
    if destination not in TRANSITIONS[source]:
        raise ValidationError(
            f"Order cannot move from {source.value} to {destination.value}"
        )
    return destination


def check_cancellation(order_user_id: int, status: str, actor_id: int, actor_role: str) -> None:
    """
    Zwykly uzytkownik anuluje tylko swoje zamowienie i tylko w PENDING.
    Admin anuluje kazde, poza DELIVERED (i juz anulowanym).
    """
    current = parse_status(status)

    if actor_role == UserRole.ADMIN.value:
        if current == OrderStatus.DELIVERED:
            raise AuthorizationError("Cannot cancel delivered orders")
    else:
        if order_user_id != actor_id:
            raise AuthorizationError("You can only cancel your own orders")
        if current != OrderStatus.PENDING:
            raise AuthorizationError("Only pending orders can be cancelled")

    if current == OrderStatus.CANCELLED:
        raise ValidationError("Order is already cancelled")
