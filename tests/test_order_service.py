from decimal import Decimal

import pytest
from sqlalchemy import update

from spincart.data.models import CartItemModel, CartModel, OrderModel, ProductModel
from spincart.domain.errors import (
    AuthorizationError,
    EmptyCartError,
    NotFoundError,
    ValidationError,
)
from spincart.services.cart_service import CartService
from spincart.services.order_service import OrderService


@pytest.fixture
def carts(db, catalog):
    return CartService(db)


@pytest.fixture
def svc(db, catalog, notifier):
    return OrderService(db, notification_service=notifier)


@pytest.fixture
def place_order(carts, svc, catalog):
    def _place(**kwargs):
        carts.add_item(catalog["cart"], catalog["a"], quantity=2)
        carts.add_item(catalog["cart"], catalog["c"], quantity=1, variant_id=catalog["c_xl"])
        return svc.create_order(catalog["cart"], catalog["alice"], address_id=catalog["address"], **kwargs)

    return _place


def test_create_order_snapshots_cart(place_order, catalog, notifier):
    order = place_order()

    assert order["status"] == "PENDING"
    assert order["payment_status"] == "PENDING"
    assert order["payment_method"] == "COD"
    assert order["total_price"] == Decimal("1450")
    assert order["shipping_cost"] == Decimal("100")
    assert order["final_total"] == Decimal("1550")
    assert [(i["product_id"], i["variant_id"], i["quantity"], i["price_per_item"]) for i in order["items"]] == [
        (catalog["a"], None, 2, Decimal("500")),
        (catalog["c"], catalog["c_xl"], 1, Decimal("450")),
    ]
    assert notifier.sent == [(catalog["alice"], order["id"])]


def test_items_plus_shipping_minus_discount_equals_final_total(db, carts, svc, catalog):
    carts.add_item(catalog["cart"], catalog["a"], quantity=2)
    carts.add_item(catalog["cart"], catalog["b"], quantity=1)
    db.execute(
        update(CartModel)
        .where(CartModel.id == catalog["cart"])
        .values(spin_played=True, spin_reward="DISCOUNT:100", discount=Decimal("100"))
    )
    db.commit()

    order = svc.create_order(catalog["cart"], catalog["alice"])

    items_total = sum((i["price_per_item"] * i["quantity"] for i in order["items"]), Decimal("0"))
    assert items_total + order["shipping_cost"] - order["discount"] == order["final_total"] == Decimal("1600")
    assert order["spin_reward"] == "DISCOUNT:100"


def test_create_order_resets_cart_but_keeps_shipping_and_message(db, carts, svc, catalog):
    carts.add_item(catalog["cart"], catalog["b"], quantity=3)
    carts.update_message(catalog["cart"], "Leave at the door")
    db.execute(
        update(CartModel)
        .where(CartModel.id == catalog["cart"])
        .values(spin_played=True, spin_reward="FREE_DELIVERY:0", shipping_cost=Decimal("0"))
    )
    db.commit()

    order = svc.create_order(catalog["cart"], catalog["alice"])
    assert order["message"] == "Leave at the door"
    assert order["shipping_cost"] == Decimal("0")

    cart = carts.get_cart(catalog["cart"])
    assert cart["items"] == []
    assert cart["total_price"] == Decimal("0")
    assert cart["discount"] == Decimal("0")
    assert cart["spin_played"] is False
    assert cart["spin_reward"] is None
    assert cart["shipping_cost"] == Decimal("0")
    assert cart["message"] == "Leave at the door"


def test_create_order_is_atomic(db, carts, svc, catalog, monkeypatch):
    carts.add_item(catalog["cart"], catalog["a"], quantity=4)

    def boom(self, ctx):
        raise RuntimeError("disk full")

    monkeypatch.setattr(OrderService, "_clear_cart_items", boom)

    with pytest.raises(RuntimeError):
        svc.create_order(catalog["cart"], catalog["alice"])

    db.expire_all()
    assert db.query(OrderModel).count() == 0
    assert db.query(CartItemModel).filter_by(cart_id=catalog["cart"]).count() == 1
    assert Decimal(db.get(CartModel, catalog["cart"]).total_price) == Decimal("2000")


def test_order_lines_survive_catalog_price_change(db, place_order, svc, catalog):
    order = place_order()

    db.get(ProductModel, catalog["a"]).price = Decimal("999")
    db.commit()

    again = svc.get_order(order["id"])
    assert again["items"][0]["price_per_item"] == Decimal("500")
    assert again["final_total"] == order["final_total"]


def test_second_create_order_on_same_cart_is_empty(db, place_order, svc, catalog):
    place_order()

    with pytest.raises(EmptyCartError):
        svc.create_order(catalog["cart"], catalog["alice"])

    assert db.query(OrderModel).count() == 1


def test_empty_cart(svc, catalog):
    with pytest.raises(EmptyCartError):
        svc.create_order(catalog["cart"], catalog["alice"])


def test_unknown_cart(svc, catalog):
    with pytest.raises(NotFoundError):
        svc.create_order(999, catalog["alice"])


def test_unknown_address(carts, svc, catalog):
    carts.add_item(catalog["cart"], catalog["a"])
    with pytest.raises(NotFoundError):
        svc.create_order(catalog["cart"], catalog["alice"], address_id=999)


def test_invalid_order_type(carts, svc, catalog):
    carts.add_item(catalog["cart"], catalog["a"])
    with pytest.raises(ValidationError):
        svc.create_order(catalog["cart"], catalog["alice"], order_type="DRONE")


def test_three_hour_delivery_order_type(place_order):
    order = place_order(order_type="THREE_HOUR_DELIVERY", payment_method="ESEWA")

    assert order["is_three_hour_delivery"] is True
    assert order["payment_method"] == "ESEWA"


def test_notification_failure_keeps_order(db, carts, catalog, failing_notifier):
    carts.add_item(catalog["cart"], catalog["a"])
    svc = OrderService(db, notification_service=failing_notifier)

    order = svc.create_order(catalog["cart"], catalog["alice"])

    assert db.get(OrderModel, order["id"]) is not None


# statusy

def test_status_walks_forward(place_order, svc):
    order_id = place_order()["id"]

    assert svc.update_order_status(order_id, "SHIPPED")["status"] == "SHIPPED"
    assert svc.update_order_status(order_id, "DELIVERED")["status"] == "DELIVERED"


@pytest.mark.parametrize("target", ["DELIVERED", "PENDING", "LOST"])
def test_invalid_transitions_from_pending(place_order, svc, target):
    order_id = place_order()["id"]

    with pytest.raises(ValidationError):
        svc.update_order_status(order_id, target)


def test_delivered_is_terminal(place_order, svc):
    order_id = place_order()["id"]
    svc.update_order_status(order_id, "SHIPPED")
    svc.update_order_status(order_id, "DELIVERED")

    with pytest.raises(ValidationError):
        svc.update_order_status(order_id, "CANCELLED")


def test_owner_cancels_pending(place_order, svc, catalog):
    order_id = place_order()["id"]

    assert svc.cancel_order(order_id, catalog["alice"])["status"] == "CANCELLED"


def test_other_user_cannot_cancel(place_order, svc, catalog):
    order_id = place_order()["id"]

    with pytest.raises(AuthorizationError):
        svc.cancel_order(order_id, catalog["bob"])


def test_owner_cannot_cancel_shipped(place_order, svc, catalog):
    order_id = place_order()["id"]
    svc.update_order_status(order_id, "SHIPPED")

    with pytest.raises(AuthorizationError):
        svc.cancel_order(order_id, catalog["alice"])


def test_admin_cancels_shipped_but_not_delivered(place_order, svc, carts, catalog):
    shipped = place_order()["id"]
    svc.update_order_status(shipped, "SHIPPED")
    assert svc.cancel_order(shipped, catalog["admin"])["status"] == "CANCELLED"

    delivered = place_order()["id"]
    svc.update_order_status(delivered, "SHIPPED")
    svc.update_order_status(delivered, "DELIVERED")
    with pytest.raises(AuthorizationError):
        svc.cancel_order(delivered, catalog["admin"])


def test_cancel_twice(place_order, svc, catalog):
    order_id = place_order()["id"]
    svc.cancel_order(order_id, catalog["admin"])

    with pytest.raises(ValidationError):
        svc.cancel_order(order_id, catalog["admin"])


def test_toggle_three_hour_delivery(place_order, svc):
    order_id = place_order()["id"]

    assert svc.set_three_hour_delivery(order_id, True)["is_three_hour_delivery"] is True
    assert svc.set_three_hour_delivery(order_id, False)["is_three_hour_delivery"] is False


# zapytania

def test_list_orders_paginates_and_filters(place_order, svc, catalog):
    ids = [place_order()["id"] for _ in range(3)]
    svc.update_order_status(ids[0], "SHIPPED")

    page = svc.list_orders(user_id=catalog["alice"], page=1, limit=2)
    assert page["total_count"] == 3
    assert page["total_pages"] == 2
    assert page["has_next"] is True
    assert page["has_prev"] is False
    assert len(page["orders"]) == 2

    shipped = svc.list_orders(status="SHIPPED")
    assert [o["id"] for o in shipped["orders"]] == [ids[0]]

    assert svc.list_orders(user_id=catalog["bob"])["total_count"] == 0


def test_list_orders_rejects_bad_paging(svc, catalog):
    with pytest.raises(ValidationError):
        svc.list_orders(page=0)
    with pytest.raises(ValidationError):
        svc.list_orders(limit=500)


def test_status_counts_are_zero_filled(place_order, svc, catalog):
    first = place_order()["id"]
    place_order()
    svc.update_order_status(first, "SHIPPED")

    result = svc.status_counts(catalog["alice"])

    assert result["counts"] == {"PENDING": 1, "SHIPPED": 1, "DELIVERED": 0, "CANCELLED": 0}
    assert result["total"] == 2


def test_get_unknown_order(svc, catalog):
    with pytest.raises(NotFoundError):
        svc.get_order(999)
