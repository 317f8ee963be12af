from decimal import Decimal

import pytest

from spincart.data.models import EsewaPaymentModel, OrderModel
from spincart.domain.errors import ConflictError, NotFoundError, ValidationError
from spincart.services.cart_service import CartService
from spincart.services.order_service import OrderService
from spincart.services.payment_service import PaymentService


class StubEsewaClient:
    def __init__(self, status):
        self.status = status
        self.calls = []

    def fetch_status(self, product_code, total_amount, transaction_uuid):
        self.calls.append((product_code, total_amount, transaction_uuid))
        return {"status": self.status, "transaction_uuid": transaction_uuid}


@pytest.fixture
def order_id(db, catalog, notifier):
    CartService(db).add_item(catalog["cart"], catalog["a"], quantity=2)
    return OrderService(db, notification_service=notifier).create_order(catalog["cart"], catalog["alice"])["id"]


def record(svc, order_id, user_id, uuid="txn-1"):
    return svc.record_esewa_payment(
        order_id=order_id,
        user_id=user_id,
        total_amount=Decimal("1100"),
        transaction_uuid=uuid,
        product_code="EPAYTEST",
        transaction_code="0007ABC",
    )


def test_payment_marks_order_paid(db, catalog, order_id):
    payment = record(PaymentService(db, verify=False), order_id, catalog["alice"])

    assert payment.id is not None
    db.expire_all()
    order = db.get(OrderModel, order_id)
    assert order.payment_status == "PAID"
    assert order.payment_method == "ESEWA"


def test_duplicate_transaction_rejected(db, catalog, order_id):
    svc = PaymentService(db, verify=False)
    record(svc, order_id, catalog["alice"])

    with pytest.raises(ConflictError):
        record(svc, order_id, catalog["alice"])

    assert db.query(EsewaPaymentModel).count() == 1


def test_order_of_other_user(db, catalog, order_id):
    with pytest.raises(NotFoundError):
        record(PaymentService(db, verify=False), order_id, catalog["bob"])


def test_verified_complete_transaction(db, catalog, order_id):
    client = StubEsewaClient("COMPLETE")

    record(PaymentService(db, esewa_client=client, verify=True), order_id, catalog["alice"], uuid="txn-9")

    assert client.calls == [("EPAYTEST", Decimal("1100"), "txn-9")]


def test_verified_incomplete_transaction_is_rejected(db, catalog, order_id):
    client = StubEsewaClient("PENDING")

    with pytest.raises(ValidationError):
        record(PaymentService(db, esewa_client=client, verify=True), order_id, catalog["alice"])

    db.expire_all()
    assert db.get(OrderModel, order_id).payment_status == "PENDING"
    assert db.query(EsewaPaymentModel).count() == 0


@pytest.fixture
def second_order_id(db, catalog, notifier, order_id):
    CartService(db).add_item(catalog["cart"], catalog["b"], quantity=1)
    return OrderService(db, notification_service=notifier).create_order(catalog["cart"], catalog["alice"])["id"]


def test_list_payments_filters_and_paginates(db, catalog, order_id, second_order_id):
    svc = PaymentService(db, verify=False)
    record(svc, order_id, catalog["alice"], uuid="txn-a")
    record(svc, second_order_id, catalog["alice"], uuid="txn-b")

    page = svc.list_payments(user_id=catalog["alice"], page=1, limit=1)
    assert page["total_count"] == 2
    assert page["total_pages"] == 2
    assert page["has_next"] is True
    assert [p["transaction_uuid"] for p in page["payments"]] == ["txn-b"]
    assert page["payments"][0]["payment_status"] == "PAID"

    by_uuid = svc.list_payments(transaction_uuid="txn-a")
    assert [p["order_id"] for p in by_uuid["payments"]] == [order_id]

    by_order = svc.list_payments(order_id=second_order_id)
    assert [p["transaction_uuid"] for p in by_order["payments"]] == ["txn-b"]

    assert svc.list_payments(user_id=catalog["bob"])["total_count"] == 0


def test_list_payments_rejects_bad_paging(db, catalog):
    with pytest.raises(ValidationError):
        PaymentService(db, verify=False).list_payments(limit=0)


def test_recent_payments_newest_first(db, catalog, order_id, second_order_id):
    svc = PaymentService(db, verify=False)
    record(svc, order_id, catalog["alice"], uuid="txn-a")
    record(svc, second_order_id, catalog["alice"], uuid="txn-b")

    assert [p["transaction_uuid"] for p in svc.recent_payments()] == ["txn-b", "txn-a"]
    assert [p["transaction_uuid"] for p in svc.recent_payments(user_id=catalog["alice"], limit=1)] == ["txn-b"]
    assert svc.recent_payments(user_id=catalog["bob"]) == []


def test_get_payment_includes_order_and_items(db, catalog, order_id):
    svc = PaymentService(db, verify=False)
    payment_id = record(svc, order_id, catalog["alice"]).id

    payment = svc.get_payment(payment_id)

    assert payment["transaction_uuid"] == "txn-1"
    assert payment["order"]["id"] == order_id
    assert payment["order"]["payment_status"] == "PAID"
    assert [(i["product_id"], i["quantity"]) for i in payment["order"]["items"]] == [(catalog["a"], 2)]


def test_get_unknown_payment(db, catalog):
    with pytest.raises(NotFoundError):
        PaymentService(db, verify=False).get_payment(999)
