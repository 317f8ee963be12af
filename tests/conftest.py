import os

# przed importem spincart - settings czytaja env przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ESEWA_VERIFY"] = "false"

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from spincart.data.database import Base
from spincart.data.models import (
    AddressModel,
    CartModel,
    ProductModel,
    ProductVariantModel,
    SpinDefinitionModel,
    UserModel,
)
from spincart.services.lock_service import LockService


class FakeLockService(LockService):
    """Lock w slowniku zamiast Redis."""

    def __init__(self):
        self.locks = {}
        self.acquired = []

    def acquire(self, key, token, ttl):
        if key in self.locks:
            return False
        self.locks[key] = token
        self.acquired.append(key)
        return True

    def release(self, key, token):
        if self.locks.get(key) == token:
            del self.locks[key]
            return True
        return False


class FakeNotificationService:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send_order_notification(self, user_id, order_id):
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.sent.append((user_id, order_id))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def catalog(db):
    """
    Produkty: A=500, B=600, C=300 z wariantem C-XL=450.
    Uzytkownicy: alice, bob (USER), admin (ADMIN); adres alice.
    """
    alice = UserModel(name="alice", email="alice@example.com", role="USER")
    bob = UserModel(name="bob", email="bob@example.com", role="USER")
    admin = UserModel(name="admin", email="admin@example.com", role="ADMIN")
    db.add_all([alice, bob, admin])
    db.flush()

    address = AddressModel(user_id=alice.id, city="Kathmandu", street="New Road")
    product_a = ProductModel(name="A", price=Decimal("500.00"))
    product_b = ProductModel(name="B", price=Decimal("600.00"))
    product_c = ProductModel(name="C", price=Decimal("300.00"))
    db.add_all([address, product_a, product_b, product_c])
    db.flush()

    variant_c = ProductVariantModel(product_id=product_c.id, name="XL", price=Decimal("450.00"))
    db.add(variant_c)
    db.flush()

    cart = CartModel(
        user_id=alice.id,
        total_price=Decimal("0"),
        discount=Decimal("0"),
        shipping_cost=Decimal("100"),
        spin_played=False,
    )
    db.add(cart)
    db.commit()

    return {
        "alice": alice.id,
        "bob": bob.id,
        "admin": admin.id,
        "address": address.id,
        "a": product_a.id,
        "b": product_b.id,
        "c": product_c.id,
        "c_xl": variant_c.id,
        "cart": cart.id,
    }


@pytest.fixture
def add_spins(db):
    def _add(*rows):
        """rows: (type, value, probability[, is_active])"""
        created = []
        for index, row in enumerate(rows):
            kind, value, probability = row[:3]
            is_active = row[3] if len(row) > 3 else True
            definition = SpinDefinitionModel(
                title=f"{kind} #{index}",
                type=kind,
                value=value,
                probability=probability,
                is_active=is_active,
            )
            db.add(definition)
            db.flush()
            created.append(definition.id)
        db.commit()
        return created

    return _add


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def notifier():
    return FakeNotificationService()


@pytest.fixture
def failing_notifier():
    return FakeNotificationService(fail=True)
