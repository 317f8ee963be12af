# spincart/data/seed.py
from decimal import Decimal

from sqlalchemy.orm import Session

from spincart.data.database import SessionLocal
from spincart.data.models import (
    AddressModel,
    ProductModel,
    ProductVariantModel,
    SpinDefinitionModel,
    UserModel,
)
from spincart.utils.logging import get_logger

logger = get_logger(__name__)

# nagrody demo, suma aktywnych prawdopodobienstw = 1
DEMO_SPINS = [
    ("Rs. 100 off", "DISCOUNT", "100", 0.3),
    ("Free delivery", "FREE_DELIVERY", "0", 0.3),
    ("Rs. 50 cashback", "CASHBACK", "50", 0.1),
    ("Surprise gift", "GIFT", "Tote bag", 0.1),
    ("Better luck next time", "MESSAGE", "Thanks for shopping", 0.2),
]


def seed(db: Session | None = None) -> bool:
    """Zasiewa katalog demo tylko gdy baza jest pusta. Zwraca True gdy cos dodano."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return False

        user = UserModel(name="Demo User", email="demo@example.com", role="USER")
        admin = UserModel(name="Admin", email="admin@example.com", role="ADMIN")
        db.add_all([user, admin])
        db.flush()
        db.add(AddressModel(user_id=user.id, city="Kathmandu", street="New Road"))

        tshirt = ProductModel(name="T-shirt", price=Decimal("500.00"))
        hoodie = ProductModel(name="Hoodie", price=Decimal("600.00"))
        db.add_all([tshirt, hoodie])
        db.flush()
        db.add(ProductVariantModel(product_id=hoodie.id, name="XL", price=Decimal("650.00")))

        db.add_all(
            SpinDefinitionModel(title=title, type=kind, value=value, probability=p, is_active=True)
            for title, kind, value, p in DEMO_SPINS
        )
        db.commit()
        logger.info("Demo catalog seeded")
        return True
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()
