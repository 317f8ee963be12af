# spincart/data/models/spin.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime

from spincart.data.database import Base


class SpinDefinitionModel(Base):
    __tablename__ = "spin_definitions"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    type = Column(String(20), nullable=False)  # DISCOUNT, FREE_DELIVERY, CASHBACK, GIFT, MESSAGE
    value = Column(String, nullable=False)
    probability = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
