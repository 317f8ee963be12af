# spincart/data/models/user.py
from sqlalchemy import Column, Integer, String, ForeignKey

from spincart.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, unique=True)
    role = Column(String(20), nullable=False, default="USER")  # USER, ADMIN


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    city = Column(String, nullable=False)
    street = Column(String, nullable=True)
    phone = Column(String, nullable=True)
