# spincart/repos/user_repo.py
from sqlalchemy.orm import Session

from spincart.data.models.user import UserModel, AddressModel


class UserRepo:
    """Uzytkownicy i adresy - tylko odczyt."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_address(self, address_id: int) -> AddressModel | None:
        return self.db.get(AddressModel, address_id)
