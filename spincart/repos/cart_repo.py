# spincart/repos/cart_repo.py
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session, joinedload

from spincart.data.models.cart import CartModel
from spincart.data.models.cart_item import CartItemModel
from spincart.data.models.product import ProductModel, ProductVariantModel


class CartRepo:
    """
    Dostep do koszykow i pozycji. Odczyty zawsze z populate_existing,
    zeby nie korzystac z nieaktualnej kopii z identity map.
    """

    def __init__(self, db: Session):
        self.db = db

    # koszyk
    def get_cart(self, cart_id: int, for_update: bool = False) -> CartModel | None:
        stmt = (
            select(CartModel)
            .where(CartModel.id == cart_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        stmt = (
            select(CartModel)
            .where(CartModel.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def update_cart(self, cart_id: int, values: dict, *conditions) -> int:
        # np. update carts set spin_played = true where id = 1 and spin_played = false
        stmt = (
            update(CartModel)
            .where(CartModel.id == cart_id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    # pozycje
    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        self.db.flush()
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .options(joinedload(CartItemModel.product), joinedload(CartItemModel.variant))
            .order_by(CartItemModel.id)
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_item(self, item_id: int) -> CartItemModel | None:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.id == item_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart_item(self, cart_id: int, product_id: int, variant_id: Optional[int]) -> CartItemModel | None:
        variant_clause = (
            CartItemModel.variant_id.is_(None)
            if variant_id is None
            else CartItemModel.variant_id == variant_id
        )
        stmt = (
            select(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
                variant_clause,
            )
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def add_cart_items(self, items: Iterable[CartItemModel]) -> int:
        items = list(items)
        if items:
            self.db.add_all(items)
            self.db.flush()
        return len(items)

    def update_item_quantities(self, changes: List[Tuple[int, int]]) -> int:
        # bulk UPDATE po kluczu glownym, jedno zapytanie executemany
        if changes:
            self.db.execute(
                update(CartItemModel),
                [{"id": item_id, "quantity": quantity} for item_id, quantity in changes],
            )
        return len(changes)

    def delete_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def delete_cart_items(self, cart_id: int) -> int:
        stmt = delete(CartItemModel).where(CartItemModel.cart_id == cart_id)
        return self.db.execute(stmt).rowcount

    # produkty (tylko odczyt)
    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_variant(self, variant_id: int) -> ProductVariantModel | None:
        return self.db.get(ProductVariantModel, variant_id)

    def get_products(self, product_ids: Iterable[int]) -> List[ProductModel]:
        ids = list(set(product_ids))
        if not ids:
            return []
        return list(self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars().all())

    def get_variants(self, variant_ids: Iterable[int]) -> List[ProductVariantModel]:
        ids = list(set(variant_ids))
        if not ids:
            return []
        return list(
            self.db.execute(select(ProductVariantModel).where(ProductVariantModel.id.in_(ids))).scalars().all()
        )
