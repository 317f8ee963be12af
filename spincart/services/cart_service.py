# spincart/services/cart_service.py
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from spincart.data.models.cart import CartModel
from spincart.data.models.cart_item import CartItemModel
from spincart.data.unit_of_work import UnitOfWork
from spincart.domain.errors import NotFoundError, ValidationError
from spincart.domain.pricing import compute_total, priced_lines, resolve_unit_price, final_total, ZERO
from spincart.repos.cart_repo import CartRepo
from spincart.repos.user_repo import UserRepo
from spincart.utils.settings import DEFAULT_SHIPPING_COST, SPIN_THRESHOLD
from spincart.utils.logging import get_logger

logger = get_logger(__name__)

_UNSET = object()


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _bulk_item_is_valid(item) -> bool:
    if not isinstance(item, dict):
        return False
    variant_id = item.get("variant_id")
    return (
        _is_positive_int(item.get("product_id"))
        and _is_positive_int(item.get("quantity"))
        and (variant_id is None or _is_positive_int(variant_id))
    )


class CartService:
    """
    Use case'y koszyka.
    commands (add, update, remove, bulk, clear, message) zmieniaja stan i zawsze
    koncza sie przeliczeniem total_price w tej samej transakcji,
    query (get, summary) tylko odczyt
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.user_repo = UserRepo(db)
        self.uow = UnitOfWork(db)

    # =====================================================
    # QUERY
    # =====================================================
    def get_cart(self, cart_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart(cart_id)
        if not cart:
            raise NotFoundError("Cart not found", cart_id=cart_id)
        return self._cart_view(cart)

    def get_cart_summary(self, cart_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart(cart_id)
        if not cart:
            raise NotFoundError("Cart not found", cart_id=cart_id)

        items = self.repo.get_cart_items(cart_id)
        subtotal = Decimal(cart.total_price)

        return {
            "cart_id": cart.id,
            "items_count": sum(i.quantity for i in items),
            "subtotal": subtotal,
            "discount": Decimal(cart.discount),
            "shipping_cost": Decimal(cart.shipping_cost),
            "final_total": final_total(subtotal, cart.discount, cart.shipping_cost),
            "spin_eligible": subtotal >= SPIN_THRESHOLD and not cart.spin_played,
            "spin_played": cart.spin_played,
            "spin_reward": cart.spin_reward,
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def get_or_create_cart(self, user_id: Optional[int] = None) -> Dict[str, Any]:
        """Koszyk uzytkownika (jeden na usera) albo nowy koszyk goscia dla user_id=None."""
        if user_id is not None:
            if not self.user_repo.get_user(user_id):
                raise NotFoundError("User not found", user_id=user_id)

            existing = self.repo.get_cart_by_user(user_id)
            if existing:
                return self._cart_view(existing)

        try:
            created = self.uow.run([
                lambda ctx: ctx.update(cart=self.repo.create_cart(self._new_cart(user_id))),
            ])["cart"]
        except IntegrityError:
            # rownolegle utworzenie koszyka dla tego samego usera
            existing = self.repo.get_cart_by_user(user_id) if user_id is not None else None
            if not existing:
                raise
            return self._cart_view(existing)

        logger.info(f"Created cart {created.id} for user {user_id if user_id is not None else 'guest'}")
        return self._cart_view(created)

    def recompute_total(self, cart_id: int) -> Decimal:
        ctx = self.uow.run([lambda ctx: ctx.update(total=self._recompute_total(cart_id))])
        return ctx["total"]

    def add_item(
        self,
        cart_id: int,
        product_id: int,
        quantity: int = 1,
        variant_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        if not _is_positive_int(quantity):
            raise ValidationError("Quantity must be greater than 0")

        def upsert(ctx):
            self._locked_cart(cart_id)
            self._check_product(product_id, variant_id)

            existing_item = self.repo.get_cart_item(cart_id, product_id, variant_id)
            if existing_item:
                logger.info(
                    f"Product {product_id} (variant {variant_id}) already in cart {cart_id}, "
                    f"quantity {existing_item.quantity} -> {existing_item.quantity + quantity}"
                )
                existing_item.quantity += quantity
                self.db.flush()
            else:
                logger.info(f"Adding product {product_id} (variant {variant_id}) to cart {cart_id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart_id,
                        product_id=product_id,
                        variant_id=variant_id,
                        quantity=quantity,
                    )
                )

        self._run_merging([upsert, self._recompute_step(cart_id)])
        return self.get_cart(cart_id)

    def update_item_quantity(self, item_id: int, quantity: int) -> Dict[str, Any]:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0:
            raise ValidationError("Quantity must be a non-negative integer")

        def change(ctx):
            ctx["cart_id"] = self._existing_item(item_id).cart_id
            self._locked_cart(ctx["cart_id"])
            item = self._existing_item(item_id)

            if quantity == 0:
                logger.info(f"Quantity 0, removing item {item_id} from cart {item.cart_id}")
                self.repo.delete_item(item)
            else:
                item.quantity = quantity
                self.db.flush()

        ctx = self.uow.run([change, lambda ctx: self._recompute_total(ctx["cart_id"])])
        return self.get_cart(ctx["cart_id"])

    def remove_item(self, item_id: int) -> Dict[str, Any]:
        def remove(ctx):
            ctx["cart_id"] = self._existing_item(item_id).cart_id
            self._locked_cart(ctx["cart_id"])
            item = self._existing_item(item_id)
            self.repo.delete_item(item)
            logger.info(f"Removed item {item_id} from cart {item.cart_id}")

        ctx = self.uow.run([remove, lambda ctx: self._recompute_total(ctx["cart_id"])])
        return self.get_cart(ctx["cart_id"])

    def bulk_add_items(self, cart_id: int, items: List[dict], message=_UNSET) -> Dict[str, Any]:
        """
        Masowe dodanie pozycji - wszystko albo nic.

        Najpierw walidacja ksztaltu kazdej pozycji, potem istnienie produktow
        i wariantow (dwa zapytania IN), potem jeden odczyt istniejacych pozycji,
        diff w pamieci, jeden insert + grupowy update i jedno przeliczenie.
        """
        if not isinstance(items, list) or not items:
            raise ValidationError("Items array is required")

        invalid = [index for index, item in enumerate(items) if not _bulk_item_is_valid(item)]
        if invalid:
            raise ValidationError(
                "Each item must have valid product_id and quantity (greater than 0)",
                invalid_items=invalid,
            )

        # scalanie duplikatow w obrebie paczki, kolejnosc pierwszego wystapienia
        requested: "OrderedDict[tuple, int]" = OrderedDict()
        for item in items:
            key = (item["product_id"], item.get("variant_id"))
            requested[key] = requested.get(key, 0) + item["quantity"]

        def apply(ctx):
            self._locked_cart(cart_id)
            self._check_references(requested.keys())

            existing = {(i.product_id, i.variant_id): i for i in self.repo.get_cart_items(cart_id)}

            to_create, to_update = [], []
            for (product_id, variant_id), quantity in requested.items():
                current = existing.get((product_id, variant_id))
                if current:
                    to_update.append((current.id, current.quantity + quantity))
                else:
                    to_create.append(
                        CartItemModel(
                            cart_id=cart_id,
                            product_id=product_id,
                            variant_id=variant_id,
                            quantity=quantity,
                        )
                    )

            ctx["added"] = self.repo.add_cart_items(to_create)
            ctx["updated"] = self.repo.update_item_quantities(to_update)

            if message is not _UNSET:
                self.repo.update_cart(cart_id, {"message": message or None})

        ctx = self._run_merging([apply, self._recompute_step(cart_id)])

        logger.info(
            f"Bulk add to cart {cart_id}: {ctx['added']} added, {ctx['updated']} updated"
        )

        return {
            "added": ctx["added"],
            "updated": ctx["updated"],
            "processed": ctx["added"] + ctx["updated"],
            "cart": self.get_cart(cart_id),
        }

    def clear_cart(self, cart_id: int) -> Dict[str, Any]:
        def clear(ctx):
            self._locked_cart(cart_id)
            self.repo.delete_cart_items(cart_id)
            self.repo.update_cart(
                cart_id,
                {
                    "total_price": ZERO,
                    "discount": ZERO,
                    "shipping_cost": DEFAULT_SHIPPING_COST,
                    "spin_played": False,
                    "spin_reward": None,
                },
            )

        self.uow.run([clear])
        logger.info(f"Cart {cart_id} cleared")
        return self.get_cart(cart_id)

    def update_message(self, cart_id: int, message: Optional[str]) -> Dict[str, Any]:
        def set_message(ctx):
            self._locked_cart(cart_id)
            self.repo.update_cart(cart_id, {"message": message or None})

        self.uow.run([set_message])
        return self.get_cart(cart_id)

    # =====================================================
    # HELPERS
    # =====================================================
    def _run_merging(self, steps) -> dict:
        try:
            return self.uow.run(steps)
        except IntegrityError:
            # rownolegly insert tej samej pozycji, drugi przebieg ja odczyta i scali ilosci
            logger.warning("Concurrent insert of the same cart line, retrying once")
            return self.uow.run(steps)

    def _recompute_total(self, cart_id: int) -> Decimal:
        if not self.repo.get_cart(cart_id):
            raise NotFoundError("Cart not found", cart_id=cart_id)

        items = self.repo.get_cart_items(cart_id)
        total = compute_total(priced_lines(items))
        self.repo.update_cart(cart_id, {"total_price": total})
        return total

    def _recompute_step(self, cart_id: int):
        return lambda ctx: ctx.update(total=self._recompute_total(cart_id))

    def _locked_cart(self, cart_id: int) -> CartModel:
        cart = self.repo.get_cart(cart_id, for_update=True)
        if not cart:
            raise NotFoundError("Cart not found", cart_id=cart_id)
        return cart

    def _existing_item(self, item_id: int) -> CartItemModel:
        item = self.repo.get_item(item_id)
        if not item:
            raise NotFoundError("Cart item not found", item_id=item_id)
        return item

    def _check_product(self, product_id: int, variant_id: Optional[int]) -> None:
        if not self.repo.get_product(product_id):
            raise NotFoundError("Product not found", product_id=product_id)

        if variant_id is not None:
            variant = self.repo.get_variant(variant_id)
            if not variant or variant.product_id != product_id:
                raise NotFoundError("Product variant not found", variant_id=variant_id)

    def _check_references(self, keys) -> None:
        keys = list(keys)
        product_ids = {product_id for product_id, _ in keys}
        variant_ids = {variant_id for _, variant_id in keys if variant_id is not None}

        found_products = {p.id for p in self.repo.get_products(product_ids)}
        missing_products = sorted(product_ids - found_products)
        if missing_products:
            raise NotFoundError("Some products not found", missing_product_ids=missing_products)

        variants = {v.id: v for v in self.repo.get_variants(variant_ids)}
        missing_variants = sorted(
            {
                variant_id
                for product_id, variant_id in keys
                if variant_id is not None
                and (variant_id not in variants or variants[variant_id].product_id != product_id)
            }
        )
        if missing_variants:
            raise NotFoundError("Some product variants not found", missing_variant_ids=missing_variants)

    @staticmethod
    def _new_cart(user_id: Optional[int]) -> CartModel:
        return CartModel(
            user_id=user_id,
            total_price=ZERO,
            discount=ZERO,
            shipping_cost=DEFAULT_SHIPPING_COST,
            spin_played=False,
        )

    def _cart_view(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)

        #dict przeksztalcany w jsona
        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "variant_id": i.variant_id,
                    "quantity": i.quantity,
                    "unit_price": resolve_unit_price(i),
                    "line_total": resolve_unit_price(i) * i.quantity,
                }
                for i in items
            ],
            "total_price": Decimal(cart.total_price),
            "discount": Decimal(cart.discount),
            "shipping_cost": Decimal(cart.shipping_cost),
            "spin_played": cart.spin_played,
            "spin_reward": cart.spin_reward,
            "message": cart.message,
        }
