# spincart/services/spin_service.py
import random
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from spincart.data.models.cart import CartModel
from spincart.data.models.spin import SpinDefinitionModel
from spincart.data.unit_of_work import UnitOfWork
from spincart.domain.enums import SpinType
from spincart.domain.errors import (
    AlreadyPlayedError,
    IntegrityFault,
    NoRewardsAvailableError,
    NotEligibleError,
    NotFoundError,
    ValidationError,
)
from spincart.domain.spin import (
    PROBABILITY_EPSILON,
    exceeds_probability_budget,
    reward_effect,
    reward_updates,
    select_weighted,
    validate_definition_fields,
)
from spincart.repos.cart_repo import CartRepo
from spincart.repos.spin_repo import SpinRepo
from spincart.services.cart_service import CartService
from spincart.services.lock_service import LockService, SPIN_DEFINITIONS_LOCK
from spincart.utils.settings import SPIN_THRESHOLD
from spincart.utils.logging import get_logger

logger = get_logger(__name__)

_EDITABLE_FIELDS = ("title", "type", "value", "probability", "is_active")


class SpinService:
    """
    Spin Resolver + zarzadzanie definicjami nagrod.

    play_spin: NOT_ELIGIBLE -> ELIGIBLE -> PLAYED, dokladnie raz na koszyk
    (warunkowy UPDATE ... WHERE spin_played = false).
    Zapisy definicji serializowane globalnym lockiem w Redis.
    """

    def __init__(self, db: Session, lock_service: LockService, rng: Optional[random.Random] = None):
        self.db = db
        self.repo = SpinRepo(db)
        self.cart_repo = CartRepo(db)
        self.carts = CartService(db)
        self.lock_service = lock_service
        self.rng = rng or random.Random()
        self.uow = UnitOfWork(db)

    # =====================================================
    # PLAY
    # =====================================================
    def play_spin(self, cart_id: int) -> Dict[str, Any]:
        def check(ctx):
            cart = self.cart_repo.get_cart(cart_id)
            if not cart:
                raise NotFoundError("Cart not found", cart_id=cart_id)
            if cart.spin_played:
                raise AlreadyPlayedError("Spin already played for this cart")
            if Decimal(cart.total_price) < SPIN_THRESHOLD:
                raise NotEligibleError(f"Cart total must be at least {SPIN_THRESHOLD} to play spin")

            definitions = self.repo.list_definitions(active_only=True)
            if not definitions:
                raise NoRewardsAvailableError("No active spin rewards available")
            ctx["definitions"] = definitions

        def draw(ctx):
            r = self.rng.random()
            selected = select_weighted([(d.probability, d) for d in ctx["definitions"]], r)
            logger.info(f"Spin for cart {cart_id}: r={r:.6f} -> definition {selected.id} ({selected.type})")
            ctx["reward"] = selected

        def persist(ctx):
            selected = ctx["reward"]
            effect = reward_effect(selected.type, selected.value)

            rowcount = self.cart_repo.update_cart(
                cart_id,
                reward_updates(effect, CartModel.total_price),
                CartModel.spin_played.is_(False),
                CartModel.total_price >= SPIN_THRESHOLD,
            )

            # ktos inny zagral albo koszyk sie zmienil miedzy odczytem a zapisem
            if rowcount == 0:
                current = self.cart_repo.get_cart(cart_id)
                if not current:
                    raise NotFoundError("Cart not found", cart_id=cart_id)
                if current.spin_played:
                    raise AlreadyPlayedError("Spin already played for this cart")
                raise NotEligibleError(f"Cart total must be at least {SPIN_THRESHOLD} to play spin")

        ctx = self.uow.run([check, draw, persist])
        reward = ctx["reward"]

        logger.info(f"Cart {cart_id} won spin reward {reward.id}: {reward.title}")

        return {
            "reward": reward,
            "cart": self.carts.get_cart(cart_id),
            "message": f"Congratulations! You won: {reward.title}",
        }

    # =====================================================
    # DEFINITIONS
    # =====================================================
    def list_spin_definitions(self, active_only: bool = False) -> List[SpinDefinitionModel]:
        return self.repo.list_definitions(active_only=active_only)

    def get_spin_definition(self, definition_id: int) -> SpinDefinitionModel:
        definition = self.repo.get_definition(definition_id)
        if not definition:
            raise NotFoundError("Spin reward not found", definition_id=definition_id)
        return definition

    def create_spin_definition(
        self,
        title: str,
        type: str,
        value: str,
        probability: float,
        is_active: bool = True,
    ) -> SpinDefinitionModel:
        validate_definition_fields(title, type, value, probability)

        def create(ctx):
            if is_active:
                self._check_budget(self.repo.active_probability_sum(), probability)

            ctx["definition"] = self.repo.add_definition(
                SpinDefinitionModel(
                    title=title,
                    type=SpinType(type).value,
                    value=str(value),
                    probability=float(probability),
                    is_active=is_active,
                )
            )

        with self.lock_service.hold(SPIN_DEFINITIONS_LOCK):
            ctx = self.uow.run([create])
            self._verify_probability_invariant()

        logger.info(f"Spin reward {ctx['definition'].id} created ({SpinType(type).value}, p={probability})")
        return ctx["definition"]

    def update_spin_definition(self, definition_id: int, **changes) -> SpinDefinitionModel:
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        # None = pole bez zmian
        changes = {k: v for k, v in changes.items() if v is not None}

        def update(ctx):
            definition = self.get_spin_definition(definition_id)

            merged = {field: changes.get(field, getattr(definition, field)) for field in _EDITABLE_FIELDS}
            validate_definition_fields(merged["title"], merged["type"], merged["value"], merged["probability"])
            if "type" in changes:
                changes["type"] = SpinType(changes["type"]).value

            touches_budget = "probability" in changes or "is_active" in changes
            if touches_budget and merged["is_active"]:
                self._check_budget(
                    self.repo.active_probability_sum(exclude_id=definition_id),
                    merged["probability"],
                )

            for field, new_value in changes.items():
                setattr(definition, field, new_value)
            self.db.flush()
            ctx["definition"] = definition

        with self.lock_service.hold(SPIN_DEFINITIONS_LOCK):
            ctx = self.uow.run([update])
            self._verify_probability_invariant()

        logger.info(f"Spin reward {definition_id} updated: {sorted(changes)}")
        return ctx["definition"]

    def delete_spin_definition(self, definition_id: int) -> None:
        def delete(ctx):
            self.repo.delete_definition(self.get_spin_definition(definition_id))

        with self.lock_service.hold(SPIN_DEFINITIONS_LOCK):
            self.uow.run([delete])

        logger.info(f"Spin reward {definition_id} deleted")

    # =====================================================
    # HELPERS
    # =====================================================
    @staticmethod
    def _check_budget(current_total: float, proposed: float) -> None:
        if exceeds_probability_budget(current_total, proposed):
            raise ValidationError(
                "Adding this spin would exceed the total allowed probability of 100%. "
                f"Current total: {current_total * 100:.2f}%, proposed: {proposed * 100:.2f}%."
            )

    def _verify_probability_invariant(self) -> None:
        total = self.repo.active_probability_sum()
        if total > 1 + PROBABILITY_EPSILON:
            # nie powinno sie zdarzyc przy dzialajacym locku
            logger.error(f"Active spin probability sum {total} exceeds 1 after a serialized write")
            raise IntegrityFault("Active spin probabilities exceed 1", active_total=total)
