# spincart/domain/spin.py
# logika spinu niezalezna od bazy: losowanie po skumulowanym prawdopodobienstwie
# i mapowanie nagrody na kolumny koszyka
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Sequence, Tuple, TypeVar

from spincart.domain.enums import SpinType, NUMERIC_SPIN_TYPES
from spincart.domain.errors import ValidationError

T = TypeVar("T")

# tolerancja na dryf float przy sumowaniu prawdopodobienstw
PROBABILITY_EPSILON = 1e-9

# Numeric(10, 2): maks. 8 cyfr przed przecinkiem
MAX_REWARD_AMOUNT = Decimal("100000000")


def select_weighted(pairs: Sequence[Tuple[float, T]], r: float) -> T:
    """
    Pierwszy element, ktorego skumulowana waga osiaga r.
    pairs musza byc w stalej kolejnosci (po id definicji); gdy zaokraglenia
    zostawia sume ponizej r, wygrywa ostatni element.
    """
    if not pairs:
        raise ValueError("select_weighted() needs at least one pair")

    cumulative = 0.0
    for weight, item in pairs:
        cumulative += weight
        if r <= cumulative:
            return item

    return pairs[-1][1]


# None = pole koszyka bez zmian
@dataclass(frozen=True)
class RewardEffect:
    spin_reward: str
    discount: Optional[Decimal] = None
    shipping_cost: Optional[Decimal] = None
    cashback: Optional[Decimal] = None


def reward_tag(spin_type: str, value: str) -> str:
    return f"{SpinType(spin_type).value}:{value}"


def parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Reward value '{value}' is not a number")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"Reward value '{value}' must be a non-negative number")
    if amount >= MAX_REWARD_AMOUNT:
        raise ValidationError(f"Reward value '{value}' must be less than {MAX_REWARD_AMOUNT}")
    return amount


def reward_effect(spin_type: str, value: str) -> RewardEffect:
    kind = SpinType(spin_type)
    tag = reward_tag(kind, value)

    if kind == SpinType.DISCOUNT:
        return RewardEffect(spin_reward=tag, discount=parse_amount(value))
    if kind == SpinType.FREE_DELIVERY:
        return RewardEffect(spin_reward=tag, shipping_cost=Decimal("0.00"))
    if kind == SpinType.CASHBACK:
        # CASHBACK obniza total_price bezposrednio, jednorazowo w chwili spinu;
        # nastepne przeliczenie koszyka nadpisuje te korekte
        return RewardEffect(spin_reward=tag, cashback=parse_amount(value))
    # GIFT, MESSAGE - tylko opis
    return RewardEffect(spin_reward=tag)


def reward_updates(effect: RewardEffect, total_price: Any) -> Dict[str, Any]:
    """
    Wartosci kolumn koszyka po wygranej.

    total_price to biezaca suma albo wyrazenie kolumny (CartModel.total_price),
    wtedy CASHBACK liczy sie w samym UPDATE.
    """
    values: Dict[str, Any] = {"spin_played": True, "spin_reward": effect.spin_reward}
    if effect.discount is not None:
        values["discount"] = effect.discount
    if effect.shipping_cost is not None:
        values["shipping_cost"] = effect.shipping_cost
    if effect.cashback is not None:
        values["total_price"] = total_price - effect.cashback
    return values


def validate_definition_fields(
    title: Optional[str],
    spin_type: Optional[str],
    value: Optional[str],
    probability: Optional[float],
) -> None:
    if not title or not spin_type or value is None or str(value) == "" or probability is None:
        raise ValidationError("Missing required fields: title, type, value, probability")

    try:
        kind = SpinType(spin_type)
    except ValueError:
        raise ValidationError(f"Unknown spin type '{spin_type}'")

    if not 0 <= probability <= 1:
        raise ValidationError("Probability must be between 0 and 1")

    if kind in NUMERIC_SPIN_TYPES:
        parse_amount(value)


def exceeds_probability_budget(current_total: float, proposed: float) -> bool:
    return current_total + proposed > 1 + PROBABILITY_EPSILON
