# spincart/domain/pricing.py
from decimal import Decimal
from typing import Iterable, Tuple

from spincart.domain.errors import IntegrityFault

ZERO = Decimal("0.00")


def resolve_unit_price(item) -> Decimal:
    """
    Cena jednostkowa pozycji: cena wariantu jesli wariant wybrany,
    w przeciwnym razie cena bazowa produktu.

    Brak rekordu wariantu przy ustawionym variant_id to blad integralnosci,
    nie cichy fallback.
    """
    if item.variant_id is not None:
        variant = item.variant
        if variant is None or variant.price is None:
            raise IntegrityFault(
                "Variant price could not be resolved",
                cart_item_id=item.id,
                variant_id=item.variant_id,
            )
        return Decimal(variant.price)

    product = item.product
    if product is None or product.price is None:
        raise IntegrityFault(
            "Product price could not be resolved",
            cart_item_id=item.id,
            product_id=item.product_id,
        )
    return Decimal(product.price)


def compute_total(lines: Iterable[Tuple[Decimal, int]]) -> Decimal:
    return sum((Decimal(price) * quantity for price, quantity in lines), ZERO)


def priced_lines(items) -> list:
    return [(resolve_unit_price(i), i.quantity) for i in items]


def final_total(subtotal: Decimal, discount: Decimal, shipping_cost: Decimal) -> Decimal:
    return Decimal(subtotal) - Decimal(discount) + Decimal(shipping_cost)
