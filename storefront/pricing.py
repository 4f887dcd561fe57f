"""
Checkout total computation.

All amounts are Decimals rounded half-up to the cent as soon as they are
computed; ``total`` is the exact sum of the rounded parts, so the stored and
displayed figures always agree.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional

from storefront.config import settings

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Convert a number (float, int, str, Decimal) to a cent-rounded Decimal."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping_cost: Decimal
    total: Decimal

    def as_dict(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "discount": float(self.discount),
            "tax": float(self.tax),
            "shippingCost": float(self.shipping_cost),
            "total": float(self.total),
        }


def _item_value(item: Any, name: str):
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name)


def shipping_cost_for(shipping_option: str) -> Decimal:
    if shipping_option == "standard":
        return to_money(settings.STANDARD_SHIPPING_COST)
    if shipping_option == "express":
        return to_money(settings.EXPRESS_SHIPPING_COST)
    raise ValueError(f"Unknown shipping option: {shipping_option!r}")


def calculate_totals(
    cart_items: Iterable[Any],
    shipping_option: str,
    discount_rate: Optional[float] = None,
    tax_rate: Optional[float] = None,
) -> Totals:
    """
    Price a cart.

    cart_items: dicts or objects exposing ``price`` and ``quantity``.
    Negative prices or quantities are priced as given.
    """
    if discount_rate is None:
        discount_rate = settings.DISCOUNT_RATE
    if tax_rate is None:
        tax_rate = settings.TAX_RATE

    subtotal = Decimal("0")
    for item in cart_items:
        price = Decimal(str(_item_value(item, "price") or 0))
        quantity = Decimal(str(_item_value(item, "quantity") or 0))
        subtotal += price * quantity
    subtotal = to_money(subtotal)

    discount = to_money(subtotal * Decimal(str(discount_rate)))
    tax = to_money((subtotal - discount) * Decimal(str(tax_rate)))
    shipping_cost = shipping_cost_for(shipping_option)
    total = subtotal - discount + tax + shipping_cost

    return Totals(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        shipping_cost=shipping_cost,
        total=total,
    )


def find_mismatches(claimed: Mapping[str, Any], totals: Totals, tolerance: Optional[float] = None) -> list:
    """Return the names of claimed totals that differ from ``totals`` by more than ``tolerance``."""
    if tolerance is None:
        tolerance = settings.TOTAL_TOLERANCE
    limit = to_money(tolerance)

    computed = {
        "subtotal": totals.subtotal,
        "discount": totals.discount,
        "tax": totals.tax,
        "shippingCost": totals.shipping_cost,
        "total": totals.total,
    }

    mismatches = []
    for name, expected in computed.items():
        value = claimed.get(name)
        if value is None:
            continue
        if abs(to_money(value) - expected) > limit:
            mismatches.append(name)
    return mismatches
