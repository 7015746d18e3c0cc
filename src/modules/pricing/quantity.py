"""Per-line quantity caps by unit price tier."""

from __future__ import annotations

from decimal import Decimal
from typing import Union

from modules.pricing.constants import QUANTITY_CAP_FLOOR, QUANTITY_TIERS
from modules.pricing.exceptions import InvalidCartLine

Number = Union[Decimal, int, float, str]


def max_quantity(unit_price: Number) -> int:
    """Return the most units of one product a single order may carry.

    ``< 1000 → 3``, ``< 2000 → 2``, anything dearer ``→ 1``.
    """
    price = Decimal(str(unit_price))
    for upper_bound, cap in QUANTITY_TIERS:
        if price < upper_bound:
            return cap
    return QUANTITY_CAP_FLOOR


def clamp_quantity(requested: int, unit_price: Number) -> int:
    """Clamp ``requested`` into ``[1, max_quantity(unit_price)]``.

    Raises:
        InvalidCartLine: ``requested`` is zero or negative.  Removing a
            line is a cart operation, not something pricing infers.
    """
    if requested <= 0:
        raise InvalidCartLine(f"Quantity must be at least 1, got {requested}.")
    return min(requested, max_quantity(unit_price))
