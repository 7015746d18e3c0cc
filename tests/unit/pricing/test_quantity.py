from __future__ import annotations

from decimal import Decimal

import pytest

from modules.pricing.exceptions import InvalidCartLine
from modules.pricing.quantity import clamp_quantity, max_quantity

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "price,expected",
    [
        (Decimal("0.01"), 3),
        (Decimal("999.99"), 3),
        (Decimal("1000"), 2),
        (Decimal("1999.99"), 2),
        (Decimal("2000"), 1),
        (Decimal("45000"), 1),
    ],
)
def test_max_quantity_by_price_tier(price, expected):
    assert max_quantity(price) == expected


def test_max_quantity_accepts_plain_numbers():
    assert max_quantity(500) == 3
    assert max_quantity("1500.00") == 2


def test_clamp_keeps_quantities_within_cap():
    assert clamp_quantity(2, Decimal("500")) == 2
    assert clamp_quantity(10, Decimal("500")) == 3
    assert clamp_quantity(5, Decimal("2500")) == 1


@pytest.mark.parametrize("requested", [0, -1])
def test_clamp_rejects_non_positive_quantity(requested):
    with pytest.raises(InvalidCartLine):
        clamp_quantity(requested, Decimal("100"))


@pytest.mark.parametrize(
    "price", [Decimal("999.99"), Decimal("1000"), Decimal("1999.99"), Decimal("2000")]
)
@pytest.mark.parametrize("requested", range(1, 11))
def test_clamp_is_idempotent(requested, price):
    once = clamp_quantity(requested, price)

    assert clamp_quantity(once, price) == once
