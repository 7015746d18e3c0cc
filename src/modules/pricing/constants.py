"""Pricing constants.

Framework-agnostic enums (``StrEnum``, not Django ``TextChoices``) so the
pricing engine can be imported and exercised without a configured Django
project.  Quantity tiers mirror the caps shown by the storefront UI.
"""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum


class OfferType(StrEnum):
    """Promotional rule kinds attachable to a cart line."""

    DISCOUNT_MIN = "discount-min"
    PACK_MIN = "pack-min"
    CATEGORY = "category"
    SEARCH = "search"


class OfferValueKind(StrEnum):
    """How an offer ``value`` is interpreted."""

    PERCENT = "percent"
    FLAT = "flat"


class DropReason(StrEnum):
    """Why a cart line was excluded from a summary."""

    PRODUCT_NOT_FOUND = "product_not_found"
    NOT_DELIVERABLE = "not_deliverable"
    OUT_OF_STOCK = "out_of_stock"


class DeliveryFeeMode(StrEnum):
    FLAT = "flat"
    PER_SELLER = "per_seller"


# (exclusive upper price bound, max units per line); prices above the last
# bound fall back to ``QUANTITY_CAP_FLOOR``.
QUANTITY_TIERS: tuple[tuple[Decimal, int], ...] = (
    (Decimal("1000"), 3),
    (Decimal("2000"), 2),
)
QUANTITY_CAP_FLOOR = 1

DEFAULT_COUNTRY = "IN"
DOMESTIC_COUNTRIES = frozenset({"IN", "INDIA"})

DEFAULT_GST_PERCENT = Decimal("18")
MAX_GST_PERCENT = Decimal("100")

# Volumetric weight assumes a fixed parcel depth and the courier divisor.
VOLUMETRIC_DEPTH_CM = Decimal("10")
VOLUMETRIC_DIVISOR = Decimal("5000")

MONEY_QUANTUM = Decimal("0.01")
WEIGHT_QUANTUM = Decimal("0.001")

# Shipment key used for first-party inventory under per-seller delivery fees.
FIRST_PARTY_SHIPMENT = "__first_party__"
