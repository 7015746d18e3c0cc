"""Offer application for a single cart line.

At most one offer applies per line and it is always the one attached to
the line; nothing here searches for a better deal.

- ``discount-min``: line subtotal reaches ``min_amount`` and quantity
  reaches ``min_quantity``; reduce the line by ``value`` (percent or flat).
- ``pack-min``: quantity reaches ``min_quantity``; reduce every unit by
  ``value`` (percent or flat per unit).
- ``category``: product category (and subcategory, when the offer names
  one) matches case-insensitively.
- ``search``: ``search_term`` occurs in the product's searchable text.

A reduction never exceeds the line subtotal.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from modules.pricing.constants import OfferType, OfferValueKind
from modules.pricing.dtos import AppliedOffer, ProductSnapshot

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _matches_category(offer: AppliedOffer, product: ProductSnapshot) -> bool:
    category = offer.category.strip().lower()
    if not category or product.category.strip().lower() != category:
        return False
    subcategory = offer.subcategory.strip().lower()
    if subcategory:
        return product.subcategory.strip().lower() == subcategory
    return True


def _matches_search(offer: AppliedOffer, product: ProductSnapshot) -> bool:
    term = offer.search_term.strip().lower()
    if not term:
        return False
    haystack = (
        product.name,
        product.brand,
        product.category,
        product.subcategory,
        product.description,
    )
    return any(term in field.lower() for field in haystack if field)


def offer_applies(
    offer: AppliedOffer,
    product: ProductSnapshot,
    quantity: int,
    line_subtotal: Decimal,
) -> bool:
    if offer.type == OfferType.DISCOUNT_MIN:
        return line_subtotal >= offer.min_amount and quantity >= offer.min_quantity
    if offer.type == OfferType.PACK_MIN:
        return quantity >= offer.min_quantity
    if offer.type == OfferType.CATEGORY:
        return _matches_category(offer, product)
    if offer.type == OfferType.SEARCH:
        return _matches_search(offer, product)
    return False


def offer_discount(
    offer: Optional[AppliedOffer],
    product: ProductSnapshot,
    quantity: int,
    line_subtotal: Decimal,
) -> Decimal:
    """Return the full-precision reduction ``offer`` grants on this line."""
    if offer is None or not offer_applies(offer, product, quantity, line_subtotal):
        return ZERO

    if offer.value_kind == OfferValueKind.PERCENT:
        reduction = line_subtotal * offer.value / HUNDRED
    elif offer.type == OfferType.PACK_MIN:
        reduction = offer.value * quantity
    else:
        reduction = offer.value

    return min(reduction, line_subtotal)
