"""Delivery eligibility rules.

First match wins:

1. First-party (admin) inventory ships anywhere.
2. GST-registered sellers may ship across state lines.
3. Otherwise the destination state must equal the seller's state.
4. Anything else is not deliverable.

An empty destination never satisfies rule 3, and an unknown seller state
never matches.  Comparison is exact: callers normalise casing and
whitespace beforehand (see ``normalize_region``).
"""

from __future__ import annotations

from typing import Dict, Iterable

from modules.pricing.dtos import ProductSnapshot


def is_deliverable(destination_state: str, product: ProductSnapshot) -> bool:
    if product.is_admin_product:
        return True
    if product.seller_has_gst is True:
        return True
    if destination_state and product.seller_state:
        return destination_state == product.seller_state
    return False


def check_eligibility(
    destination_state: str, products: Iterable[ProductSnapshot]
) -> Dict[str, bool]:
    """Map every supplied product id to exactly one deliverability flag."""
    return {
        product.id: is_deliverable(destination_state, product) for product in products
    }


def eligibility_for_ids(
    destination_state: str,
    product_ids: Iterable[str],
    products: Iterable[ProductSnapshot],
) -> Dict[str, bool]:
    """Eligibility for requested ids; ids missing from the catalog are ``False``."""
    known = check_eligibility(destination_state, products)
    return {product_id: known.get(product_id, False) for product_id in product_ids}
