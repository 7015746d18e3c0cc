"""Product → ``ProductSnapshot`` conversion.

Resolves everything pricing needs from a ``Product`` row so the engine
never touches the ORM:

- GST rate: product override, else category rate, else the default.
- Origin state: the seller's state, or the warehouse state for
  first-party inventory.
- Weight in kg and dimensions in cm, whatever units the seller used.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional

from modules.pricing.constants import DEFAULT_GST_PERCENT
from modules.pricing.dtos import ProductSnapshot, normalize_region
from modules.products.models import DimensionUnit, Product, WeightUnit

_KG_FACTORS: dict[str, Decimal] = {
    WeightUnit.KG.value: Decimal("1"),
    WeightUnit.G.value: Decimal("0.001"),
    WeightUnit.MG.value: Decimal("0.000001"),
}

_CM_FACTORS: dict[str, Decimal] = {
    DimensionUnit.CM.value: Decimal("1"),
    DimensionUnit.M.value: Decimal("100"),
    DimensionUnit.MM.value: Decimal("0.1"),
    DimensionUnit.IN.value: Decimal("2.54"),
    DimensionUnit.FT.value: Decimal("30.48"),
}


def to_kilograms(value: Decimal, unit: str) -> Decimal:
    factor = _KG_FACTORS.get((unit or "").strip().lower(), Decimal("1"))
    return Decimal(value or 0) * factor


def to_centimetres(value: Decimal, unit: str) -> Decimal:
    factor = _CM_FACTORS.get((unit or "").strip().lower(), Decimal("1"))
    return Decimal(value or 0) * factor


def resolve_gst_percent(
    product: Product,
    category_rates: Mapping[str, Decimal],
    default: Decimal = DEFAULT_GST_PERCENT,
) -> Decimal:
    if product.gst_percent is not None:
        return Decimal(product.gst_percent)
    category = (product.category or "").strip().lower()
    for name, rate in category_rates.items():
        if name.strip().lower() == category:
            return Decimal(str(rate))
    return default


def build_snapshot(
    product: Product,
    *,
    warehouse_state: Optional[str] = None,
    category_rates: Optional[Mapping[str, Decimal]] = None,
    default_gst_percent: Decimal = DEFAULT_GST_PERCENT,
) -> ProductSnapshot:
    seller = product.seller if product.seller_id else None
    if product.is_admin_product:
        seller_state = normalize_region(warehouse_state) or None
        seller_has_gst: Optional[bool] = None
    elif seller is not None:
        seller_state = seller.state or None
        seller_has_gst = seller.has_gst
    else:
        seller_state = None
        seller_has_gst = None

    return ProductSnapshot(
        id=str(product.id),
        name=product.name,
        price=product.price,
        stock=product.stock_quantity,
        gst_percent=resolve_gst_percent(
            product, category_rates or {}, default_gst_percent
        ),
        is_admin_product=product.is_admin_product,
        seller_id=str(seller.id) if seller is not None else None,
        seller_has_gst=seller_has_gst,
        seller_state=seller_state,
        category=product.category,
        subcategory=product.subcategory,
        brand=product.brand,
        description=product.description,
        weight_kg=to_kilograms(product.weight, product.weight_unit),
        height_cm=to_centimetres(product.height, product.dimension_unit),
        width_cm=to_centimetres(product.width, product.dimension_unit),
    )
