"""Pricing DTOs.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

Engine inputs:
- ``AppliedOffer``: an authoritative offer attached to a cart line.
- ``CartLine``: product reference + requested quantity.
- ``ProductSnapshot``: catalog state read once per pricing pass.
- ``DeliveryFeeConfig``: caller-supplied delivery fee rules.

Engine outputs:
- ``SummaryItem``, ``DroppedLine``, ``TaxBreakdown``, ``OrderSummary``.

API inputs (converted from DRF serializers by the views):
- ``CartItemDTO``, ``QuoteRequestDTO``, ``DeliveryCheckDTO``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.pricing.constants import (
    DEFAULT_COUNTRY,
    MAX_GST_PERCENT,
    DeliveryFeeMode,
    OfferType,
    OfferValueKind,
)

ZERO = Decimal("0")


def normalize_region(value: Optional[str]) -> str:
    """Collapse a state/country code to the form stored on sellers."""
    return (value or "").strip().upper()


# ---------------------------------------------------------------------------
# Engine inputs
# ---------------------------------------------------------------------------


class AppliedOffer(BaseModel):
    """Immutable offer resolved from the offer catalog.

    Only active, unexpired offers may be attached; filtering happens in
    the offer repository before the engine sees them.
    """

    model_config = ConfigDict(frozen=True)

    key: str = ""
    name: str
    type: OfferType
    value: Decimal = ZERO
    value_kind: OfferValueKind = OfferValueKind.PERCENT
    min_quantity: int = 1
    min_amount: Decimal = ZERO
    category: str = ""
    subcategory: str = ""
    search_term: str = ""

    @field_validator("value", "min_amount")
    @classmethod
    def must_be_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Offer amounts cannot be negative.")
        return v

    @field_validator("min_quantity")
    @classmethod
    def min_quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Offer minimum quantity must be at least 1.")
        return v

    @model_validator(mode="after")
    def percent_within_range(self):
        if self.value_kind == OfferValueKind.PERCENT and self.value > 100:
            raise ValueError("Percentage offers cannot exceed 100.")
        return self


class CartLine(BaseModel):
    """A client cart line.  Quantity is validated by the engine."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    quantity: int
    applied_offer: Optional[AppliedOffer] = None


class ProductSnapshot(BaseModel):
    """Authoritative product state for one pricing pass.

    ``seller_has_gst`` is tri-state: ``None`` means the seller's registration
    is unknown.  ``seller_state`` is the origin state used both for delivery
    eligibility and the intra-/inter-state tax split; for first-party
    products it carries the warehouse state.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    price: Decimal
    stock: int
    gst_percent: Decimal
    is_admin_product: bool = False
    seller_id: Optional[str] = None
    seller_has_gst: Optional[bool] = None
    seller_state: Optional[str] = None
    category: str = ""
    subcategory: str = ""
    brand: str = ""
    description: str = ""
    weight_kg: Decimal = ZERO
    height_cm: Decimal = ZERO
    width_cm: Decimal = ZERO


class DeliveryFeeConfig(BaseModel):
    """Delivery fee rules supplied by the caller.

    ``free_delivery_threshold`` of ``None`` disables free delivery.
    """

    model_config = ConfigDict(frozen=True)

    flat_fee: Decimal = ZERO
    free_delivery_threshold: Optional[Decimal] = None
    mode: DeliveryFeeMode = DeliveryFeeMode.FLAT

    @field_validator("flat_fee")
    @classmethod
    def fee_must_be_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Delivery fee cannot be negative.")
        return v

    @field_validator("free_delivery_threshold")
    @classmethod
    def threshold_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Free delivery threshold cannot be negative.")
        return v


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------


class SummaryItem(BaseModel):
    """Priced line.  Money fields are rounded to two places."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    requested_quantity: int
    quantity: int
    unit_price: Decimal
    line_subtotal: Decimal
    discount: Decimal
    adjusted_subtotal: Decimal
    offer_key: Optional[str] = None
    gst_percent: Decimal
    gst_amount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    stock: int


class DroppedLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    reason: str


class TaxBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO


class OrderSummary(BaseModel):
    """Computed checkout summary.

    ``total == subtotal + tax + delivery_fee`` holds exactly.  ``subtotal``
    is already net of ``discount``.
    """

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = ZERO
    discount: Decimal = ZERO
    tax: Decimal = ZERO
    tax_breakdown: TaxBreakdown = TaxBreakdown()
    delivery_fee: Decimal = ZERO
    total: Decimal = ZERO
    chargeable_weight_kg: Decimal = ZERO
    items: List[SummaryItem] = []
    dropped: List[DroppedLine] = []

    @property
    def is_empty(self) -> bool:
        return not self.items


# ---------------------------------------------------------------------------
# API inputs
# ---------------------------------------------------------------------------


class CartItemDTO(BaseModel):
    """Cart item as sent by the client.

    The client references an offer by key only; its terms are resolved from
    the offer catalog, never taken from the request.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    quantity: int
    offer_key: Optional[str] = None

    @field_validator("product_id")
    @classmethod
    def product_id_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Product reference is required.")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class QuoteRequestDTO(BaseModel):
    """Dry-run pricing request.

    ``state`` and ``country`` are normalised (trimmed, upper-case) so they
    compare exactly against stored seller states.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CartItemDTO]
    state: str = ""
    country: str = DEFAULT_COUNTRY

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: str) -> str:
        return normalize_region(v)

    @field_validator("country")
    @classmethod
    def normalize_country(cls, v: str) -> str:
        return normalize_region(v) or DEFAULT_COUNTRY


class DeliveryCheckDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: str = ""
    product_ids: List[str]

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: str) -> str:
        return normalize_region(v)
