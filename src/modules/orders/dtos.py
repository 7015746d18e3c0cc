"""Order DTOs for the Service Layer.

Framework-agnostic, immutable (``frozen=True``) Pydantic v2 contracts
between the API layer (DRF serializers) and ``OrderService``.

- ``ShippingAddressDTO``: destination of an order; its state drives both
  delivery eligibility and the GST split.
- ``PlaceOrderDTO``: order placement request.  Lines reuse the checkout
  ``CartItemDTO`` so a placed order is priced exactly like its quote.
"""

from __future__ import annotations

import re
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import DEFAULT_SHIPPING_COUNTRY
from modules.pricing.dtos import CartItemDTO, normalize_region

PINCODE_PATTERN = re.compile(r"^[1-9]\d{5}$")


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: str = ""
    address: str
    city: str
    state: str
    pincode: str
    country: str = DEFAULT_SHIPPING_COUNTRY

    @field_validator("name", "address", "city")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("This field cannot be blank.")
        return v.strip()

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: str) -> str:
        state = normalize_region(v)
        if not state:
            raise ValueError("Shipping state is required.")
        return state

    @field_validator("country")
    @classmethod
    def normalize_country(cls, v: str) -> str:
        return normalize_region(v) or DEFAULT_SHIPPING_COUNTRY

    @field_validator("pincode")
    @classmethod
    def pincode_must_be_valid(cls, v: str) -> str:
        value = (v or "").strip()
        if not PINCODE_PATTERN.match(value):
            raise ValueError("PIN code must be six digits and cannot start with 0.")
        return value


class PlaceOrderDTO(BaseModel):
    """Immutable DTO for order placement.

    Validates:
    - ``items`` must contain at least one item.
    - No product may appear twice.

    Client-side totals are not part of the contract: the order is priced
    server-side at placement.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    items: List[CartItemDTO]
    shipping: ShippingAddressDTO
    notes: Optional[str] = ""
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[CartItemDTO]) -> List[CartItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self
