from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.pricing.dtos import (
    CartItemDTO,
    DeliveryCheckDTO,
    DeliveryFeeConfig,
    QuoteRequestDTO,
    normalize_region,
)

pytestmark = pytest.mark.unit


def test_normalize_region():
    assert normalize_region("  ka ") == "KA"
    assert normalize_region(None) == ""


class TestCartItemDTO:
    def test_product_id_is_trimmed(self):
        assert CartItemDTO(product_id=" abc ", quantity=1).product_id == "abc"

    def test_blank_product_id_rejected(self):
        with pytest.raises(ValidationError):
            CartItemDTO(product_id="   ", quantity=1)

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            CartItemDTO(product_id="abc", quantity=0)

    def test_is_immutable(self):
        item = CartItemDTO(product_id="abc", quantity=1)
        with pytest.raises(ValidationError):
            item.quantity = 2


class TestQuoteRequestDTO:
    def test_destination_is_normalised(self):
        dto = QuoteRequestDTO(items=[], state=" mh", country="")
        assert dto.state == "MH"
        assert dto.country == "IN"

    def test_empty_cart_is_allowed(self):
        assert QuoteRequestDTO(items=[]).items == []


def test_delivery_check_normalises_state():
    dto = DeliveryCheckDTO(state="tn ", product_ids=["a"])
    assert dto.state == "TN"


class TestDeliveryFeeConfig:
    def test_negative_fee_rejected(self):
        with pytest.raises(ValidationError):
            DeliveryFeeConfig(flat_fee=Decimal("-1"))

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            DeliveryFeeConfig(flat_fee=Decimal("10"), free_delivery_threshold=-5)
