"""Unit tests for single-line offer application."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.pricing.constants import OfferType, OfferValueKind
from modules.pricing.dtos import AppliedOffer
from modules.pricing.offers import offer_applies, offer_discount

pytestmark = pytest.mark.unit


def _offer(**fields):
    defaults = {"key": "test", "name": "Test offer", "type": OfferType.DISCOUNT_MIN}
    defaults.update(fields)
    return AppliedOffer(**defaults)


class TestDiscountMin:
    def test_percent_off_when_minimums_met(self, make_snapshot):
        offer = _offer(
            value=Decimal("10"), min_amount=Decimal("500"), min_quantity=2
        )
        product = make_snapshot(price="300")

        assert offer_discount(offer, product, 2, Decimal("600")) == Decimal("60")

    def test_quantity_minimum_not_met(self, make_snapshot):
        offer = _offer(value=Decimal("10"), min_quantity=3)
        assert offer_discount(offer, make_snapshot(), 2, Decimal("200")) == 0

    def test_flat_amount_off(self, make_snapshot):
        offer = _offer(value=Decimal("75"), value_kind=OfferValueKind.FLAT)
        assert offer_discount(offer, make_snapshot(), 1, Decimal("100")) == Decimal(
            "75"
        )


class TestPackMin:
    def test_flat_value_is_per_unit(self, make_snapshot):
        offer = _offer(
            type=OfferType.PACK_MIN,
            value=Decimal("20"),
            value_kind=OfferValueKind.FLAT,
            min_quantity=3,
        )

        assert offer_discount(offer, make_snapshot(), 3, Decimal("300")) == Decimal(
            "60"
        )

    def test_not_applied_below_pack_size(self, make_snapshot):
        offer = _offer(type=OfferType.PACK_MIN, value=Decimal("5"), min_quantity=3)
        assert offer_applies(offer, make_snapshot(), 2, Decimal("200")) is False


class TestCategory:
    def test_category_match_is_case_insensitive(self, make_snapshot):
        offer = _offer(type=OfferType.CATEGORY, category="Grocery", value=Decimal("5"))
        product = make_snapshot(category="grocery")

        assert offer_applies(offer, product, 1, Decimal("100")) is True

    def test_subcategory_must_also_match_when_named(self, make_snapshot):
        offer = _offer(
            type=OfferType.CATEGORY,
            category="apparel",
            subcategory="sarees",
            value=Decimal("5"),
        )

        assert offer_applies(
            offer, make_snapshot(category="apparel", subcategory="sarees"), 1, 100
        )
        assert not offer_applies(
            offer, make_snapshot(category="apparel", subcategory="kurtas"), 1, 100
        )

    def test_other_category_gets_nothing(self, make_snapshot):
        offer = _offer(type=OfferType.CATEGORY, category="books", value=Decimal("5"))
        product = make_snapshot(category="toys")

        assert offer_discount(offer, product, 1, Decimal("100")) == 0


class TestSearch:
    def test_term_found_in_brand(self, make_snapshot):
        offer = _offer(type=OfferType.SEARCH, search_term="silk", value=Decimal("15"))
        product = make_snapshot(name="Kanjeevaram Saree", brand="Mysore Silk House")

        assert offer_discount(offer, product, 1, Decimal("1000")) == Decimal("150")

    def test_blank_term_never_matches(self, make_snapshot):
        offer = _offer(type=OfferType.SEARCH, search_term="  ")
        assert offer_applies(offer, make_snapshot(), 1, Decimal("100")) is False


def test_no_offer_means_no_discount(make_snapshot):
    assert offer_discount(None, make_snapshot(), 1, Decimal("100")) == 0


def test_percent_above_hundred_is_rejected():
    with pytest.raises(ValidationError):
        _offer(value=Decimal("120"))
