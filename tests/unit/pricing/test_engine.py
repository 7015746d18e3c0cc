"""Unit tests for the pure pricing engine.

Covers:
- Checkout scenarios: first-party inter-state cart, unregistered seller
  within its state, undeliverable line, price-tier clamp, empty cart.
- Summary arithmetic: total = subtotal + tax + fee, tax = CGST+SGST+IGST.
- Rounding of odd GST amounts across the CGST/SGST split.
- Stock capping, missing products, offers, delivery fee modes.
- Fail-fast validation of lines, snapshots and configuration.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.pricing.constants import DeliveryFeeMode, OfferType, OfferValueKind
from modules.pricing.dtos import AppliedOffer, CartLine, DeliveryFeeConfig
from modules.pricing.engine import chargeable_weight, is_intra_state, price_cart
from modules.pricing.exceptions import (
    ConfigurationMissing,
    InvalidCartLine,
    InvalidProductData,
)

pytestmark = pytest.mark.unit


def _line(product_id="p1", quantity=1, offer=None):
    return CartLine(product_id=product_id, quantity=quantity, applied_offer=offer)


def _assert_balanced(summary):
    breakdown = summary.tax_breakdown
    assert summary.total == summary.subtotal + summary.tax + summary.delivery_fee
    assert summary.tax == breakdown.cgst + breakdown.sgst + breakdown.igst
    for item in summary.items:
        assert item.gst_amount == item.cgst + item.sgst + item.igst


# ---------------------------------------------------------------------------
# Checkout scenarios
# ---------------------------------------------------------------------------


class TestCheckoutScenarios:
    def test_first_party_product_to_another_state_is_igst(
        self, make_snapshot, flat_fee
    ):
        product = make_snapshot(
            price="500", gst_percent="5", is_admin_product=True, seller_state="KA"
        )

        summary = price_cart([_line(quantity=2)], [product], "MH", "IN", flat_fee)

        assert summary.subtotal == Decimal("1000.00")
        assert summary.tax == Decimal("50.00")
        assert summary.tax_breakdown.igst == Decimal("50.00")
        assert summary.tax_breakdown.cgst == Decimal("0.00")
        assert summary.tax_breakdown.sgst == Decimal("0.00")
        assert summary.delivery_fee == Decimal("49.00")
        assert summary.total == Decimal("1099.00")
        _assert_balanced(summary)

    def test_unregistered_seller_within_state_splits_cgst_sgst(
        self, make_snapshot, flat_fee
    ):
        product = make_snapshot(
            price="200",
            gst_percent="12",
            seller_id="s-wb",
            seller_has_gst=False,
            seller_state="WB",
        )

        summary = price_cart([_line()], [product], "WB", "IN", flat_fee)

        item = summary.items[0]
        assert item.gst_amount == Decimal("24.00")
        assert item.cgst == Decimal("12.00")
        assert item.sgst == Decimal("12.00")
        assert item.igst == Decimal("0.00")
        assert summary.tax_breakdown.cgst == Decimal("12.00")
        assert summary.tax_breakdown.sgst == Decimal("12.00")
        _assert_balanced(summary)

    def test_unregistered_seller_out_of_state_is_dropped(
        self, make_snapshot, flat_fee
    ):
        product = make_snapshot(
            seller_id="s-wb", seller_has_gst=False, seller_state="WB"
        )

        summary = price_cart([_line()], [product], "MH", "IN", flat_fee)

        assert summary.items == []
        assert [(d.product_id, d.reason) for d in summary.dropped] == [
            ("p1", "not_deliverable")
        ]
        assert summary.total == Decimal("0.00")
        assert summary.delivery_fee == Decimal("0.00")

    def test_expensive_product_is_clamped_to_one_unit(self, make_snapshot, flat_fee):
        product = make_snapshot(price="2500", is_admin_product=True)

        summary = price_cart([_line(quantity=5)], [product], "KA", "IN", flat_fee)

        item = summary.items[0]
        assert item.requested_quantity == 5
        assert item.quantity == 1
        assert item.line_subtotal == Decimal("2500.00")

    def test_empty_cart_is_all_zero(self, flat_fee):
        summary = price_cart([], [], "KA", "IN", flat_fee)

        assert summary.is_empty
        assert summary.subtotal == Decimal("0.00")
        assert summary.tax == Decimal("0.00")
        assert summary.delivery_fee == Decimal("0.00")
        assert summary.total == Decimal("0.00")
        assert summary.dropped == []


# ---------------------------------------------------------------------------
# Arithmetic and rounding
# ---------------------------------------------------------------------------


class TestArithmetic:
    def test_odd_gst_amount_splits_without_losing_a_paisa(
        self, make_snapshot, flat_fee
    ):
        product = make_snapshot(
            price="100.10", gst_percent="5", seller_has_gst=True, seller_state="KA"
        )

        summary = price_cart([_line()], [product], "KA", "IN", flat_fee)

        item = summary.items[0]
        assert item.gst_amount == Decimal("5.01")
        assert item.cgst == Decimal("2.50")
        assert item.sgst == Decimal("2.51")
        assert summary.tax_breakdown.cgst + summary.tax_breakdown.sgst == Decimal(
            "5.01"
        )
        _assert_balanced(summary)

    def test_mixed_cart_balances(self, make_snapshot, flat_fee):
        products = [
            make_snapshot(
                id="a", price="333.33", gst_percent="18", seller_has_gst=True,
                seller_state="KA",
            ),
            make_snapshot(
                id="b", price="149.99", gst_percent="12", is_admin_product=True,
                seller_state="TN",
            ),
            make_snapshot(id="c", price="999.99", gst_percent="5", seller_state="KA"),
        ]
        lines = [_line("a", 3), _line("b", 2), _line("c", 1)]

        summary = price_cart(lines, products, "KA", "IN", flat_fee)

        assert len(summary.items) == 3
        assert summary.tax_breakdown.igst > 0
        assert summary.tax_breakdown.cgst > 0
        _assert_balanced(summary)

    def test_pricing_is_deterministic(self, make_snapshot, flat_fee):
        products = [make_snapshot(price="123.45", seller_state="KA")]
        lines = [_line(quantity=2)]

        first = price_cart(lines, products, "KA", "IN", flat_fee)
        second = price_cart(lines, products, "KA", "IN", flat_fee)

        assert first == second

    def test_export_destination_is_never_intra_state(self, make_snapshot, flat_fee):
        product = make_snapshot(is_admin_product=True, seller_state="KA")

        summary = price_cart([_line()], [product], "KA", "US", flat_fee)

        assert summary.tax_breakdown.cgst == Decimal("0.00")
        assert summary.tax_breakdown.igst == summary.tax

    def test_unknown_origin_state_falls_back_to_igst(self, make_snapshot):
        product = make_snapshot(is_admin_product=True, seller_state=None)

        assert is_intra_state("KA", "IN", product) is False


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


class TestNormalisation:
    def test_quantity_is_capped_at_stock(self, make_snapshot, flat_fee):
        product = make_snapshot(stock=2, is_admin_product=True)

        summary = price_cart([_line(quantity=3)], [product], "KA", "IN", flat_fee)

        assert summary.items[0].quantity == 2
        assert summary.items[0].stock == 2

    def test_out_of_stock_line_is_dropped(self, make_snapshot, flat_fee):
        products = [
            make_snapshot(id="gone", stock=0, is_admin_product=True),
            make_snapshot(id="kept", is_admin_product=True),
        ]

        summary = price_cart(
            [_line("gone"), _line("kept")], products, "KA", "IN", flat_fee
        )

        assert [item.product_id for item in summary.items] == ["kept"]
        assert summary.dropped[0].reason == "out_of_stock"

    def test_missing_product_is_dropped(self, make_snapshot, flat_fee):
        summary = price_cart(
            [_line("ghost"), _line("p1")],
            [make_snapshot(is_admin_product=True)],
            "KA",
            "IN",
            flat_fee,
        )

        assert [(d.product_id, d.reason) for d in summary.dropped] == [
            ("ghost", "product_not_found")
        ]
        assert len(summary.items) == 1

    def test_dropped_lines_do_not_count_towards_totals(
        self, make_snapshot, flat_fee
    ):
        products = [
            make_snapshot(id="ok", price="100", is_admin_product=True),
            make_snapshot(
                id="far", price="900", seller_has_gst=False, seller_state="WB"
            ),
        ]

        summary = price_cart(
            [_line("ok"), _line("far")], products, "KA", "IN", flat_fee
        )

        assert summary.subtotal == Decimal("100.00")


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------


class TestOffers:
    def test_discount_reduces_taxable_amount(self, make_snapshot, flat_fee):
        offer = AppliedOffer(
            key="festive-10",
            name="Festive 10%",
            type=OfferType.DISCOUNT_MIN,
            value=Decimal("10"),
            min_amount=Decimal("500"),
        )
        product = make_snapshot(price="300", gst_percent="18", is_admin_product=True)

        summary = price_cart(
            [_line(quantity=2, offer=offer)], [product], "KA", "IN", flat_fee
        )

        item = summary.items[0]
        assert item.line_subtotal == Decimal("600.00")
        assert item.discount == Decimal("60.00")
        assert item.adjusted_subtotal == Decimal("540.00")
        assert item.gst_amount == Decimal("97.20")
        assert item.offer_key == "festive-10"
        assert summary.discount == Decimal("60.00")
        assert summary.subtotal == Decimal("540.00")

    def test_offer_below_minimum_is_not_applied(self, make_snapshot, flat_fee):
        offer = AppliedOffer(
            key="festive-10",
            name="Festive 10%",
            type=OfferType.DISCOUNT_MIN,
            value=Decimal("10"),
            min_amount=Decimal("500"),
        )
        product = make_snapshot(price="300", is_admin_product=True)

        summary = price_cart(
            [_line(quantity=1, offer=offer)], [product], "KA", "IN", flat_fee
        )

        assert summary.items[0].discount == Decimal("0.00")
        assert summary.items[0].offer_key is None

    def test_flat_offer_never_exceeds_line(self, make_snapshot, flat_fee):
        offer = AppliedOffer(
            key="big-flat",
            name="Flat 1000 off",
            type=OfferType.SEARCH,
            search_term="product",
            value=Decimal("1000"),
            value_kind=OfferValueKind.FLAT,
        )
        product = make_snapshot(price="250", is_admin_product=True)

        summary = price_cart([_line(offer=offer)], [product], "KA", "IN", flat_fee)

        assert summary.items[0].adjusted_subtotal == Decimal("0.00")
        assert summary.tax == Decimal("0.00")


# ---------------------------------------------------------------------------
# Delivery fee
# ---------------------------------------------------------------------------


class TestDeliveryFee:
    def test_free_delivery_threshold(self, make_snapshot):
        config = DeliveryFeeConfig(
            flat_fee=Decimal("49"), free_delivery_threshold=Decimal("499")
        )
        product = make_snapshot(price="250", is_admin_product=True)

        summary = price_cart([_line(quantity=2)], [product], "KA", "IN", config)

        assert summary.delivery_fee == Decimal("0.00")
        assert summary.total == summary.subtotal + summary.tax

    def test_below_threshold_pays_fee(self, make_snapshot):
        config = DeliveryFeeConfig(
            flat_fee=Decimal("49"), free_delivery_threshold=Decimal("499")
        )
        product = make_snapshot(price="100", is_admin_product=True)

        summary = price_cart([_line()], [product], "KA", "IN", config)

        assert summary.delivery_fee == Decimal("49.00")

    def test_per_seller_fee_counts_shipments(self, make_snapshot):
        config = DeliveryFeeConfig(
            flat_fee=Decimal("40"), mode=DeliveryFeeMode.PER_SELLER
        )
        products = [
            make_snapshot(id="a", seller_id="s1", seller_has_gst=True),
            make_snapshot(id="b", seller_id="s1", seller_has_gst=True),
            make_snapshot(id="c", seller_id="s2", seller_has_gst=True),
            make_snapshot(id="d", is_admin_product=True),
        ]
        lines = [_line("a"), _line("b"), _line("c"), _line("d")]

        summary = price_cart(lines, products, "KA", "IN", config)

        assert summary.delivery_fee == Decimal("120.00")


class TestDroppedLineEffectOnTotals:
    """A cart priced where its WB-only line ships versus where it is dropped."""

    @pytest.fixture()
    def cart(self, make_snapshot):
        products = [
            make_snapshot(id="atta", price="480", gst_percent="0", is_admin_product=True),
            make_snapshot(
                id="mishti",
                price="20",
                gst_percent="0",
                seller_id="s-wb",
                seller_has_gst=False,
                seller_state="WB",
            ),
        ]
        return [_line("atta"), _line("mishti")], products

    @pytest.mark.parametrize(
        "config",
        [
            DeliveryFeeConfig(flat_fee=Decimal("49")),
            DeliveryFeeConfig(flat_fee=Decimal("49"), mode=DeliveryFeeMode.PER_SELLER),
        ],
        ids=["flat", "per_seller"],
    )
    def test_dropping_never_raises_totals_without_threshold(self, cart, config):
        lines, products = cart

        dropped = price_cart(lines, products, "MH", "IN", config)
        included = price_cart(lines, products, "WB", "IN", config)

        assert [d.product_id for d in dropped.dropped] == ["mishti"]
        assert dropped.subtotal <= included.subtotal
        assert dropped.tax <= included.tax
        assert dropped.total <= included.total

    def test_threshold_can_charge_fee_once_line_is_dropped(self, cart):
        lines, products = cart
        config = DeliveryFeeConfig(
            flat_fee=Decimal("49"), free_delivery_threshold=Decimal("499")
        )

        dropped = price_cart(lines, products, "MH", "IN", config)
        included = price_cart(lines, products, "WB", "IN", config)

        assert included.delivery_fee == Decimal("0.00")
        assert included.total == Decimal("500.00")
        assert dropped.delivery_fee == Decimal("49.00")
        assert dropped.total == Decimal("529.00")
        assert dropped.subtotal < included.subtotal


# ---------------------------------------------------------------------------
# Chargeable weight
# ---------------------------------------------------------------------------


class TestChargeableWeight:
    def test_volumetric_weight_wins_when_heavier(self, make_snapshot, flat_fee):
        product = make_snapshot(
            is_admin_product=True,
            weight_kg=Decimal("1"),
            height_cm=Decimal("30"),
            width_cm=Decimal("20"),
        )

        summary = price_cart([_line(quantity=2)], [product], "KA", "IN", flat_fee)

        assert summary.chargeable_weight_kg == Decimal("2.400")

    def test_empty_cart_weighs_nothing(self):
        assert chargeable_weight([]) == Decimal("0.000")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_missing_fee_config_raises(self, make_snapshot):
        with pytest.raises(ConfigurationMissing):
            price_cart([_line()], [make_snapshot()], "KA", "IN", None)

    def test_zero_quantity_raises(self, make_snapshot, flat_fee):
        with pytest.raises(InvalidCartLine):
            price_cart([_line(quantity=0)], [make_snapshot()], "KA", "IN", flat_fee)

    def test_empty_product_reference_raises(self, make_snapshot, flat_fee):
        with pytest.raises(InvalidCartLine):
            price_cart([_line(product_id="")], [make_snapshot()], "KA", "IN", flat_fee)

    def test_duplicate_product_raises(self, make_snapshot, flat_fee):
        with pytest.raises(InvalidCartLine):
            price_cart(
                [_line(), _line()], [make_snapshot()], "KA", "IN", flat_fee
            )

    def test_negative_price_raises(self, make_snapshot, flat_fee):
        with pytest.raises(InvalidProductData):
            price_cart(
                [_line()], [make_snapshot(price="-1")], "KA", "IN", flat_fee
            )

    def test_negative_stock_raises(self, make_snapshot, flat_fee):
        with pytest.raises(InvalidProductData):
            price_cart([_line()], [make_snapshot(stock=-1)], "KA", "IN", flat_fee)

    def test_gst_above_hundred_raises(self, make_snapshot, flat_fee):
        with pytest.raises(InvalidProductData):
            price_cart(
                [_line()], [make_snapshot(gst_percent="150")], "KA", "IN", flat_fee
            )
