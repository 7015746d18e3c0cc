from __future__ import annotations

import pytest

from modules.pricing.eligibility import (
    check_eligibility,
    eligibility_for_ids,
    is_deliverable,
)

pytestmark = pytest.mark.unit


class TestIsDeliverable:
    def test_first_party_ships_anywhere(self, make_snapshot):
        product = make_snapshot(is_admin_product=True)
        assert is_deliverable("MH", product) is True
        assert is_deliverable("", product) is True

    def test_gst_registered_seller_ships_anywhere(self, make_snapshot):
        product = make_snapshot(seller_has_gst=True, seller_state="KA")
        assert is_deliverable("WB", product) is True

    def test_unregistered_seller_ships_within_state(self, make_snapshot):
        product = make_snapshot(seller_has_gst=False, seller_state="WB")
        assert is_deliverable("WB", product) is True
        assert is_deliverable("MH", product) is False

    def test_unknown_registration_behaves_like_unregistered(self, make_snapshot):
        product = make_snapshot(seller_has_gst=None, seller_state="TN")
        assert is_deliverable("TN", product) is True
        assert is_deliverable("KA", product) is False

    def test_empty_destination_never_matches(self, make_snapshot):
        product = make_snapshot(seller_has_gst=False, seller_state="")
        assert is_deliverable("", product) is False

    def test_unknown_seller_state_never_matches(self, make_snapshot):
        product = make_snapshot(seller_has_gst=False, seller_state=None)
        assert is_deliverable("KA", product) is False


class TestCheckEligibility:
    def test_one_flag_per_product(self, make_snapshot):
        products = [
            make_snapshot(id="a", is_admin_product=True),
            make_snapshot(id="b", seller_has_gst=False, seller_state="WB"),
        ]

        result = check_eligibility("KA", products)

        assert result == {"a": True, "b": False}

    def test_requested_ids_missing_from_catalog_are_not_deliverable(
        self, make_snapshot
    ):
        products = [make_snapshot(id="a", is_admin_product=True)]

        result = eligibility_for_ids("KA", ["a", "missing"], products)

        assert result == {"a": True, "missing": False}
