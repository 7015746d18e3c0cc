"""Integration tests for the public checkout endpoints.

POST /api/v1/checkout/quote/
POST /api/v1/checkout/delivery-eligibility/
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from rest_framework import status

pytestmark = pytest.mark.integration

QUOTE_URL = "/api/v1/checkout/quote/"
ELIGIBILITY_URL = "/api/v1/checkout/delivery-eligibility/"


@pytest.fixture()
def ghee(make_product):
    """First-party, shipped from the KA warehouse."""
    return make_product(
        name="Desi Ghee 1L",
        price=Decimal("500.00"),
        gst_percent=Decimal("5"),
        is_admin_product=True,
    )


@pytest.fixture()
def sandesh(make_product, seller_wb):
    return make_product(
        name="Sandesh Box",
        price=Decimal("200.00"),
        gst_percent=Decimal("12"),
        seller=seller_wb,
    )


class TestQuote:
    def test_first_party_inter_state_quote(self, api_client, ghee):
        response = api_client.post(
            QUOTE_URL,
            {"items": [{"product_id": str(ghee.id), "quantity": 2}], "state": "mh"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["subtotal"] == "1000.00"
        assert data["tax"] == "50.00"
        assert data["tax_breakdown"] == {
            "cgst": "0.00",
            "sgst": "0.00",
            "igst": "50.00",
        }
        # Above the free-delivery threshold.
        assert data["delivery_fee"] == "0.00"
        assert data["total"] == "1050.00"
        assert data["items"][0]["quantity"] == 2

    def test_small_cart_pays_delivery(self, api_client, sandesh):
        response = api_client.post(
            QUOTE_URL,
            {"items": [{"product_id": str(sandesh.id), "quantity": 1}], "state": "WB"},
            format="json",
        )

        data = response.json()
        assert data["tax_breakdown"]["cgst"] == "12.00"
        assert data["tax_breakdown"]["sgst"] == "12.00"
        assert data["delivery_fee"] == "49.00"
        assert data["total"] == "273.00"

    def test_undeliverable_line_is_reported(self, api_client, ghee, sandesh):
        response = api_client.post(
            QUOTE_URL,
            {
                "items": [
                    {"product_id": str(ghee.id), "quantity": 1},
                    {"product_id": str(sandesh.id), "quantity": 1},
                ],
                "state": "MH",
            },
            format="json",
        )

        data = response.json()
        assert [item["product_id"] for item in data["items"]] == [str(ghee.id)]
        assert data["dropped"] == [
            {"product_id": str(sandesh.id), "reason": "not_deliverable"}
        ]

    def test_client_prices_are_ignored(self, api_client, ghee):
        response = api_client.post(
            QUOTE_URL,
            {
                "items": [
                    {"product_id": str(ghee.id), "quantity": 1, "price": "1.00"}
                ],
                "state": "KA",
                "total": "1.00",
            },
            format="json",
        )

        assert response.json()["subtotal"] == "500.00"

    def test_empty_cart(self, api_client):
        response = api_client.post(QUOTE_URL, {"items": []}, format="json")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == "0.00"
        assert data["items"] == []

    def test_zero_quantity_rejected(self, api_client, ghee):
        response = api_client.post(
            QUOTE_URL,
            {"items": [{"product_id": str(ghee.id), "quantity": 0}]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_duplicate_lines_rejected(self, api_client, ghee):
        line = {"product_id": str(ghee.id), "quantity": 1}
        response = api_client.post(
            QUOTE_URL, {"items": [line, line], "state": "KA"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "more than once" in response.json()["detail"]


class TestDeliveryEligibility:
    def test_flags_each_product(self, api_client, ghee, sandesh):
        missing = str(uuid4())

        response = api_client.post(
            ELIGIBILITY_URL,
            {
                "state": " mh ",
                "product_ids": [str(ghee.id), str(sandesh.id), missing],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "state": "MH",
            "results": [
                {"id": str(ghee.id), "deliverable": True},
                {"id": str(sandesh.id), "deliverable": False},
                {"id": missing, "deliverable": False},
            ],
        }

    def test_requires_product_ids(self, api_client):
        response = api_client.post(
            ELIGIBILITY_URL, {"state": "KA", "product_ids": []}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
