from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.pricing.dtos import DeliveryFeeConfig, ProductSnapshot
from modules.products.models import Product, ProductStatus
from modules.sellers.models import Seller


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def auth_client(api_client, django_user_model):
    """APIClient authenticated as a staff user."""
    user = django_user_model.objects.create_user(
        username="ops", password="ops-password", is_staff=True
    )
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Pricing builders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_snapshot():
    """Build a ``ProductSnapshot`` with sensible defaults."""

    def _make(id="p1", price="100", stock=10, gst_percent="18", **overrides):
        return ProductSnapshot(
            id=id,
            name=overrides.pop("name", f"Product {id}"),
            price=Decimal(str(price)),
            stock=stock,
            gst_percent=Decimal(str(gst_percent)),
            **overrides,
        )

    return _make


@pytest.fixture()
def flat_fee():
    """Flat 49 delivery fee, no free-delivery threshold."""
    return DeliveryFeeConfig(flat_fee=Decimal("49.00"))


# ---------------------------------------------------------------------------
# Catalog rows
# ---------------------------------------------------------------------------


@pytest.fixture()
def seller_ka():
    """GST-registered seller in Karnataka."""
    return Seller.objects.create(
        name="Bengaluru Handlooms",
        email="handlooms@example.in",
        state="KA",
        gstin="29ABCDE1234F1Z5",
    )


@pytest.fixture()
def seller_wb():
    """Unregistered seller in West Bengal."""
    return Seller.objects.create(
        name="Kolkata Sweets",
        email="sweets@example.in",
        state="WB",
    )


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        defaults = {
            "sku": f"SKU-{counter['n']:04d}",
            "name": f"Test Product {counter['n']}",
            "price": Decimal("100.00"),
            "stock_quantity": 10,
            "gst_percent": Decimal("18"),
            "status": ProductStatus.ACTIVE,
        }
        defaults.update(fields)
        return Product.objects.create(**defaults)

    return _make


@pytest.fixture()
def customer():
    return Customer.objects.create(
        name="Asha Rao",
        email="asha@example.in",
        phone="9876543210",
        is_active=True,
    )


@pytest.fixture()
def inactive_customer():
    return Customer.objects.create(
        name="Dormant Buyer",
        email="dormant@example.in",
        is_active=False,
    )


@pytest.fixture()
def shipping_ka():
    return {
        "name": "Asha Rao",
        "phone": "9876543210",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "state": "KA",
        "pincode": "560001",
        "country": "IN",
    }
