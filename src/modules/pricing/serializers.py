"""Checkout DRF serializers.

Validate request shape only; the views convert validated data into
pydantic DTOs for the service layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.pricing.constants import DEFAULT_COUNTRY


class CartItemSerializer(serializers.Serializer):
    product_id = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)
    offer_key = serializers.CharField(
        max_length=80, required=False, allow_blank=True, allow_null=True
    )


class QuoteRequestSerializer(serializers.Serializer):
    """Validates the dry-run pricing payload."""

    items = CartItemSerializer(many=True, allow_empty=True)
    state = serializers.CharField(
        max_length=64, required=False, allow_blank=True, default=""
    )
    country = serializers.CharField(
        max_length=64, required=False, allow_blank=True, default=DEFAULT_COUNTRY
    )


class DeliveryEligibilitySerializer(serializers.Serializer):
    state = serializers.CharField(
        max_length=64, required=False, allow_blank=True, default=""
    )
    product_ids = serializers.ListField(
        child=serializers.CharField(max_length=64), allow_empty=False
    )
