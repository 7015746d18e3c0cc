"""Offer DRF serializers (read-only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.offers.models import Offer


class OfferSerializer(serializers.ModelSerializer):
    class Meta:
        model = Offer
        fields = [
            "key",
            "name",
            "type",
            "value",
            "value_kind",
            "min_quantity",
            "min_amount",
            "category",
            "subcategory",
            "search_term",
            "expires_at",
        ]
        read_only_fields = fields
