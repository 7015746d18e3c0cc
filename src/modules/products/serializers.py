"""Product DRF serializers for API output.

The catalog is read-only over HTTP; products are managed through the
Django admin and the seed command.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.pricing.quantity import max_quantity
from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    seller_id = serializers.UUIDField(read_only=True, allow_null=True)
    seller_state = serializers.CharField(
        source="seller.state", read_only=True, default=None
    )
    max_quantity = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "brand",
            "description",
            "category",
            "subcategory",
            "price",
            "stock_quantity",
            "gst_percent",
            "is_admin_product",
            "seller_id",
            "seller_state",
            "max_quantity",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_max_quantity(self, obj: Product) -> int:
        return max_quantity(obj.price)
