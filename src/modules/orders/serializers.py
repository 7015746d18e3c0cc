"""Order DRF serializers for API input/output.

Input serializers validate request shape; views convert the validated
data into Pydantic DTOs (``dtos.py``) for the Service Layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import DEFAULT_SHIPPING_COUNTRY
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.pricing.serializers import CartItemSerializer

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ShippingAddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(
        max_length=15, required=False, allow_blank=True, default=""
    )
    address = serializers.CharField()
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(max_length=64)
    pincode = serializers.CharField(max_length=6)
    country = serializers.CharField(
        max_length=64, required=False, default=DEFAULT_SHIPPING_COUNTRY
    )


class PlaceOrderSerializer(serializers.Serializer):
    """Validates the order placement payload.

    Any totals sent by the client are ignored.
    """

    customer_id = serializers.UUIDField()
    items = CartItemSerializer(many=True, allow_empty=False)
    shipping = ShippingAddressSerializer()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CompleteOrderSerializer(serializers.Serializer):
    code = serializers.RegexField(r"^\d{6}$", max_length=6)


class SupportNoteSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=False, trim_whitespace=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Priced line as stored at placement."""

    product_sku = serializers.CharField(source="product.sku", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "quantity",
            "unit_price",
            "discount",
            "subtotal",
            "offer_key",
            "gst_percent",
            "gst_amount",
            "cgst",
            "sgst",
            "igst",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class ShippingOutputSerializer(serializers.Serializer):
    name = serializers.CharField(source="shipping_name")
    phone = serializers.CharField(source="shipping_phone")
    address = serializers.CharField(source="shipping_address")
    city = serializers.CharField(source="shipping_city")
    state = serializers.CharField(source="shipping_state")
    pincode = serializers.CharField(source="shipping_pincode")
    country = serializers.CharField(source="shipping_country")


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items, tax and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    shipping = ShippingOutputSerializer(source="*", read_only=True)
    tax_breakdown = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "shipping",
            "subtotal",
            "discount",
            "tax",
            "tax_breakdown",
            "delivery_fee",
            "total_amount",
            "chargeable_weight_kg",
            "notes",
            "completed_at",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields

    def get_tax_breakdown(self, obj: Order) -> dict:
        return {
            "cgst": str(obj.cgst),
            "sgst": str(obj.sgst),
            "igst": str(obj.igst),
        }


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "shipping_state",
            "total_amount",
            "created_at",
        ]
        read_only_fields = fields
