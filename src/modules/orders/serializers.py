"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.  Input serializers reject unknown keys,
so amounts (prices, fees, totals) cannot be smuggled in.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.core.serializers import StrictFieldsMixin
from modules.orders.constants import MAX_ITEM_QUANTITY, OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(StrictFieldsMixin, serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_ITEM_QUANTITY)


class DeliveryAddressSerializer(StrictFieldsMixin, serializers.Serializer):
    street = serializers.CharField(max_length=255)
    number = serializers.CharField(max_length=20)
    colony_id = serializers.UUIDField()
    reference = serializers.CharField(required=False, allow_blank=True, default="")


class CreateOrderSerializer(StrictFieldsMixin, serializers.Serializer):
    """Validates the order creation request payload."""

    store_id = serializers.UUIDField()
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    delivery_address = DeliveryAddressSerializer()


class TransitionOrderSerializer(StrictFieldsMixin, serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    driver_id = serializers.UUIDField(required=False)
    notes = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=500
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product snapshot."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_snapshot",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "actor_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "store_id",
            "driver_id",
            "status",
            "payment_method",
            "delivery_address",
            "subtotal",
            "delivery_fee",
            "driver_fee",
            "platform_fee",
            "total",
            "distance_km",
            "fee_reconciliation_required",
            "is_reviewed",
            "store_name",
            "customer_name",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "store_id",
            "driver_id",
            "status",
            "total",
            "delivery_fee",
            "driver_fee",
            "store_name",
            "customer_name",
            "is_reviewed",
            "created_at",
        ]
        read_only_fields = fields
