"""Product DRF serializers."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.core.serializers import StrictFieldsMixin
from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for products."""

    class Meta:
        model = Product
        fields = [
            "id",
            "store_id",
            "name",
            "description",
            "price",
            "category",
            "image",
            "is_visible",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreateProductSerializer(StrictFieldsMixin, serializers.Serializer):
    name = serializers.CharField(max_length=255)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01")
    )
    category = serializers.CharField(max_length=80)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    image = serializers.URLField(required=False, allow_blank=True, default="")
    is_visible = serializers.BooleanField(required=False, default=True)
    store_id = serializers.UUIDField(required=False)


class UpdateProductSerializer(StrictFieldsMixin, serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01"), required=False
    )
    category = serializers.CharField(max_length=80, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    image = serializers.URLField(required=False, allow_blank=True)
    is_visible = serializers.BooleanField(required=False)
