"""Review DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.core.serializers import StrictFieldsMixin
from modules.reviews.models import Review


class SubmitReviewSerializer(StrictFieldsMixin, serializers.Serializer):
    order_id = serializers.UUIDField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=1000
    )


class ReviewSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.display_name", read_only=True)

    class Meta:
        model = Review
        fields = [
            "id",
            "order_id",
            "store_id",
            "customer_id",
            "customer_name",
            "rating",
            "comment",
            "created_at",
        ]
        read_only_fields = fields


class ReviewQuerySerializer(serializers.Serializer):
    store = serializers.UUIDField()
