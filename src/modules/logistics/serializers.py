"""Logistics DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.core.serializers import StrictFieldsMixin
from modules.logistics.models import Colony, SystemSettings


class ColonyInputSerializer(StrictFieldsMixin, serializers.Serializer):
    name = serializers.CharField(max_length=120)
    lat = serializers.FloatField(min_value=-90, max_value=90, required=False, default=0)
    lng = serializers.FloatField(
        min_value=-180, max_value=180, required=False, default=0
    )


class ColonySerializer(serializers.ModelSerializer):
    class Meta:
        model = Colony
        fields = ["id", "name", "lat", "lng"]
        read_only_fields = fields


class UpdateSettingsSerializer(StrictFieldsMixin, serializers.Serializer):
    base_fee = serializers.IntegerField(min_value=0, required=False)
    km_rate = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=0, required=False
    )


class SettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = SystemSettings
        fields = ["base_fee", "km_rate", "updated_at"]
        read_only_fields = fields


class QuoteQuerySerializer(serializers.Serializer):
    origin = serializers.UUIDField()
    destination = serializers.UUIDField()


class FeeQuoteSerializer(serializers.Serializer):
    distance_km = serializers.FloatField(allow_null=True)
    driver_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    delivery_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    platform_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    reconciliation_required = serializers.BooleanField()
