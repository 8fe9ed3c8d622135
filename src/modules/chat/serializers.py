"""Chat DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.chat.models import Message
from modules.core.serializers import StrictFieldsMixin


class SendMessageSerializer(StrictFieldsMixin, serializers.Serializer):
    text = serializers.CharField(max_length=2000)
    receiver_id = serializers.UUIDField(required=False)


class MessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = [
            "id",
            "order_id",
            "sender_id",
            "receiver_id",
            "text",
            "read",
            "created_at",
        ]
        read_only_fields = fields
