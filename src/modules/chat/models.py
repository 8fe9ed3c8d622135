"""Per-order conversation messages."""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Message(BaseModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="messages",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="messages_sent",
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="messages_received",
    )
    text = models.TextField()
    read = models.BooleanField(default=False)

    class Meta:
        db_table = "chat_messages"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="chat_order_created_idx"),
            models.Index(fields=["receiver", "read"], name="chat_receiver_read_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.sender_id} -> {self.receiver_id} ({self.order_id})"
