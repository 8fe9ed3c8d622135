"""Django ORM implementation of the Message repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.utils import timezone

from modules.chat.models import Message
from modules.chat.repositories.interfaces import IMessageRepository

logger = structlog.get_logger(__name__)


class MessageDjangoRepository(IMessageRepository):
    def get_by_id(self, id: Any) -> Optional[Message]:
        try:
            return Message.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None):
        queryset = Message.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("created_at")

    def create(self, data: Dict[str, Any]) -> Message:
        message = Message.objects.create(**data)
        logger.info(
            "chat.message_created",
            message_id=str(message.id),
            order_id=str(message.order_id),
        )
        return message

    def mark_read(self, order_id: Any, receiver_id: Any) -> int:
        return Message.objects.filter(
            order_id=order_id, receiver_id=receiver_id, read=False
        ).update(read=True, updated_at=timezone.now())
