"""Chat DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from modules.chat.models import Message


class SendMessageDTO(BaseModel):
    """``receiver_id`` defaults to the sender's natural counterpart."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    order_id: UUID
    sender_id: UUID
    text: str = Field(min_length=1, max_length=2000)
    receiver_id: Optional[UUID] = None


class MessageOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    order_id: UUID
    sender_id: UUID
    receiver_id: UUID
    text: str
    read: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, message: Message) -> MessageOutputDTO:
        return cls(
            id=message.id,
            order_id=message.order_id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            text=message.text,
            read=message.read,
            created_at=message.created_at,
        )
