"""Notification primitives for the real-time fan-out."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4


class Topics:
    """Topic names shared with connected clients."""

    ORDER_UPDATE = "order_update"
    PRODUCT_UPDATE = "product_update"
    PRODUCT_DELETE = "product_delete"
    USER_UPDATE = "user_update"
    USER_DELETE = "user_delete"
    COLONY_UPDATE = "colony_update"
    COLONY_DELETE = "colony_delete"
    SETTINGS_UPDATE = "settings_update"
    NEW_MESSAGE = "new_message"


def order_room(order_id: UUID | str) -> str:
    """Name of the conversation room attached to an order."""
    return f"order_{order_id}"


@dataclass(frozen=True)
class Notification:
    """A single fan-out message (immutable).

    ``room`` is ``None`` for broadcast topics.  ``payload`` is always the
    full current entity (or its id for ``*_delete`` topics), already reduced
    to JSON-compatible primitives.
    """

    topic: str
    payload: Any
    room: Optional[str] = None
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_broadcast(self) -> bool:
        return self.room is None

    def to_message(self) -> dict[str, Any]:
        return {
            "event_id": str(self.event_id),
            "topic": self.topic,
            "room": self.room,
            "occurred_on": self.occurred_on.isoformat(),
            "payload": self.payload,
        }
