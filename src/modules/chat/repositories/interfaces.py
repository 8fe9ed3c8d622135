"""Message repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.chat.models import Message


class IMessageRepository(IRepository["Message"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Message:
        """Insert a message."""

    @abstractmethod
    def mark_read(self, order_id: Any, receiver_id: Any) -> int:
        """Flag the receiver's unread messages of an order; returns the count."""
