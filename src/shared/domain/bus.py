"""Notification bus interfaces for the real-time fan-out."""

from __future__ import annotations

from typing import Any, Protocol

from shared.domain.events import Notification


class IConnection(Protocol):
    """A live client connection with a single ordered delivery channel."""

    connection_id: str

    def deliver(self, notification: Notification) -> None: ...


class INotificationBus(Protocol):
    """Publish/subscribe channel injected into services.

    ``publish`` reaches every connected client; ``publish_to_room`` reaches
    only the connections that explicitly joined ``room``.
    """

    def publish(self, topic: str, payload: Any) -> Notification: ...

    def publish_to_room(self, room: str, topic: str, payload: Any) -> Notification: ...
