"""Notification bus implementations.

* ``InMemoryNotificationBus``: in-process connection registry with rooms.
  Each connection owns one FIFO queue, so a connection observes the
  notifications of a topic in publish order.
* ``RedisNotificationBus``: publishes JSON onto Redis pub/sub channels for
  the socket gateway that holds the live client connections.

The backend is selected by ``settings.NOTIFICATION_BUS_BACKEND``.
"""

from __future__ import annotations

import json
import queue
import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Set
from uuid import uuid4

import structlog
from django.conf import settings
from django.db import transaction
from django.utils.module_loading import import_string
from redis.exceptions import RedisError
from rest_framework.utils.encoders import JSONEncoder

from shared.domain.bus import IConnection, INotificationBus
from shared.domain.events import Notification

logger = structlog.get_logger(__name__)


class UnknownConnection(KeyError):
    """The connection id is not registered on the bus."""


class InMemoryConnection:
    """Connection backed by a thread-safe FIFO queue."""

    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id
        self._queue: queue.Queue[Notification] = queue.Queue()

    def deliver(self, notification: Notification) -> None:
        self._queue.put(notification)

    def drain(self) -> List[Notification]:
        """Return every queued notification without blocking."""
        drained: List[Notification] = []
        while True:
            try:
                drained.append(self._queue.get_nowait())
            except queue.Empty:
                return drained


class InMemoryNotificationBus(INotificationBus):
    """Process-local bus with broadcast and room-scoped delivery.

    Room membership lives only as long as the connection: a client that
    reconnects must join its rooms again.
    """

    def __init__(self, history_size: int = 500) -> None:
        self._lock = threading.RLock()
        self._connections: Dict[str, IConnection] = {}
        self._rooms: Dict[str, Set[str]] = {}
        self._published: Deque[Notification] = deque(maxlen=history_size)

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def connect(self, connection_id: Optional[str] = None) -> InMemoryConnection:
        connection = InMemoryConnection(connection_id or uuid4().hex)
        self.attach(connection)
        return connection

    def attach(self, connection: IConnection) -> None:
        with self._lock:
            self._connections[connection.connection_id] = connection
        logger.info("bus.connected", connection_id=connection.connection_id)

    def disconnect(self, connection_id: str) -> None:
        with self._lock:
            self._connections.pop(connection_id, None)
            for members in self._rooms.values():
                members.discard(connection_id)
            self._rooms = {room: m for room, m in self._rooms.items() if m}
        logger.info("bus.disconnected", connection_id=connection_id)

    def join_room(self, connection_id: str, room: str) -> None:
        with self._lock:
            if connection_id not in self._connections:
                raise UnknownConnection(connection_id)
            self._rooms.setdefault(room, set()).add(connection_id)
        logger.info("bus.room_joined", connection_id=connection_id, room=room)

    def leave_room(self, connection_id: str, room: str) -> None:
        with self._lock:
            members = self._rooms.get(room)
            if members is None:
                return
            members.discard(connection_id)
            if not members:
                del self._rooms[room]

    def room_members(self, room: str) -> Set[str]:
        with self._lock:
            return set(self._rooms.get(room, set()))

    @property
    def published(self) -> List[Notification]:
        with self._lock:
            return list(self._published)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish(self, topic: str, payload: Any) -> Notification:
        notification = Notification(topic=topic, payload=payload)
        with self._lock:
            targets = list(self._connections.values())
            self._dispatch(notification, targets)
        return notification

    def publish_to_room(self, room: str, topic: str, payload: Any) -> Notification:
        notification = Notification(topic=topic, payload=payload, room=room)
        with self._lock:
            targets = [
                self._connections[cid]
                for cid in self._rooms.get(room, set())
                if cid in self._connections
            ]
            self._dispatch(notification, targets)
        return notification

    def _dispatch(self, notification: Notification, targets: List[IConnection]) -> None:
        # Delivery happens under the bus lock so every connection observes
        # the same publish order.
        self._published.append(notification)
        for connection in targets:
            try:
                connection.deliver(notification)
            except Exception:
                logger.exception(
                    "bus.delivery_failed",
                    connection_id=connection.connection_id,
                    topic=notification.topic,
                )
        logger.info(
            "bus.published",
            topic=notification.topic,
            room=notification.room,
            receivers=len(targets),
        )


class RedisNotificationBus(INotificationBus):
    """Publishes notifications to Redis pub/sub channels.

    Broadcast topics go to ``<prefix>:broadcast``; room-scoped topics go to
    ``<prefix>:room:<room>``.  Delivery is best-effort: a Redis failure is
    logged and never fails the command that produced the notification.
    """

    def __init__(self, connection: Any = None, prefix: Optional[str] = None) -> None:
        self._connection = connection
        self._prefix = prefix or settings.NOTIFICATION_CHANNEL_PREFIX

    @property
    def connection(self) -> Any:
        if self._connection is None:
            from django_redis import get_redis_connection

            self._connection = get_redis_connection("default")
        return self._connection

    @property
    def broadcast_channel(self) -> str:
        return f"{self._prefix}:broadcast"

    def room_channel(self, room: str) -> str:
        return f"{self._prefix}:room:{room}"

    def publish(self, topic: str, payload: Any) -> Notification:
        notification = Notification(topic=topic, payload=payload)
        self._send(self.broadcast_channel, notification)
        return notification

    def publish_to_room(self, room: str, topic: str, payload: Any) -> Notification:
        notification = Notification(topic=topic, payload=payload, room=room)
        self._send(self.room_channel(room), notification)
        return notification

    def _send(self, channel: str, notification: Notification) -> None:
        message = json.dumps(notification.to_message(), cls=JSONEncoder)
        try:
            receivers = self.connection.publish(channel, message)
        except RedisError as exc:
            logger.error(
                "bus.redis_publish_failed",
                channel=channel,
                topic=notification.topic,
                error=str(exc),
            )
            return
        logger.info(
            "bus.published",
            channel=channel,
            topic=notification.topic,
            receivers=receivers,
        )


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_bus: Optional[INotificationBus] = None
_bus_lock = threading.Lock()


def get_notification_bus() -> INotificationBus:
    """Return the process-wide bus built from ``NOTIFICATION_BUS_BACKEND``."""
    global _bus
    if _bus is None:
        with _bus_lock:
            if _bus is None:
                backend = import_string(settings.NOTIFICATION_BUS_BACKEND)
                _bus = backend()
    return _bus


def reset_notification_bus() -> None:
    """Drop the process-wide bus so the next call builds a fresh one."""
    global _bus
    with _bus_lock:
        _bus = None


def publish_on_commit(
    bus: INotificationBus,
    topic: str,
    payload: Any,
    room: Optional[str] = None,
) -> None:
    """Publish once the surrounding database transaction commits.

    Outside an atomic block the notification is published immediately.
    """

    def _publish() -> None:
        if room is None:
            bus.publish(topic, payload)
        else:
            bus.publish_to_room(room, topic, payload)

    transaction.on_commit(_publish, robust=True)
