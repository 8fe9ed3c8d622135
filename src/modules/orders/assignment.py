"""Driver assignment for READY orders.

A claim is one conditional write:

    UPDATE orders SET status = 'ON_WAY', driver_id = :driver
    WHERE id = :id AND status = 'READY' AND driver_id IS NULL

The database serializes concurrent claims on the row, so exactly one
driver matches; every other claim sees zero rows and gets
``AlreadyClaimed``.  Losers are not retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from django.db import transaction

from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderOutputDTO
from modules.orders.exceptions import AlreadyClaimed, OrderNotFound
from shared.domain.events import Topics
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import INotificationBus

logger = structlog.get_logger(__name__)


class AssignmentArbiter:
    def __init__(self, order_repository: IOrderRepository, bus: INotificationBus) -> None:
        self._order_repo = order_repository
        self._bus = bus

    @transaction.atomic
    def claim(self, order_id: Any, driver_id: Any, notes: str = "") -> Order:
        """Assign ``driver_id`` to a READY, unassigned order.

        Raises:
            OrderNotFound: the order does not exist.
            AlreadyClaimed: the order is not READY or already has a driver.
        """
        log = logger.bind(order_id=str(order_id), driver_id=str(driver_id))

        claimed = self._order_repo.conditional_update(
            order_id,
            expected={"status": OrderStatus.READY, "driver__isnull": True},
            changes={"status": OrderStatus.ON_WAY, "driver_id": driver_id},
        )
        if not claimed:
            if not self._order_repo.exists(order_id):
                raise OrderNotFound(f"Order {order_id} not found.")
            log.info("order.claim_rejected")
            raise AlreadyClaimed(f"Order {order_id} is no longer available.")

        self._order_repo.add_history(
            order_id,
            old_status=OrderStatus.READY,
            new_status=OrderStatus.ON_WAY,
            actor_id=driver_id,
            notes=notes,
        )
        order = self._order_repo.get_by_id(order_id)
        log.info("order.claimed")

        payload = OrderOutputDTO.from_entity(order).model_dump(mode="json")
        publish_on_commit(self._bus, Topics.ORDER_UPDATE, payload)
        return order

    def list_available(self):
        """READY orders without a driver.  Unguarded read: may be stale."""
        return self._order_repo.list_available()
