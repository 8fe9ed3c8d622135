"""Order repository interface.

Extends ``IRepository[Order]`` with the operations of the order store:
atomic creation with items, status history tracking and, above all,
conditional (compare-and-set) updates.  There is no ``delete``: orders
are permanent records.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """Create an order with its items atomically.

        ``items`` are dicts with ``product_id``, ``product_snapshot``,
        ``quantity`` and ``unit_price``, kept in the given order.
        """

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Order]":
        """List orders with optional filters."""

    @abstractmethod
    def exists(self, id: Any) -> bool:
        """Whether an order with this id exists."""

    @abstractmethod
    def conditional_update(
        self,
        id: Any,
        expected: Dict[str, Any],
        changes: Dict[str, Any],
    ) -> bool:
        """``UPDATE orders SET <changes> WHERE id = ? AND <expected>``.

        Returns ``True`` when exactly one row matched.  No read-modify-write.
        """

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        old_status: Optional[str],
        new_status: str,
        actor_id: Any = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def list_available(self) -> "models.QuerySet[Order]":
        """READY orders with no driver, oldest first."""

    @abstractmethod
    def list_flagged_for_reconciliation(self) -> "models.QuerySet[Order]":
        """Orders created with a degraded (zero) delivery fee."""
