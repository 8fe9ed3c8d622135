"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Creation is wrapped in ``transaction.atomic()`` so the Order aggregate
(Order + OrderItems) is persisted atomically.

Concurrency control on status changes uses conditional
``UPDATE ... WHERE`` statements: the database applies the guard and the
write in one step, so two writers racing on the same row cannot both
succeed.  Rows are never locked for reading.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        order = Order(**data)
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    position=position,
                    product_id=item["product_id"],
                    product_snapshot=item["product_snapshot"],
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    subtotal=item["quantity"] * item["unit_price"],
                )
                for position, item in enumerate(items)
            ]
        )

        log = logger.bind(order_id=str(order.id), item_count=len(items))
        log.info("order.persisted")
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self):
        return Order.objects.select_related("customer", "store", "driver").prefetch_related(
            "items", "status_history"
        )

    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None):
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def exists(self, id: Any) -> bool:
        try:
            return Order.objects.filter(id=id).exists()
        except (ValueError, ValidationError):
            return False

    def list_available(self):
        return self._base_queryset().filter(
            status=OrderStatus.READY, driver__isnull=True
        ).order_by("created_at")

    def list_flagged_for_reconciliation(self):
        return Order.objects.filter(fee_reconciliation_required=True).order_by(
            "created_at"
        )

    # ------------------------------------------------------------------
    # Conditional writes
    # ------------------------------------------------------------------

    def conditional_update(
        self,
        id: Any,
        expected: Dict[str, Any],
        changes: Dict[str, Any],
    ) -> bool:
        try:
            updated = Order.objects.filter(id=id, **expected).update(
                **changes, updated_at=timezone.now()
            )
        except (ValueError, ValidationError):
            return False

        logger.debug(
            "order.conditional_update",
            order_id=str(id),
            expected=sorted(expected),
            matched=updated,
        )
        return updated == 1

    @transaction.atomic
    def add_history(
        self,
        order_id: Any,
        old_status: Optional[str],
        new_status: str,
        actor_id: Any = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            actor_id=actor_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history
