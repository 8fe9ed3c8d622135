"""Order, OrderItem, and OrderStatusHistory models.

Rules implemented at the model level:
- ``order_number`` is a human-readable identifier generated once on first
  save (``ORD-YYYYMMDD-XXXXXX``); the UUIDv7 ``id`` is used everywhere else.
- Customer and store FKs use PROTECT: orders are permanent billing records.
- ``driver`` is a weak reference (no DB constraint): it is only ever set by
  the claim conditional write and never changes afterwards.
- Money columns are computed server-side at creation and never recomputed;
  ``total = subtotal + delivery_fee`` is also enforced by a check constraint.
- Items carry an immutable JSON snapshot of the product at purchase time.
- Status changes are written with conditional ``UPDATE`` statements in the
  repository, never through ``save()``.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    OrderStatus,
    PaymentMethod,
)

ZERO = Decimal("0.00")

UNASSIGNED_STATES = [
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.REJECTED,
]
ASSIGNED_STATES = [OrderStatus.ON_WAY, OrderStatus.DELIVERED]


def _money(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(max_digits=10, decimal_places=2, default=ZERO, **kwargs)


class Order(BaseModel):
    """Order aggregate root."""

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    store = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="store_orders",
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="deliveries",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices)
    delivery_address = models.JSONField()

    subtotal = _money()
    delivery_fee = _money()
    driver_fee = _money()
    platform_fee = _money()
    total = _money()
    distance_km = models.FloatField(null=True, blank=True)
    fee_reconciliation_required = models.BooleanField(default=False)

    is_reviewed = models.BooleanField(default=False)

    store_name = models.CharField(max_length=150, blank=True, default="")
    customer_name = models.CharField(max_length=300, blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "driver"], name="orders_status_driver_idx"),
            models.Index(fields=["customer", "-created_at"], name="orders_customer_idx"),
            models.Index(fields=["store", "-created_at"], name="orders_store_idx"),
            models.Index(
                fields=["fee_reconciliation_required"],
                name="orders_fee_reconcile_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(total=models.F("subtotal") + models.F("delivery_fee")),
                name="orders_total_consistent",
            ),
            models.CheckConstraint(
                check=(
                    models.Q(status__in=UNASSIGNED_STATES, driver__isnull=True)
                    | models.Q(status__in=ASSIGNED_STATES, driver__isnull=False)
                ),
                name="orders_driver_matches_status",
            ),
            models.CheckConstraint(
                check=models.Q(is_reviewed=False)
                | models.Q(status=OrderStatus.DELIVERED),
                name="orders_reviewed_only_delivered",
            ),
        ]

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item with the product snapshot taken at purchase time.

    ``unit_price`` comes from the catalog, never from the client;
    ``subtotal`` is always ``quantity * unit_price`` (calculated on save).
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    position = models.PositiveSmallIntegerField(default=0)
    product_snapshot = models.JSONField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_snapshot.get('name', self.product_id)} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    Inherits ``BaseModel`` (not soft-deletable): audit rows are never edited.
    ``actor`` is ``None`` for system-initiated changes.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"
