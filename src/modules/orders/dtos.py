"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``) and input
DTOs reject unknown fields: prices, fees and totals are never accepted
from the client.

- ``CreateOrderItemDTO``: input for a single order line item.
- ``DeliveryAddressDTO``: address snapshot stored on the order.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``TransitionOrderDTO``: input for a status change request.
- ``OrderItemOutputDTO``: output for a single line item.
- ``StatusHistoryDTO``: output for a status history record.
- ``OrderOutputDTO``: full order, also the ``order_update`` payload.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.accounts.constants import UserRole
from modules.orders.constants import MAX_ITEM_QUANTITY, OrderStatus, PaymentMethod

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    The frontend sends ``product_id`` and ``quantity``.
    ``unit_price`` is resolved by the Service Layer from the product catalog.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_in_range(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        if v > MAX_ITEM_QUANTITY:
            raise ValueError(f"Quantity cannot exceed {MAX_ITEM_QUANTITY}.")
        return v


class DeliveryAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    street: str = Field(min_length=1, max_length=255)
    number: str = Field(min_length=1, max_length=20)
    colony_id: UUID
    reference: str = ""


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - Each item quantity is between 1 and ``MAX_ITEM_QUANTITY``.
    - A product may appear only once per order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    customer_id: UUID
    store_id: UUID
    items: List[CreateOrderItemDTO]
    payment_method: PaymentMethod
    delivery_address: DeliveryAddressDTO

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        """Prevent duplicate product IDs in the same order."""
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


class TransitionOrderDTO(BaseModel):
    """A status change requested by ``actor_id`` acting as ``actor_role``.

    ``driver_id`` is only meaningful for ``READY -> ON_WAY``; when omitted
    the actor claims the order for itself.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    order_id: UUID
    actor_id: UUID
    actor_role: UserRole
    target_status: OrderStatus
    driver_id: Optional[UUID] = None
    notes: str = Field(default="", max_length=500)


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    """Immutable DTO for order item API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    product_snapshot: Dict[str, Any]
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class StatusHistoryDTO(BaseModel):
    """Immutable DTO for order status history API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    old_status: Optional[str]
    new_status: str
    actor_id: Optional[UUID]
    notes: str
    created_at: datetime

    @classmethod
    def from_entity(cls, history: OrderStatusHistory) -> StatusHistoryDTO:
        return cls(
            id=history.id,
            old_status=history.old_status,
            new_status=history.new_status,
            actor_id=history.actor_id,
            notes=history.notes,
            created_at=history.created_at,
        )


class OrderOutputDTO(BaseModel):
    """Immutable DTO for order API responses and notifications."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    customer_id: UUID
    store_id: UUID
    driver_id: Optional[UUID]
    status: str
    payment_method: str
    delivery_address: Dict[str, Any]
    subtotal: Decimal
    delivery_fee: Decimal
    driver_fee: Decimal
    platform_fee: Decimal
    total: Decimal
    distance_km: Optional[float]
    fee_reconciliation_required: bool
    is_reviewed: bool
    store_name: str
    customer_name: str
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOutputDTO]
    history: List[StatusHistoryDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build an output DTO from an Order model instance.

        Assumes ``items`` and ``status_history`` are prefetched.
        """
        items = [
            OrderItemOutputDTO(
                id=item.id,
                product_id=item.product_id,
                product_snapshot=item.product_snapshot,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
            )
            for item in order.items.all()
        ]
        history = [StatusHistoryDTO.from_entity(h) for h in order.status_history.all()]
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            store_id=order.store_id,
            driver_id=order.driver_id,
            status=order.status,
            payment_method=order.payment_method,
            delivery_address=order.delivery_address,
            subtotal=order.subtotal,
            delivery_fee=order.delivery_fee,
            driver_fee=order.driver_fee,
            platform_fee=order.platform_fee,
            total=order.total,
            distance_km=order.distance_km,
            fee_reconciliation_required=order.fee_reconciliation_required,
            is_reviewed=order.is_reviewed,
            store_name=order.store_name,
            customer_name=order.customer_name,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=items,
            history=history,
        )
