"""Order service layer (Use Cases).

Orchestrates order creation and the order state machine.  All write
operations are atomic: the service defines the unit-of-work boundary and
notifications are published only after the transaction commits.

Business rules enforced:
- Only approved, open stores accept orders.
- Prices come from the catalog; client-supplied amounts are never read.
- Delivery fees are quoted from colony centroids and the tariff in force;
  unresolvable reference data yields a zero fee flagged for reconciliation.
- Status transitions follow ``TRANSITION_RULES`` (role + ownership) and
  are applied with conditional writes.
- History is recorded on every status change.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List

import structlog
from django.db import transaction
from django.db.models import Q

from modules.accounts.constants import UserRole
from modules.logistics.exceptions import ReferenceDataMissing
from modules.logistics.fees import FeeQuote, quote_delivery
from modules.orders.constants import TRANSITION_RULES, OrderStatus
from modules.orders.dtos import OrderOutputDTO
from modules.orders.exceptions import (
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    ProductUnavailable,
    StaleWrite,
    StoreClosed,
    StoreNotFound,
    Unauthorized,
)
from shared.domain.events import Topics
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.accounts.models import User
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.logistics.fees import GeoPoint, Tariff
    from modules.logistics.repositories.interfaces import (
        IColonyRepository,
        ISystemSettingsRepository,
    )
    from modules.orders.assignment import AssignmentArbiter
    from modules.orders.dtos import CreateOrderDTO, TransitionOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import INotificationBus

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories, the assignment arbiter and the notification bus
    via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        user_repository: IUserRepository,
        product_repository: IProductRepository,
        colony_repository: IColonyRepository,
        settings_repository: ISystemSettingsRepository,
        arbiter: AssignmentArbiter,
        bus: INotificationBus,
    ) -> None:
        self._order_repo = order_repository
        self._user_repo = user_repository
        self._product_repo = product_repository
        self._colony_repo = colony_repository
        self._settings_repo = settings_repository
        self._arbiter = arbiter
        self._bus = bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Validate an order intent, price it and persist it as PENDING.

        Steps:
        1. Validate the customer and the store (approved and open).
        2. Resolve every item against the store's live catalog and
           snapshot the current price.  Unknown products are skipped and
           the order is flagged with zero fees.
        3. Quote the delivery fee between the store's colony and the
           delivery colony with the tariff in force.
        4. Persist order + items, record ``None -> PENDING``.
        5. Publish ``order_update`` after commit.

        Raises:
            Unauthorized: the caller is not an active customer.
            StoreNotFound: the store does not exist.
            StoreClosed: the store is not approved or not open.
            ProductNotFound: a product belongs to another store, or no
                requested product exists at all.
            ProductUnavailable: a product is hidden by the store.
        """
        log = logger.bind(customer_id=str(dto.customer_id), store_id=str(dto.store_id))
        log.info("order.creation_started")

        # 1. Validate customer and store
        customer = self._user_repo.get_by_id(dto.customer_id)
        if customer is None or customer.role != UserRole.CLIENT:
            raise Unauthorized("Only customers can place orders.")

        store = self._user_repo.get_store(dto.store_id)
        if store is None:
            raise StoreNotFound(f"Store {dto.store_id} not found.")
        if not store.approved or not store.store_profile.is_open:
            log.info("order.store_closed")
            raise StoreClosed(f"Store {dto.store_id} is not accepting orders.")

        # 2. Resolve items against the catalog
        products = self._product_repo.get_many(item.product_id for item in dto.items)
        repo_items = []
        unresolved = []
        subtotal = Decimal("0.00")
        for item_dto in dto.items:
            product = products.get(str(item_dto.product_id))
            if product is None:
                unresolved.append(str(item_dto.product_id))
                continue
            if str(product.store_id) != str(store.id):
                raise ProductNotFound(f"Product {item_dto.product_id} not found.")
            if not product.is_visible:
                raise ProductUnavailable(f"Product {item_dto.product_id} is unavailable.")

            repo_items.append(
                {
                    "product_id": product.id,
                    "product_snapshot": product.snapshot(),
                    "quantity": item_dto.quantity,
                    "unit_price": product.price,
                }
            )
            subtotal += product.price * item_dto.quantity

        if not repo_items:
            raise ProductNotFound("None of the requested products exist.")

        # 3. Quote the delivery
        quote = self._quote_delivery(store, dto.delivery_address.colony_id, unresolved)

        # 4. Persist
        order = self._order_repo.create(
            {
                "customer_id": customer.id,
                "store_id": store.id,
                "status": OrderStatus.PENDING,
                "payment_method": dto.payment_method,
                "delivery_address": dto.delivery_address.model_dump(mode="json"),
                "subtotal": subtotal,
                "driver_fee": quote.driver_fee,
                "delivery_fee": quote.delivery_fee,
                "platform_fee": quote.platform_fee,
                "total": subtotal + quote.delivery_fee,
                "distance_km": quote.distance_km,
                "fee_reconciliation_required": quote.reconciliation_required,
                "store_name": store.display_name,
                "customer_name": customer.display_name,
            },
            repo_items,
        )
        self._order_repo.add_history(
            order.id,
            old_status=None,
            new_status=OrderStatus.PENDING,
            actor_id=customer.id,
            notes="Order created",
        )

        order = self._order_repo.get_by_id(order.id)
        log.info(
            "order.created",
            order_id=str(order.id),
            total=str(order.total),
            fee_reconciliation_required=order.fee_reconciliation_required,
        )
        self._publish(order)
        return order

    @transaction.atomic
    def transition_order(self, dto: TransitionOrderDTO) -> Order:
        """Move an order to ``dto.target_status`` on behalf of an actor.

        Raises:
            OrderNotFound: order does not exist.
            InvalidTransition: the pair is not legal for the actor's role.
            Unauthorized: the actor does not own the order in that role.
            StaleWrite: the order changed between the read and the write.
            AlreadyClaimed: another driver claimed the order first.
        """
        order = self._order_repo.get_by_id(dto.order_id)
        if order is None:
            raise OrderNotFound(f"Order {dto.order_id} not found.")

        current = order.status
        target = dto.target_status
        log = logger.bind(
            order_id=str(order.id),
            actor_id=str(dto.actor_id),
            actor_role=dto.actor_role,
            current_status=current,
            new_status=target,
        )

        allowed_roles = TRANSITION_RULES.get((current, target), frozenset())
        if dto.actor_role not in allowed_roles:
            log.warning("order.invalid_transition")
            raise InvalidTransition(f"Cannot transition from {current} to {target}.")

        self._check_ownership(order, dto)

        if target == OrderStatus.ON_WAY:
            driver_id = dto.driver_id or dto.actor_id
            if str(driver_id) != str(dto.actor_id):
                log.warning("order.claim_for_other_driver")
                raise Unauthorized("Drivers can only claim orders for themselves.")
            return self._arbiter.claim(order.id, driver_id, notes=dto.notes)

        expected: Dict[str, Any] = {"status": current}
        if current == OrderStatus.ON_WAY:
            expected["driver_id"] = dto.actor_id

        if not self._order_repo.conditional_update(
            order.id, expected=expected, changes={"status": target}
        ):
            log.info("order.stale_write")
            raise StaleWrite(f"Order {order.id} changed concurrently.")

        self._order_repo.add_history(
            order.id,
            old_status=current,
            new_status=target,
            actor_id=dto.actor_id,
            notes=dto.notes,
        )
        order = self._order_repo.get_by_id(order.id)
        log.info("order.status_updated")
        self._publish(order)
        return order

    def claim_order(self, order_id: Any, driver_id: Any) -> Order:
        return self._arbiter.claim(order_id, driver_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def visible_to(self, user: User):
        """Orders a user may read: participants only, the operator sees all.

        Drivers also see the READY orders still waiting for a driver.
        """
        queryset = self._order_repo.list()
        if user.role == UserRole.MASTER:
            return queryset
        if user.role == UserRole.STORE:
            return queryset.filter(store_id=user.id)
        if user.role == UserRole.DELIVERY:
            return queryset.filter(
                Q(driver_id=user.id)
                | Q(status=OrderStatus.READY, driver__isnull=True)
            )
        return queryset.filter(customer_id=user.id)

    def list_available(self):
        return self._arbiter.list_available()

    def fee_reconciliation_backlog(self):
        return self._order_repo.list_flagged_for_reconciliation()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_ownership(self, order: Order, dto: TransitionOrderDTO) -> None:
        actor_id = str(dto.actor_id)
        if dto.actor_role == UserRole.STORE:
            owner = order.store_id
        elif dto.actor_role == UserRole.CLIENT:
            owner = order.customer_id
        elif order.status == OrderStatus.ON_WAY:
            owner = order.driver_id
        else:
            return

        if str(owner) != actor_id:
            logger.warning(
                "order.not_owner",
                order_id=str(order.id),
                actor_id=actor_id,
                actor_role=dto.actor_role,
            )
            raise Unauthorized("The order belongs to another account.")

    def _quote_delivery(
        self, store: User, colony_id: Any, unresolved_products: List[str]
    ) -> FeeQuote:
        try:
            if unresolved_products:
                raise ReferenceDataMissing(
                    f"Unknown products {', '.join(unresolved_products)}."
                )
            origin = self._colony_point(store.store_profile.colony_id, "store")
            destination = self._colony_point(colony_id, "delivery address")
            tariff = self._current_tariff()
        except ReferenceDataMissing as exc:
            logger.warning(
                "order.fee_reconciliation_required",
                store_id=str(store.id),
                colony_id=str(colony_id),
                reason=str(exc),
            )
            return FeeQuote.unresolved()
        return quote_delivery(origin, destination, tariff)

    def _colony_point(self, colony_id: Any, label: str) -> GeoPoint:
        colony = self._colony_repo.get_by_id(colony_id) if colony_id else None
        if colony is None:
            raise ReferenceDataMissing(f"Unknown {label} colony {colony_id}.")
        point = colony.as_point()
        if point is None or point.is_placeholder:
            raise ReferenceDataMissing(f"Colony {colony.name} has no coordinates.")
        return point

    def _current_tariff(self) -> Tariff:
        settings = self._settings_repo.get()
        if settings is None:
            raise ReferenceDataMissing("Delivery tariff is not configured.")
        return settings.as_tariff()

    def _publish(self, order: Order) -> None:
        payload = OrderOutputDTO.from_entity(order).model_dump(mode="json")
        publish_on_commit(self._bus, Topics.ORDER_UPDATE, payload)
