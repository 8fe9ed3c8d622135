"""Unit tests for OrderService with mocked dependencies."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from modules.accounts.constants import UserRole
from modules.logistics.fees import GeoPoint, Tariff
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.dtos import CreateOrderDTO, TransitionOrderDTO
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
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit


def _stub_order(status=OrderStatus.PENDING, driver_id=None):
    return SimpleNamespace(
        id=uuid4(),
        status=status,
        store_id=uuid4(),
        customer_id=uuid4(),
        driver_id=driver_id,
    )


def _stub_store(approved=True, is_open=True, colony_id=None):
    return SimpleNamespace(
        id=uuid4(),
        approved=approved,
        display_name="Tacos El Güero",
        store_profile=SimpleNamespace(is_open=is_open, colony_id=colony_id or uuid4()),
    )


def _stub_product(store_id, price="50.00", visible=True):
    product_id = uuid4()
    return SimpleNamespace(
        id=product_id,
        store_id=store_id,
        price=Decimal(price),
        is_visible=visible,
        snapshot=lambda: {"id": str(product_id), "price": price},
    )


def _stub_colony(lat, lng):
    return SimpleNamespace(name="Colonia", as_point=lambda: GeoPoint(lat, lng))


@pytest.fixture()
def deps():
    deps = SimpleNamespace(
        order_repo=MagicMock(),
        user_repo=MagicMock(),
        product_repo=MagicMock(),
        colony_repo=MagicMock(),
        settings_repo=MagicMock(),
        arbiter=MagicMock(),
        bus=MagicMock(),
    )
    deps.service = OrderService(
        deps.order_repo,
        deps.user_repo,
        deps.product_repo,
        deps.colony_repo,
        deps.settings_repo,
        deps.arbiter,
        deps.bus,
    )
    return deps


@pytest.fixture(autouse=True)
def _no_publish():
    with patch.object(OrderService, "_publish") as publish:
        yield publish


def _transition(order, actor_id, role, target, driver_id=None):
    return TransitionOrderDTO(
        order_id=order.id,
        actor_id=actor_id,
        actor_role=role,
        target_status=target,
        driver_id=driver_id,
    )


class TestTransitionOrder:
    def test_missing_order(self, deps):
        order = _stub_order()
        deps.order_repo.get_by_id.return_value = None

        with pytest.raises(OrderNotFound):
            deps.service.transition_order(
                _transition(order, uuid4(), UserRole.STORE, OrderStatus.PREPARING)
            )
        deps.order_repo.conditional_update.assert_not_called()

    def test_store_cannot_send_pending_order_on_way(self, deps):
        order = _stub_order(OrderStatus.PENDING)
        deps.order_repo.get_by_id.return_value = order

        with pytest.raises(InvalidTransition):
            deps.service.transition_order(
                _transition(order, order.store_id, UserRole.STORE, OrderStatus.ON_WAY)
            )
        deps.order_repo.conditional_update.assert_not_called()
        deps.arbiter.claim.assert_not_called()

    def test_customer_cannot_reject_after_preparing_started(self, deps):
        order = _stub_order(OrderStatus.PREPARING)
        deps.order_repo.get_by_id.return_value = order

        with pytest.raises(InvalidTransition):
            deps.service.transition_order(
                _transition(order, order.customer_id, UserRole.CLIENT, OrderStatus.REJECTED)
            )

    def test_other_store_is_unauthorized(self, deps):
        order = _stub_order(OrderStatus.PENDING)
        deps.order_repo.get_by_id.return_value = order

        with pytest.raises(Unauthorized):
            deps.service.transition_order(
                _transition(order, uuid4(), UserRole.STORE, OrderStatus.PREPARING)
            )
        deps.order_repo.conditional_update.assert_not_called()

    def test_store_accepts_with_conditional_write(self, deps, _no_publish):
        order = _stub_order(OrderStatus.PENDING)
        deps.order_repo.get_by_id.return_value = order
        deps.order_repo.conditional_update.return_value = True

        deps.service.transition_order(
            _transition(order, order.store_id, UserRole.STORE, OrderStatus.PREPARING)
        )

        deps.order_repo.conditional_update.assert_called_once_with(
            order.id,
            expected={"status": OrderStatus.PENDING},
            changes={"status": OrderStatus.PREPARING},
        )
        deps.order_repo.add_history.assert_called_once()
        _no_publish.assert_called_once()

    def test_customer_rejects_pending_order(self, deps):
        order = _stub_order(OrderStatus.PENDING)
        deps.order_repo.get_by_id.return_value = order
        deps.order_repo.conditional_update.return_value = True

        deps.service.transition_order(
            _transition(order, order.customer_id, UserRole.CLIENT, OrderStatus.REJECTED)
        )

        history = deps.order_repo.add_history.call_args
        assert history.kwargs["old_status"] == OrderStatus.PENDING
        assert history.kwargs["new_status"] == OrderStatus.REJECTED
        assert history.kwargs["actor_id"] == order.customer_id

    def test_zero_rows_is_stale_write(self, deps, _no_publish):
        order = _stub_order(OrderStatus.PREPARING)
        deps.order_repo.get_by_id.return_value = order
        deps.order_repo.conditional_update.return_value = False

        with pytest.raises(StaleWrite):
            deps.service.transition_order(
                _transition(order, order.store_id, UserRole.STORE, OrderStatus.READY)
            )
        deps.order_repo.add_history.assert_not_called()
        _no_publish.assert_not_called()

    def test_delivery_guards_on_current_driver(self, deps):
        driver_id = uuid4()
        order = _stub_order(OrderStatus.ON_WAY, driver_id=driver_id)
        deps.order_repo.get_by_id.return_value = order
        deps.order_repo.conditional_update.return_value = True

        deps.service.transition_order(
            _transition(order, driver_id, UserRole.DELIVERY, OrderStatus.DELIVERED)
        )

        deps.order_repo.conditional_update.assert_called_once_with(
            order.id,
            expected={"status": OrderStatus.ON_WAY, "driver_id": driver_id},
            changes={"status": OrderStatus.DELIVERED},
        )

    def test_only_assigned_driver_delivers(self, deps):
        order = _stub_order(OrderStatus.ON_WAY, driver_id=uuid4())
        deps.order_repo.get_by_id.return_value = order

        with pytest.raises(Unauthorized):
            deps.service.transition_order(
                _transition(order, uuid4(), UserRole.DELIVERY, OrderStatus.DELIVERED)
            )

    def test_on_way_delegates_to_arbiter(self, deps):
        order = _stub_order(OrderStatus.READY)
        driver_id = uuid4()
        deps.order_repo.get_by_id.return_value = order

        result = deps.service.transition_order(
            _transition(order, driver_id, UserRole.DELIVERY, OrderStatus.ON_WAY)
        )

        deps.arbiter.claim.assert_called_once_with(order.id, driver_id, notes="")
        assert result is deps.arbiter.claim.return_value
        deps.order_repo.conditional_update.assert_not_called()

    def test_cannot_claim_on_behalf_of_another_driver(self, deps):
        order = _stub_order(OrderStatus.READY)
        deps.order_repo.get_by_id.return_value = order

        with pytest.raises(Unauthorized):
            deps.service.transition_order(
                _transition(
                    order, uuid4(), UserRole.DELIVERY, OrderStatus.ON_WAY, driver_id=uuid4()
                )
            )
        deps.arbiter.claim.assert_not_called()


class TestCreateOrder:
    @pytest.fixture()
    def happy(self, deps):
        customer = SimpleNamespace(id=uuid4(), role=UserRole.CLIENT, display_name="Ana")
        store = _stub_store()
        products = [_stub_product(store.id, "50.00"), _stub_product(store.id, "12.50")]
        deps.user_repo.get_by_id.return_value = customer
        deps.user_repo.get_store.return_value = store
        deps.product_repo.get_many.return_value = {str(p.id): p for p in products}
        deps.colony_repo.get_by_id.side_effect = [
            _stub_colony(19.0, -99.0),
            _stub_colony(19.05, -99.05),
        ]
        deps.settings_repo.get.return_value = SimpleNamespace(
            as_tariff=lambda: Tariff(base_fee=Decimal("15"), km_rate=Decimal("5"))
        )
        deps.order_repo.create.return_value = SimpleNamespace(id=uuid4())
        return SimpleNamespace(customer=customer, store=store, products=products)

    def _dto(self, happy, items=None):
        return CreateOrderDTO(
            customer_id=happy.customer.id,
            store_id=happy.store.id,
            items=items
            or [
                {"product_id": happy.products[0].id, "quantity": 2},
                {"product_id": happy.products[1].id, "quantity": 1},
            ],
            payment_method=PaymentMethod.CASH,
            delivery_address={"street": "Durango", "number": "5", "colony_id": uuid4()},
        )

    def test_prices_and_fees_computed_server_side(self, deps, happy):
        deps.service.create_order(self._dto(happy))

        data, items = deps.order_repo.create.call_args.args
        assert data["subtotal"] == Decimal("112.50")
        assert data["driver_fee"] == Decimal("39")
        assert data["delivery_fee"] == Decimal("54")
        assert data["platform_fee"] == Decimal("15")
        assert data["total"] == Decimal("166.50")
        assert data["status"] == OrderStatus.PENDING
        assert data["fee_reconciliation_required"] is False
        assert [i["unit_price"] for i in items] == [Decimal("50.00"), Decimal("12.50")]

    def test_initial_history_recorded(self, deps, happy):
        deps.service.create_order(self._dto(happy))

        history = deps.order_repo.add_history.call_args
        assert history.kwargs["old_status"] is None
        assert history.kwargs["new_status"] == OrderStatus.PENDING

    def test_missing_colony_flags_reconciliation(self, deps, happy):
        deps.colony_repo.get_by_id.side_effect = [_stub_colony(19.0, -99.0), None]

        deps.service.create_order(self._dto(happy))

        data, _ = deps.order_repo.create.call_args.args
        assert data["delivery_fee"] == 0
        assert data["driver_fee"] == 0
        assert data["total"] == Decimal("112.50")
        assert data["fee_reconciliation_required"] is True

    def test_missing_tariff_flags_reconciliation(self, deps, happy):
        deps.settings_repo.get.return_value = None

        deps.service.create_order(self._dto(happy))

        data, _ = deps.order_repo.create.call_args.args
        assert data["fee_reconciliation_required"] is True

    def test_unknown_store(self, deps, happy):
        deps.user_repo.get_store.return_value = None
        with pytest.raises(StoreNotFound):
            deps.service.create_order(self._dto(happy))

    @pytest.mark.parametrize("approved, is_open", [(False, True), (True, False)])
    def test_closed_or_unapproved_store(self, deps, happy, approved, is_open):
        happy.store.approved = approved
        happy.store.store_profile.is_open = is_open
        with pytest.raises(StoreClosed):
            deps.service.create_order(self._dto(happy))
        deps.order_repo.create.assert_not_called()

    def test_product_of_another_store(self, deps, happy):
        foreign = _stub_product(uuid4())
        deps.product_repo.get_many.return_value = {str(foreign.id): foreign}
        with pytest.raises(ProductNotFound):
            deps.service.create_order(
                self._dto(happy, items=[{"product_id": foreign.id, "quantity": 1}])
            )

    def test_unknown_product_is_skipped_and_flagged(self, deps, happy):
        items = [
            {"product_id": happy.products[0].id, "quantity": 2},
            {"product_id": uuid4(), "quantity": 3},
        ]

        deps.service.create_order(self._dto(happy, items=items))

        data, repo_items = deps.order_repo.create.call_args.args
        assert [item["product_id"] for item in repo_items] == [happy.products[0].id]
        assert data["subtotal"] == Decimal("100.00")
        assert data["delivery_fee"] == Decimal("0")
        assert data["total"] == Decimal("100.00")
        assert data["fee_reconciliation_required"] is True
        deps.colony_repo.get_by_id.assert_not_called()

    def test_no_resolvable_product(self, deps, happy):
        deps.product_repo.get_many.return_value = {}
        with pytest.raises(ProductNotFound):
            deps.service.create_order(self._dto(happy))
        deps.order_repo.create.assert_not_called()

    def test_hidden_product(self, deps, happy):
        happy.products[0].is_visible = False
        with pytest.raises(ProductUnavailable):
            deps.service.create_order(self._dto(happy))

    def test_only_customers_order(self, deps, happy):
        happy.customer.role = UserRole.DELIVERY
        with pytest.raises(Unauthorized):
            deps.service.create_order(self._dto(happy))
