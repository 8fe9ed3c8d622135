"""Integration tests for driver assignment (POST /api/v1/orders/{id}/claim/)."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import django
import pytest
from django.test import TransactionTestCase

from modules.accounts.constants import UserRole
from modules.accounts.models import StoreProfile, User
from modules.logistics.models import Colony, SystemSettings
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import AlreadyClaimed
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.views import build_order_service

pytestmark = pytest.mark.integration

NUM_DRIVERS = 8


def _url(order):
    return f"/api/v1/orders/{order.id}/claim/"


def _user(username, role):
    return User.objects.create_user(
        username,
        email=f"{username}@example.com",
        password="testpass123",
        role=role,
        approved=True,
    )


class TestClaimApi:
    def test_first_driver_wins(self, api_client, driver, other_driver, place_order, advance):
        order = advance(place_order(), OrderStatus.READY)

        api_client.force_authenticate(user=driver)
        first = api_client.post(_url(order))
        api_client.force_authenticate(user=other_driver)
        second = api_client.post(_url(order))

        assert first.status_code == 200
        assert first.json()["status"] == OrderStatus.ON_WAY
        assert first.json()["driver_id"] == str(driver.id)
        assert second.status_code == 409

        order.refresh_from_db()
        assert order.driver_id == driver.id

    def test_order_not_ready(self, api_client, driver, place_order):
        order = place_order()
        api_client.force_authenticate(user=driver)

        assert api_client.post(_url(order)).status_code == 409

    def test_unknown_order(self, api_client, driver):
        api_client.force_authenticate(user=driver)

        response = api_client.post("/api/v1/orders/00000000-0000-0000-0000-000000000003/claim/")

        assert response.status_code == 404

    def test_drivers_only(self, api_client, store, place_order, advance):
        order = advance(place_order(), OrderStatus.READY)
        api_client.force_authenticate(user=store)

        assert api_client.post(_url(order)).status_code == 403

    def test_unapproved_driver(self, api_client, make_user, place_order, advance):
        order = advance(place_order(), OrderStatus.READY)
        api_client.force_authenticate(user=make_user(UserRole.DELIVERY, approved=False))

        assert api_client.post(_url(order)).status_code == 403


class TestClaimService:
    def test_claim_records_single_history_entry(
        self, order_service, driver, place_order, advance
    ):
        order = advance(place_order(), OrderStatus.READY)

        order_service.claim_order(order.id, driver.id)

        entries = OrderStatusHistory.objects.filter(
            order_id=order.id, new_status=OrderStatus.ON_WAY
        )
        assert entries.count() == 1
        assert entries.get().actor_id == driver.id

    def test_loser_leaves_no_trace(
        self, order_service, driver, other_driver, place_order, advance
    ):
        order = advance(place_order(), OrderStatus.READY)
        order_service.claim_order(order.id, driver.id)

        with pytest.raises(AlreadyClaimed):
            order_service.claim_order(order.id, other_driver.id)

        assert OrderStatusHistory.objects.filter(
            order_id=order.id, new_status=OrderStatus.ON_WAY
        ).count() == 1
        assert Order.objects.get(id=order.id).driver_id == driver.id


class TestConcurrentClaims(TransactionTestCase):
    """Drivers race for the same READY order: exactly one wins."""

    def setUp(self):
        SystemSettings.objects.create(base_fee=15, km_rate=5)
        colony = Colony.objects.create(name="Centro", lat=19.0, lng=-99.0)
        destination = Colony.objects.create(name="Roma", lat=19.05, lng=-99.05)
        self.customer = _user("race_customer", UserRole.CLIENT)
        self.store = _user("race_store", UserRole.STORE)
        StoreProfile.objects.create(
            user=self.store, store_name="Race", colony=colony, is_open=True
        )
        self.drivers = [
            _user(f"race_driver{i}", UserRole.DELIVERY) for i in range(NUM_DRIVERS)
        ]
        self.order = Order.objects.create(
            customer=self.customer,
            store=self.store,
            status=OrderStatus.READY,
            delivery_address={"colony_id": str(destination.id)},
        )

    def _claim(self, driver):
        django.db.connections.close_all()
        try:
            build_order_service().claim_order(self.order.id, driver.id)
            return "claimed"
        except AlreadyClaimed:
            return "lost"
        finally:
            django.db.connections.close_all()

    def test_exactly_one_driver_wins(self):
        with ThreadPoolExecutor(max_workers=NUM_DRIVERS) as pool:
            results = list(pool.map(self._claim, self.drivers))

        self.assertEqual(results.count("claimed"), 1)
        self.assertEqual(results.count("lost"), NUM_DRIVERS - 1)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.ON_WAY)
        winner = self.drivers[results.index("claimed")]
        self.assertEqual(self.order.driver_id, winner.id)
