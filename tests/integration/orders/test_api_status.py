"""Integration tests for POST /api/v1/orders/{id}/status/."""

from __future__ import annotations

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from shared.domain.events import Topics

pytestmark = pytest.mark.integration


def _url(order):
    return f"/api/v1/orders/{order.id}/status/"


class TestStoreTransitions:
    def test_accept_then_ready(self, api_client, store, place_order):
        order = place_order()
        api_client.force_authenticate(user=store)

        response = api_client.post(_url(order), {"status": OrderStatus.PREPARING}, format="json")
        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.PREPARING

        response = api_client.post(_url(order), {"status": OrderStatus.READY}, format="json")
        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.READY

    def test_reject_pending(self, api_client, store, place_order):
        order = place_order()
        api_client.force_authenticate(user=store)

        response = api_client.post(
            _url(order),
            {"status": OrderStatus.REJECTED, "notes": "Sin existencias"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["status_history"][-1]["notes"] == "Sin existencias"

    def test_skipping_a_state_is_rejected(self, api_client, store, place_order):
        order = place_order()
        api_client.force_authenticate(user=store)

        response = api_client.post(_url(order), {"status": OrderStatus.READY}, format="json")

        assert response.status_code == 400
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_other_store_forbidden(self, api_client, other_store, place_order):
        order = place_order()
        api_client.force_authenticate(user=other_store)

        response = api_client.post(_url(order), {"status": OrderStatus.PREPARING}, format="json")

        assert response.status_code == 403
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_store_cannot_deliver(self, api_client, store, driver, place_order, advance):
        order = advance(place_order(), OrderStatus.ON_WAY, driver=driver)
        api_client.force_authenticate(user=store)

        response = api_client.post(_url(order), {"status": OrderStatus.DELIVERED}, format="json")

        assert response.status_code == 400


class TestCustomerTransitions:
    def test_customer_cancels_pending(self, api_client, customer, place_order):
        order = place_order()
        api_client.force_authenticate(user=customer)

        response = api_client.post(_url(order), {"status": OrderStatus.REJECTED}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.REJECTED

    def test_customer_cannot_cancel_once_preparing(
        self, api_client, customer, place_order, advance
    ):
        order = advance(place_order(), OrderStatus.PREPARING)
        api_client.force_authenticate(user=customer)

        response = api_client.post(_url(order), {"status": OrderStatus.REJECTED}, format="json")

        assert response.status_code == 400


class TestDriverTransitions:
    def test_driver_takes_ready_order_via_status(self, api_client, driver, place_order, advance):
        order = advance(place_order(), OrderStatus.READY)
        api_client.force_authenticate(user=driver)

        response = api_client.post(_url(order), {"status": OrderStatus.ON_WAY}, format="json")

        assert response.status_code == 200
        assert response.json()["driver_id"] == str(driver.id)

    def test_driver_cannot_assign_someone_else(
        self, api_client, driver, other_driver, place_order, advance
    ):
        order = advance(place_order(), OrderStatus.READY)
        api_client.force_authenticate(user=driver)

        response = api_client.post(
            _url(order),
            {"status": OrderStatus.ON_WAY, "driver_id": str(other_driver.id)},
            format="json",
        )

        assert response.status_code == 403
        order.refresh_from_db()
        assert order.driver_id is None

    def test_assigned_driver_delivers(self, api_client, driver, place_order, advance):
        order = advance(place_order(), OrderStatus.ON_WAY, driver=driver)
        api_client.force_authenticate(user=driver)

        response = api_client.post(_url(order), {"status": OrderStatus.DELIVERED}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.DELIVERED

    def test_other_driver_cannot_deliver(
        self, api_client, driver, other_driver, place_order, advance
    ):
        order = advance(place_order(), OrderStatus.ON_WAY, driver=driver)
        api_client.force_authenticate(user=other_driver)

        response = api_client.post(_url(order), {"status": OrderStatus.DELIVERED}, format="json")

        assert response.status_code == 403


class TestTerminalStates:
    @pytest.mark.parametrize("target", [OrderStatus.PENDING, OrderStatus.PREPARING])
    def test_delivered_is_final(self, api_client, store, driver, place_order, advance, target):
        order = advance(place_order(), OrderStatus.DELIVERED, driver=driver)
        api_client.force_authenticate(user=store)

        response = api_client.post(_url(order), {"status": target}, format="json")

        assert response.status_code == 400
        assert Order.objects.get(id=order.id).status == OrderStatus.DELIVERED


class TestStatusRequestValidation:
    def test_unknown_status(self, api_client, store, place_order):
        order = place_order()
        api_client.force_authenticate(user=store)

        response = api_client.post(_url(order), {"status": "LOST"}, format="json")

        assert response.status_code == 400

    def test_unknown_order(self, api_client, store):
        api_client.force_authenticate(user=store)

        response = api_client.post(
            "/api/v1/orders/00000000-0000-0000-0000-000000000009/status/",
            {"status": OrderStatus.PREPARING},
            format="json",
        )

        assert response.status_code == 404

    def test_notifies_after_commit(
        self, api_client, store, place_order, bus, django_capture_on_commit_callbacks
    ):
        order = place_order()
        api_client.force_authenticate(user=store)

        with django_capture_on_commit_callbacks(execute=True):
            api_client.post(_url(order), {"status": OrderStatus.PREPARING}, format="json")

        [notification] = [n for n in bus.published if n.topic == Topics.ORDER_UPDATE]
        assert notification.payload["status"] == OrderStatus.PREPARING
