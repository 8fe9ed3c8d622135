"""Integration tests for reviews and the store rating aggregate."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.accounts.models import StoreProfile
from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.reviews.models import Review
from shared.domain.events import Topics

pytestmark = pytest.mark.integration

URL = "/api/v1/reviews/"


@pytest.fixture()
def delivered(place_order, advance, driver):
    def _deliver():
        return advance(place_order(), OrderStatus.DELIVERED, driver=driver)

    return _deliver


@pytest.fixture()
def client(api_client, customer):
    api_client.force_authenticate(user=customer)
    return api_client


class TestSubmitReview:
    def test_review_delivered_order(self, client, delivered, store):
        order = delivered()

        response = client.post(
            URL, {"order_id": str(order.id), "rating": 4, "comment": "Muy rico"}, format="json"
        )

        assert response.status_code == 201
        assert response.json()["rating"] == 4
        assert response.json()["customer_name"] == "Ana Ruiz"
        assert Order.objects.get(id=order.id).is_reviewed is True
        profile = StoreProfile.objects.get(user=store)
        assert profile.average_rating == Decimal("4.00")
        assert profile.rating_count == 1

    def test_only_once(self, client, delivered):
        order = delivered()
        client.post(URL, {"order_id": str(order.id), "rating": 5}, format="json")

        response = client.post(URL, {"order_id": str(order.id), "rating": 1}, format="json")

        assert response.status_code == 400
        assert response.json() == {"detail": "El pedido no puede ser calificado."}
        assert Review.objects.filter(order_id=order.id).count() == 1

    def test_average_over_all_reviews(self, client, delivered, store):
        for rating in (5, 4, 4):
            client.post(URL, {"order_id": str(delivered().id), "rating": rating}, format="json")

        profile = StoreProfile.objects.get(user=store)
        assert profile.rating_count == 3
        assert profile.average_rating == Decimal("4.33")

    def test_undelivered_order_rejected(self, client, place_order, advance, driver):
        order = advance(place_order(), OrderStatus.ON_WAY, driver=driver)

        response = client.post(URL, {"order_id": str(order.id), "rating": 5}, format="json")

        assert response.status_code == 400
        assert Order.objects.get(id=order.id).is_reviewed is False

    def test_someone_elses_order_rejected(self, api_client, make_user, delivered):
        order = delivered()
        api_client.force_authenticate(user=make_user())

        response = api_client.post(URL, {"order_id": str(order.id), "rating": 5}, format="json")

        assert response.status_code == 400

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_range(self, client, delivered, rating):
        order = delivered()

        response = client.post(URL, {"order_id": str(order.id), "rating": rating}, format="json")

        assert response.status_code == 400

    def test_only_customers_review(self, api_client, store, delivered):
        order = delivered()
        api_client.force_authenticate(user=store)

        response = api_client.post(URL, {"order_id": str(order.id), "rating": 5}, format="json")

        assert response.status_code == 403

    def test_notifies_store_and_order(
        self, client, delivered, store, bus, django_capture_on_commit_callbacks
    ):
        order = delivered()

        with django_capture_on_commit_callbacks(execute=True):
            client.post(URL, {"order_id": str(order.id), "rating": 3}, format="json")

        user_update, order_update = bus.published
        assert user_update.topic == Topics.USER_UPDATE
        assert user_update.payload["id"] == str(store.id)
        assert order_update.topic == Topics.ORDER_UPDATE
        assert order_update.payload["is_reviewed"] is True


class TestListReviews:
    def test_store_reviews_newest_first(self, client, delivered, store):
        first = delivered()
        second = delivered()
        client.post(URL, {"order_id": str(first.id), "rating": 5}, format="json")
        client.post(URL, {"order_id": str(second.id), "rating": 3}, format="json")

        response = client.get(URL, {"store": str(store.id)})

        assert response.status_code == 200
        assert [row["order_id"] for row in response.json()["results"]] == [
            str(second.id),
            str(first.id),
        ]

    def test_store_parameter_required(self, client):
        assert client.get(URL).status_code == 400
