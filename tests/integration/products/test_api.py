"""Integration tests for the catalog API."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.products.models import Product
from shared.domain.events import Topics

pytestmark = pytest.mark.integration

URL = "/api/v1/products/"


@pytest.fixture()
def product_payload():
    return {"name": "Gringa", "price": "55.00", "category": "Tacos"}


class TestCreateProduct:
    def test_store_adds_to_own_catalog(
        self, api_client, store, product_payload, bus, django_capture_on_commit_callbacks
    ):
        api_client.force_authenticate(user=store)

        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(URL, product_payload, format="json")

        assert response.status_code == 201
        assert response.json()["store_id"] == str(store.id)
        assert bus.published[0].topic == Topics.PRODUCT_UPDATE

    def test_store_cannot_add_to_other_catalog(
        self, api_client, store, other_store, product_payload
    ):
        api_client.force_authenticate(user=store)
        product_payload["store_id"] = str(other_store.id)

        assert api_client.post(URL, product_payload, format="json").status_code == 403

    def test_operator_adds_for_a_store(self, api_client, master, store, product_payload):
        api_client.force_authenticate(user=master)
        product_payload["store_id"] = str(store.id)

        response = api_client.post(URL, product_payload, format="json")

        assert response.status_code == 201
        assert response.json()["store_id"] == str(store.id)

    def test_customers_cannot_create(self, api_client, customer, product_payload):
        api_client.force_authenticate(user=customer)

        assert api_client.post(URL, product_payload, format="json").status_code == 403

    @pytest.mark.parametrize("price", ["0", "-5.00"])
    def test_price_must_be_positive(self, api_client, store, product_payload, price):
        api_client.force_authenticate(user=store)
        product_payload["price"] = price

        assert api_client.post(URL, product_payload, format="json").status_code == 400


class TestReadProducts:
    def test_customers_see_visible_only(self, api_client, customer, product, make_product, store):
        hidden = make_product(store, name="Secreto", is_visible=False)
        api_client.force_authenticate(user=customer)

        ids = {row["id"] for row in api_client.get(URL).json()["results"]}

        assert str(product.id) in ids
        assert str(hidden.id) not in ids
        assert api_client.get(f"{URL}{hidden.id}/").status_code == 404

    def test_store_sees_own_hidden(self, api_client, store, make_product):
        hidden = make_product(store, name="Secreto", is_visible=False)
        api_client.force_authenticate(user=store)

        assert api_client.get(f"{URL}{hidden.id}/").status_code == 200

    def test_filter_by_store(self, api_client, customer, product, other_store, make_product):
        make_product(other_store)
        api_client.force_authenticate(user=customer)

        response = api_client.get(URL, {"store": str(product.store_id)})

        assert [row["id"] for row in response.json()["results"]] == [str(product.id)]


class TestUpdateProduct:
    def test_owner_updates(self, api_client, store, product):
        api_client.force_authenticate(user=store)

        response = api_client.patch(f"{URL}{product.id}/", {"price": "110.00"}, format="json")

        assert response.status_code == 200
        product.refresh_from_db()
        assert product.price == Decimal("110.00")

    def test_other_store_forbidden(self, api_client, other_store, product):
        api_client.force_authenticate(user=other_store)

        response = api_client.patch(f"{URL}{product.id}/", {"price": "1.00"}, format="json")

        assert response.status_code == 403

    def test_delete(self, api_client, store, product, bus, django_capture_on_commit_callbacks):
        api_client.force_authenticate(user=store)

        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.delete(f"{URL}{product.id}/")

        assert response.status_code == 204
        assert not Product.objects.alive().filter(id=product.id).exists()
        assert Product.objects.filter(id=product.id).exists()
        assert bus.published[-1].topic == Topics.PRODUCT_DELETE
        assert bus.published[-1].payload == str(product.id)
