"""Integration tests for throttling on the order API."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.core.cache import cache
from rest_framework.throttling import ScopedRateThrottle

pytestmark = pytest.mark.integration


@pytest.fixture()
def client(api_client, customer):
    api_client.force_authenticate(user=customer)
    return api_client


def test_order_creation_is_throttled(client, order_payload, tariff):
    cache.clear()

    with patch.dict(ScopedRateThrottle.THROTTLE_RATES, {"order_creation": "3/minute"}):
        for _ in range(3):
            response = client.post("/api/v1/orders/", order_payload, format="json")
            assert response.status_code == 201

        response = client.post("/api/v1/orders/", order_payload, format="json")
        assert response.status_code == 429


def test_order_listing_has_its_own_scope(client):
    cache.clear()

    with patch.dict(ScopedRateThrottle.THROTTLE_RATES, {"order_creation": "1/minute"}):
        for _ in range(5):
            assert client.get("/api/v1/orders/").status_code == 200
