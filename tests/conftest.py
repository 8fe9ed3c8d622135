from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.accounts.constants import UserRole
from modules.accounts.models import StoreProfile
from modules.logistics.models import Colony, SystemSettings
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.dtos import CreateOrderDTO, TransitionOrderDTO
from modules.orders.views import build_order_service
from modules.products.models import Product
from shared.infrastructure.bus import get_notification_bus, reset_notification_bus

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _fresh_bus_and_cache():
    """Every test starts with an empty in-memory bus and cache (throttles)."""
    reset_notification_bus()
    cache.clear()
    yield
    reset_notification_bus()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def bus():
    return get_notification_bus()


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    counter = {"n": 0}

    def _make(role: str = UserRole.CLIENT, approved: bool = True, **extra) -> User:
        counter["n"] += 1
        username = extra.pop("username", f"{role.lower()}{counter['n']}")
        return User.objects.create_user(
            username=username,
            email=f"{username}@example.com",
            password="testpass123",
            role=role,
            approved=approved,
            **extra,
        )

    return _make


@pytest.fixture()
def master(make_user):
    return make_user(UserRole.MASTER, username="operator")


@pytest.fixture()
def customer(make_user):
    return make_user(UserRole.CLIENT, username="customer", first_name="Ana", last_name="Ruiz")


@pytest.fixture()
def driver(make_user):
    return make_user(UserRole.DELIVERY, username="driver")


@pytest.fixture()
def other_driver(make_user):
    return make_user(UserRole.DELIVERY, username="driver2")


# ---------------------------------------------------------------------------
# Logistics
# ---------------------------------------------------------------------------


@pytest.fixture()
def tariff():
    return SystemSettings.objects.create(base_fee=15, km_rate=Decimal("5"))


@pytest.fixture()
def store_colony():
    return Colony.objects.create(name="Centro", lat=19.0, lng=-99.0)


@pytest.fixture()
def delivery_colony():
    return Colony.objects.create(name="Roma Norte", lat=19.05, lng=-99.05)


@pytest.fixture()
def placeholder_colony():
    return Colony.objects.create(name="Sin Coordenadas", lat=0, lng=0)


# ---------------------------------------------------------------------------
# Stores and catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_store(make_user, store_colony):
    def _make(is_open: bool = True, approved: bool = True, colony=store_colony, **extra):
        user = make_user(UserRole.STORE, approved=approved, **extra)
        StoreProfile.objects.create(
            user=user,
            store_name=f"Tienda {user.username}",
            colony=colony,
            is_open=is_open,
        )
        return User.objects.select_related("store_profile").get(id=user.id)

    return _make


@pytest.fixture()
def store(make_store):
    return make_store(username="store")


@pytest.fixture()
def other_store(make_store):
    return make_store(username="store2")


@pytest.fixture()
def make_product():
    def _make(store, price: str = "100.00", **extra) -> Product:
        extra.setdefault("name", "Taco al pastor")
        extra.setdefault("category", "Tacos")
        return Product.objects.create(store=store, price=Decimal(price), **extra)

    return _make


@pytest.fixture()
def product(make_product, store):
    return make_product(store, price="100.00")


@pytest.fixture()
def second_product(make_product, store):
    return make_product(store, price="20.00", name="Agua fresca", category="Bebidas")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def order_payload(store, product, delivery_colony):
    """Valid POST /api/v1/orders/ body."""
    return {
        "store_id": str(store.id),
        "items": [{"product_id": str(product.id), "quantity": 2}],
        "payment_method": PaymentMethod.CASH,
        "delivery_address": {
            "street": "Calle Durango",
            "number": "120",
            "colony_id": str(delivery_colony.id),
            "reference": "Portón negro",
        },
    }


@pytest.fixture()
def place_order(order_service, customer, store, product, delivery_colony, tariff):
    def _place(**overrides):
        data = {
            "customer_id": customer.id,
            "store_id": store.id,
            "items": [{"product_id": product.id, "quantity": 2}],
            "payment_method": PaymentMethod.CARD,
            "delivery_address": {
                "street": "Calle Durango",
                "number": "120",
                "colony_id": delivery_colony.id,
            },
        }
        data.update(overrides)
        return order_service.create_order(CreateOrderDTO(**data))

    return _place


@pytest.fixture()
def advance(order_service, store, customer):
    """Drive an order along the happy path up to ``target``."""
    steps = [
        (OrderStatus.PREPARING, UserRole.STORE),
        (OrderStatus.READY, UserRole.STORE),
        (OrderStatus.ON_WAY, UserRole.DELIVERY),
        (OrderStatus.DELIVERED, UserRole.DELIVERY),
    ]

    def _advance(order, target: str, driver=None):
        for status, role in steps:
            actor = store if role == UserRole.STORE else driver
            order = order_service.transition_order(
                TransitionOrderDTO(
                    order_id=order.id,
                    actor_id=actor.id,
                    actor_role=role,
                    target_status=status,
                )
            )
            if status == target:
                return order
        return order

    return _advance
