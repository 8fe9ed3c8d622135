"""Integration tests for registration, approval and token issuance."""

from __future__ import annotations

import pytest

from modules.accounts.constants import Subscription, UserRole
from modules.accounts.models import StoreProfile, User

pytestmark = pytest.mark.integration

REGISTER_URL = "/api/v1/auth/register/"
TOKEN_URL = "/api/v1/auth/token/"


@pytest.fixture()
def payload():
    return {
        "username": "lucia",
        "email": "lucia@example.com",
        "password": "s3cretpass",
        "first_name": "Lucía",
        "phone": "5512345678",
        "role": UserRole.CLIENT,
    }


class TestRegister:
    def test_account_starts_unapproved(self, api_client, payload):
        response = api_client.post(REGISTER_URL, payload, format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["approved"] is False
        assert data["role"] == UserRole.CLIENT
        assert "password" not in data
        assert User.objects.get(username="lucia").check_password("s3cretpass")

    def test_store_registration_creates_profile(self, api_client, payload, store_colony):
        payload.update(
            username="fonda",
            email="fonda@example.com",
            role=UserRole.STORE,
            store={"store_name": "Fonda Lucía", "colony_id": str(store_colony.id)},
        )

        response = api_client.post(REGISTER_URL, payload, format="json")

        assert response.status_code == 201
        profile = StoreProfile.objects.get(user__username="fonda")
        assert profile.store_name == "Fonda Lucía"
        assert profile.subscription == Subscription.STANDARD
        assert profile.is_open is False

    def test_store_without_profile(self, api_client, payload):
        payload["role"] = UserRole.STORE

        assert api_client.post(REGISTER_URL, payload, format="json").status_code == 400

    def test_operator_role_cannot_self_register(self, api_client, payload):
        payload["role"] = UserRole.MASTER

        assert api_client.post(REGISTER_URL, payload, format="json").status_code == 400

    @pytest.mark.parametrize(
        "field, value",
        [("username", "LUCIA"), ("email", "Lucia@Example.com"), ("phone", "5512345678")],
    )
    def test_duplicates_conflict(self, api_client, payload, field, value):
        api_client.post(REGISTER_URL, payload, format="json")
        second = {
            **payload,
            "username": "other",
            "email": "other@example.com",
            "phone": "5500000000",
            field: value,
        }

        response = api_client.post(REGISTER_URL, second, format="json")

        assert response.status_code == 409

    def test_unknown_fields_rejected(self, api_client, payload):
        payload["approved"] = True

        assert api_client.post(REGISTER_URL, payload, format="json").status_code == 400


class TestApprovalAndTokens:
    def test_unapproved_account_gets_no_token(self, api_client, payload):
        api_client.post(REGISTER_URL, payload, format="json")

        response = api_client.post(
            TOKEN_URL, {"username": "lucia", "password": "s3cretpass"}, format="json"
        )

        assert response.status_code == 403

    def test_operator_approves_then_token_carries_role(self, api_client, payload, master):
        user_id = api_client.post(REGISTER_URL, payload, format="json").json()["id"]

        api_client.force_authenticate(user=master)
        response = api_client.post(
            f"/api/v1/users/{user_id}/approve/", {"approved": True}, format="json"
        )
        assert response.status_code == 200
        api_client.force_authenticate(user=None)

        response = api_client.post(
            TOKEN_URL, {"username": "lucia", "password": "s3cretpass"}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == UserRole.CLIENT
        assert data["user_id"] == user_id
        assert {"access", "refresh"} <= data.keys()

    def test_only_operator_approves(self, api_client, customer, driver):
        api_client.force_authenticate(user=customer)

        response = api_client.post(
            f"/api/v1/users/{driver.id}/approve/", {"approved": False}, format="json"
        )

        assert response.status_code == 403

    def test_bearer_token_identifies_user(self, api_client, customer):
        token = api_client.post(
            TOKEN_URL, {"username": "customer", "password": "testpass123"}, format="json"
        ).json()["access"]

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        response = api_client.get("/api/v1/me")

        assert response.status_code == 200
        assert response.json()["id"] == str(customer.id)
        assert response.json()["role"] == UserRole.CLIENT

    def test_bad_token(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")

        assert api_client.get("/api/v1/me").status_code == 401

    def test_revoked_approval_applies_on_next_request(self, api_client, customer):
        api_client.force_authenticate(user=customer)
        assert api_client.get("/api/v1/orders/").status_code == 200

        customer.approved = False
        customer.save()

        assert api_client.get("/api/v1/orders/").status_code == 403
