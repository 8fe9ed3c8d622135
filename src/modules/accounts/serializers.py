"""Account DRF serializers (input, output and token issuance)."""

from __future__ import annotations

from rest_framework import serializers
from rest_framework.exceptions import PermissionDenied
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from modules.accounts.constants import SELF_REGISTERABLE_ROLES, Subscription
from modules.accounts.models import StoreProfile, User
from modules.core.serializers import StrictFieldsMixin

# ---------------------------------------------------------------------------
# Token
# ---------------------------------------------------------------------------


class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Issues tokens carrying the ``role`` claim; unapproved accounts get 403."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.approved:
            raise PermissionDenied("Cuenta no aprobada.")
        data["role"] = self.user.role
        data["user_id"] = str(self.user.id)
        return data


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class StoreProfileInputSerializer(StrictFieldsMixin, serializers.Serializer):
    store_name = serializers.CharField(max_length=150)
    street = serializers.CharField(required=False, allow_blank=True, default="")
    number = serializers.CharField(required=False, allow_blank=True, default="")
    colony_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    prep_time = serializers.CharField(required=False, allow_blank=True, default="")


class RegisterSerializer(StrictFieldsMixin, serializers.Serializer):
    username = serializers.CharField(min_length=3, max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    first_name = serializers.CharField(required=False, allow_blank=True, default="")
    last_name = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(min_length=7, max_length=20)
    role = serializers.ChoiceField(choices=sorted(SELF_REGISTERABLE_ROLES))
    store = StoreProfileInputSerializer(required=False)


class UpdateUserSerializer(StrictFieldsMixin, serializers.Serializer):
    first_name = serializers.CharField(required=False, allow_blank=True)
    last_name = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False)
    phone = serializers.CharField(required=False, min_length=7, max_length=20)
    password = serializers.CharField(required=False, min_length=8, write_only=True)
    store_name = serializers.CharField(required=False, max_length=150)
    street = serializers.CharField(required=False, allow_blank=True)
    number = serializers.CharField(required=False, allow_blank=True)
    colony_id = serializers.UUIDField(required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    prep_time = serializers.CharField(required=False, allow_blank=True)
    is_open = serializers.BooleanField(required=False)
    subscription = serializers.ChoiceField(choices=Subscription.choices, required=False)


class ApprovalSerializer(StrictFieldsMixin, serializers.Serializer):
    approved = serializers.BooleanField()


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class StoreProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = StoreProfile
        fields = [
            "store_name",
            "street",
            "number",
            "colony_id",
            "description",
            "prep_time",
            "is_open",
            "subscription",
            "subscription_priority",
            "average_rating",
            "rating_count",
        ]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    store = StoreProfileSerializer(source="store_profile", read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "phone",
            "role",
            "approved",
            "is_active",
            "created_at",
            "store",
        ]
        read_only_fields = fields


class StoreListSerializer(serializers.ModelSerializer):
    """Public storefront card (no contact data)."""

    store = StoreProfileSerializer(source="store_profile", read_only=True)

    class Meta:
        model = User
        fields = ["id", "store"]
        read_only_fields = fields
