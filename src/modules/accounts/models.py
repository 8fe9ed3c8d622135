"""Platform users and store profiles.

A single ``User`` table holds the four actors; ``role`` decides what they
may do.  New accounts start unapproved and cannot obtain tokens until the
operator approves them.  Stores carry a one-to-one ``StoreProfile`` with
the public storefront data and the aggregated rating.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.accounts.constants import SUBSCRIPTION_PRIORITY, Subscription, UserRole
from modules.core.models import BaseModel


class User(BaseModel, AbstractUser):
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, unique=True, null=True, blank=True)
    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.CLIENT,
        db_index=True,
    )
    approved = models.BooleanField(default=False)

    REQUIRED_FIELDS = ["email"]

    class Meta:
        db_table = "users"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role", "approved"], name="users_role_approved_idx"),
        ]

    @property
    def display_name(self) -> str:
        if self.role == UserRole.STORE and hasattr(self, "store_profile"):
            return self.store_profile.store_name
        return self.get_full_name() or self.get_username()

    def __str__(self) -> str:
        return f"{self.get_username()} ({self.role})"


class StoreProfile(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="store_profile",
    )
    store_name = models.CharField(max_length=150)
    street = models.CharField(max_length=150, blank=True, default="")
    number = models.CharField(max_length=20, blank=True, default="")
    colony = models.ForeignKey(
        "logistics.Colony",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stores",
    )
    description = models.TextField(blank=True, default="")
    prep_time = models.CharField(max_length=50, blank=True, default="")
    is_open = models.BooleanField(default=False, db_index=True)
    subscription = models.CharField(
        max_length=10,
        choices=Subscription.choices,
        default=Subscription.STANDARD,
    )
    subscription_priority = models.PositiveSmallIntegerField(default=0)
    average_rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    rating_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "store_profiles"
        ordering = ["-subscription_priority", "-average_rating", "store_name"]

    def save(self, *args, **kwargs) -> None:
        self.subscription_priority = SUBSCRIPTION_PRIORITY.get(self.subscription, 0)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "subscription" in update_fields:
            kwargs["update_fields"] = list(
                set(update_fields) | {"subscription_priority"}
            )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.store_name
