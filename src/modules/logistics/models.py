"""Colony reference data and the platform tariff singleton.

Both are operator-managed and overwritten last-writer-wins.  Orders never
reference them after creation: the fee quote is persisted on the order.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.logistics.fees import GeoPoint, Tariff


def default_base_fee() -> int:
    return int(settings.DEFAULT_BASE_FEE)


def default_km_rate() -> Decimal:
    return Decimal(str(settings.DEFAULT_KM_RATE))


class Colony(BaseModel):
    """Neighbourhood centroid used to price deliveries.

    ``lat == lng == 0`` is the placeholder for a colony created without
    coordinates; it cannot be used for a fee quote.
    """

    name = models.CharField(max_length=120, unique=True)
    lat = models.FloatField(
        default=0,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    lng = models.FloatField(
        default=0,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )

    class Meta:
        db_table = "colonies"
        ordering = ["name"]
        verbose_name_plural = "colonies"

    @property
    def is_placeholder(self) -> bool:
        return self.lat == 0 and self.lng == 0

    def as_point(self) -> Optional[GeoPoint]:
        if self.is_placeholder:
            return None
        return GeoPoint(lat=self.lat, lng=self.lng)

    def __str__(self) -> str:
        return self.name


class SystemSettings(BaseModel):
    """Singleton row holding the tariff (``base_fee`` + ``km_rate``)."""

    SINGLETON_KEY = "default"

    key = models.CharField(
        max_length=20, unique=True, default=SINGLETON_KEY, editable=False
    )
    base_fee = models.PositiveIntegerField(default=default_base_fee)
    km_rate = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=default_km_rate,
        validators=[MinValueValidator(Decimal("0"))],
    )

    class Meta:
        db_table = "system_settings"
        verbose_name_plural = "system settings"

    @classmethod
    def load(cls) -> SystemSettings:
        """Return the singleton, creating it with the configured defaults."""
        instance, _ = cls.objects.get_or_create(key=cls.SINGLETON_KEY)
        return instance

    def as_tariff(self) -> Tariff:
        return Tariff(base_fee=Decimal(self.base_fee), km_rate=Decimal(self.km_rate))

    def __str__(self) -> str:
        return f"base_fee={self.base_fee} km_rate={self.km_rate}"
