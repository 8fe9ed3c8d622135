"""Delivery fee calculation.

Pure functions: no database access, no clock, no logging.  The tariff is
passed in explicitly so a quote only depends on its arguments.

Fees are whole currency units.  Distances are great-circle (haversine)
kilometres between colony centroids:

    driver_fee   = max(ceil(distance_km * km_rate), ceil(km_rate))
    delivery_fee = driver_fee + base_fee
    platform_fee = delivery_fee - driver_fee

When either endpoint cannot be resolved, or no tariff is configured, the
quote is zero and flagged for manual reconciliation instead of failing the
order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal
from typing import Optional

EARTH_RADIUS_KM = 6371.0

ZERO = Decimal("0")


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    @property
    def is_placeholder(self) -> bool:
        """``(0, 0)`` marks a colony whose coordinates were never captured."""
        return self.lat == 0 and self.lng == 0


@dataclass(frozen=True)
class Tariff:
    """Snapshot of the platform tariff taken at order-creation time."""

    base_fee: Decimal
    km_rate: Decimal

    def __post_init__(self) -> None:
        if self.base_fee < 0 or self.km_rate < 0:
            raise ValueError("Tariff values must be non-negative.")


@dataclass(frozen=True)
class FeeQuote:
    driver_fee: Decimal
    delivery_fee: Decimal
    distance_km: Optional[float] = None
    reconciliation_required: bool = False

    @property
    def platform_fee(self) -> Decimal:
        return self.delivery_fee - self.driver_fee

    @classmethod
    def unresolved(cls) -> FeeQuote:
        return cls(driver_fee=ZERO, delivery_fee=ZERO, reconciliation_required=True)


def haversine_km(origin: GeoPoint, destination: GeoPoint) -> float:
    """Great-circle distance in kilometres."""
    lat1 = math.radians(origin.lat)
    lat2 = math.radians(destination.lat)
    d_lat = math.radians(destination.lat - origin.lat)
    d_lng = math.radians(destination.lng - origin.lng)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _ceil(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_CEILING)


def quote_for_distance(distance_km: float, tariff: Tariff) -> FeeQuote:
    """Price a trip of ``distance_km``; the driver always earns at least one km."""
    if distance_km < 0:
        raise ValueError("Distance cannot be negative.")

    km_rate = Decimal(tariff.km_rate)
    driver_fee = max(_ceil(Decimal(str(distance_km)) * km_rate), _ceil(km_rate))
    delivery_fee = driver_fee + _ceil(Decimal(tariff.base_fee))
    return FeeQuote(
        driver_fee=driver_fee,
        delivery_fee=delivery_fee,
        distance_km=distance_km,
    )


def quote_delivery(
    origin: Optional[GeoPoint],
    destination: Optional[GeoPoint],
    tariff: Optional[Tariff],
) -> FeeQuote:
    """Quote the delivery between two colony centroids.

    ``None`` or placeholder points and a missing tariff yield
    ``FeeQuote.unresolved()``.
    """
    if tariff is None or origin is None or destination is None:
        return FeeQuote.unresolved()
    if origin.is_placeholder or destination.is_placeholder:
        return FeeQuote.unresolved()
    return quote_for_distance(haversine_km(origin, destination), tariff)
