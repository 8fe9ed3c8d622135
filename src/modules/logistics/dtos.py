"""Logistics DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from modules.logistics.models import Colony, SystemSettings


class ColonyInputDTO(BaseModel):
    """Create/replace payload for a colony.

    Coordinates default to ``0`` (placeholder) so an operator can register a
    colony before its centroid is known.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=120)
    lat: float = Field(default=0, ge=-90, le=90)
    lng: float = Field(default=0, ge=-180, le=180)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank.")
        return v


class ColonyOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    lat: float
    lng: float

    @classmethod
    def from_entity(cls, colony: Colony) -> ColonyOutputDTO:
        return cls(id=colony.id, name=colony.name, lat=colony.lat, lng=colony.lng)


class UpdateSettingsDTO(BaseModel):
    """Partial tariff update; omitted fields keep their current value."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_fee: Optional[int] = Field(default=None, ge=0)
    km_rate: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=8, decimal_places=2
    )


class SettingsOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_fee: int
    km_rate: Decimal
    updated_at: datetime

    @classmethod
    def from_entity(cls, settings: SystemSettings) -> SettingsOutputDTO:
        return cls(
            base_fee=settings.base_fee,
            km_rate=settings.km_rate,
            updated_at=settings.updated_at,
        )
