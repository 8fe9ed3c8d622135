"""Account DTOs for the Service Layer.

Contracts between DRF serializers and ``AccountService``.  Input DTOs
forbid unknown fields; output DTOs feed the ``user_update`` notification.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from modules.accounts.constants import SELF_REGISTERABLE_ROLES, Subscription, UserRole

if TYPE_CHECKING:
    from modules.accounts.models import StoreProfile, User


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class StoreProfileInputDTO(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    store_name: str = Field(min_length=1, max_length=150)
    street: str = ""
    number: str = ""
    colony_id: Optional[UUID] = None
    description: str = ""
    prep_time: str = ""


class RegisterUserDTO(BaseModel):
    """Self-service registration.  ``MASTER`` accounts cannot self-register."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str = Field(min_length=3, max_length=150)
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = ""
    last_name: str = ""
    phone: str = Field(min_length=7, max_length=20)
    role: UserRole
    store: Optional[StoreProfileInputDTO] = None

    @model_validator(mode="after")
    def check_role(self) -> Self:
        if self.role not in SELF_REGISTERABLE_ROLES:
            raise ValueError(f"Role {self.role} cannot self-register.")
        if self.role == UserRole.STORE and self.store is None:
            raise ValueError("Store accounts require store profile data.")
        if self.role != UserRole.STORE and self.store is not None:
            raise ValueError("Only store accounts carry a store profile.")
        return self


class UpdateUserDTO(BaseModel):
    """Partial account update.  ``None`` means "leave unchanged"."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)
    # store profile
    store_name: Optional[str] = None
    street: Optional[str] = None
    number: Optional[str] = None
    colony_id: Optional[UUID] = None
    description: Optional[str] = None
    prep_time: Optional[str] = None
    is_open: Optional[bool] = None
    subscription: Optional[Subscription] = None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class StoreProfileOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    store_name: str
    street: str
    number: str
    colony_id: Optional[UUID]
    description: str
    prep_time: str
    is_open: bool
    subscription: str
    subscription_priority: int
    average_rating: Decimal
    rating_count: int

    @classmethod
    def from_entity(cls, profile: StoreProfile) -> StoreProfileOutputDTO:
        return cls(
            store_name=profile.store_name,
            street=profile.street,
            number=profile.number,
            colony_id=profile.colony_id,
            description=profile.description,
            prep_time=profile.prep_time,
            is_open=profile.is_open,
            subscription=profile.subscription,
            subscription_priority=profile.subscription_priority,
            average_rating=profile.average_rating,
            rating_count=profile.rating_count,
        )


class UserOutputDTO(BaseModel):
    """Public view of an account (never carries the password hash)."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    username: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str]
    role: str
    approved: bool
    is_active: bool
    created_at: datetime
    store: Optional[StoreProfileOutputDTO] = None

    @classmethod
    def from_entity(cls, user: User) -> UserOutputDTO:
        profile = None
        if user.role == UserRole.STORE:
            profile = getattr(user, "store_profile", None)
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            role=user.role,
            approved=user.approved,
            is_active=user.is_active,
            created_at=user.created_at,
            store=StoreProfileOutputDTO.from_entity(profile) if profile else None,
        )
