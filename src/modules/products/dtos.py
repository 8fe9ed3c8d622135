"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: input for partial product updates.
- ``ProductOutputDTO``: full product, also the ``product_update`` payload.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from modules.products.models import Product


def _positive_price(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is not None and v <= 0:
        raise ValueError("Price must be greater than zero.")
    return v


class CreateProductDTO(BaseModel):
    """``store_id`` is only honoured for the operator; stores create in their own."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(max_digits=10, decimal_places=2)
    category: str = Field(min_length=1, max_length=80)
    description: str = ""
    image: str = ""
    is_visible: bool = True
    store_id: Optional[UUID] = None

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        return _positive_price(v)


class UpdateProductDTO(BaseModel):
    """All fields optional: only supplied fields are updated."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    category: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    is_visible: Optional[bool] = None

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _positive_price(v)


class ProductOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    store_id: UUID
    name: str
    description: str
    price: Decimal
    category: str
    image: str
    is_visible: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: Product) -> ProductOutputDTO:
        return cls(
            id=product.id,
            store_id=product.store_id,
            name=product.name,
            description=product.description,
            price=product.price,
            category=product.category,
            image=product.image,
            is_visible=product.is_visible,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )
