"""Review DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from modules.reviews.models import Review


class SubmitReviewDTO(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    order_id: UUID
    customer_id: UUID
    rating: int = Field(ge=1, le=5)
    comment: str = Field(default="", max_length=1000)


class ReviewOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    order_id: UUID
    store_id: UUID
    customer_id: UUID
    rating: int
    comment: str
    created_at: datetime

    @classmethod
    def from_entity(cls, review: Review) -> ReviewOutputDTO:
        return cls(
            id=review.id,
            order_id=review.order_id,
            store_id=review.store_id,
            customer_id=review.customer_id,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
        )
