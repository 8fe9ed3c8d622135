"""Review repository interface."""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.reviews.models import Review


class IReviewRepository(IRepository["Review"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Review:
        """Insert a review."""

    @abstractmethod
    def rating_stats(self, store_id: Any) -> Tuple[Decimal, int]:
        """``(average, count)`` over every review of the store."""
