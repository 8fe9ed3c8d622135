"""Django ORM implementation of the Review repository."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db.models import Avg, Count

from modules.reviews.models import Review
from modules.reviews.repositories.interfaces import IReviewRepository

logger = structlog.get_logger(__name__)

TWO_PLACES = Decimal("0.01")


class ReviewDjangoRepository(IReviewRepository):
    def get_by_id(self, id: Any) -> Optional[Review]:
        try:
            return Review.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None):
        queryset = Review.objects.select_related("customer")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("-created_at")

    def create(self, data: Dict[str, Any]) -> Review:
        review = Review.objects.create(**data)
        logger.info(
            "review.created",
            review_id=str(review.id),
            order_id=str(review.order_id),
            rating=review.rating,
        )
        return review

    def rating_stats(self, store_id: Any) -> Tuple[Decimal, int]:
        stats = Review.objects.filter(store_id=store_id).aggregate(
            average=Avg("rating"), count=Count("id")
        )
        if not stats["count"]:
            return Decimal("0.00"), 0
        average = Decimal(str(stats["average"])).quantize(TWO_PLACES, ROUND_HALF_UP)
        return average, stats["count"]
