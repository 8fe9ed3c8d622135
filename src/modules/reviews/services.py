"""Review aggregation.

A review is accepted at most once per delivered order: the order's
``is_reviewed`` flag is flipped by a conditional write guarded on the
customer, the DELIVERED status and the flag itself.  The store rating is
then recomputed from every accepted review while the store profile row is
locked, so concurrent reviews of the same store cannot interleave.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from django.db import transaction

from modules.accounts.dtos import UserOutputDTO
from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderOutputDTO
from modules.reviews.exceptions import ReviewRejected
from shared.domain.events import Topics
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.reviews.dtos import SubmitReviewDTO
    from modules.reviews.models import Review
    from modules.reviews.repositories.interfaces import IReviewRepository
    from shared.domain.bus import INotificationBus

logger = structlog.get_logger(__name__)


class ReviewAggregator:
    def __init__(
        self,
        review_repository: IReviewRepository,
        order_repository: IOrderRepository,
        user_repository: IUserRepository,
        bus: INotificationBus,
    ) -> None:
        self._review_repo = review_repository
        self._order_repo = order_repository
        self._user_repo = user_repository
        self._bus = bus

    @transaction.atomic
    def submit_review(self, dto: SubmitReviewDTO) -> Review:
        """Record a review and refresh the store's average rating.

        Raises:
            ReviewRejected: the order is missing, belongs to someone else,
                is not DELIVERED, or was already reviewed.
        """
        log = logger.bind(order_id=str(dto.order_id), customer_id=str(dto.customer_id))

        accepted = self._order_repo.conditional_update(
            dto.order_id,
            expected={
                "customer_id": dto.customer_id,
                "status": OrderStatus.DELIVERED,
                "is_reviewed": False,
            },
            changes={"is_reviewed": True},
        )
        if not accepted:
            log.info("review.rejected")
            raise ReviewRejected("This order cannot be reviewed.")

        order = self._order_repo.get_by_id(dto.order_id)
        review = self._review_repo.create(
            {
                "order_id": order.id,
                "store_id": order.store_id,
                "customer_id": dto.customer_id,
                "rating": dto.rating,
                "comment": dto.comment,
            }
        )

        self._user_repo.lock_store_profile(order.store_id)
        store = self._user_repo.get_by_id(order.store_id)
        average, count = self._review_repo.rating_stats(order.store_id)
        store = self._user_repo.update(
            store, {}, {"average_rating": average, "rating_count": count}
        )
        log.info(
            "review.store_rating_updated",
            store_id=str(order.store_id),
            average_rating=str(average),
            rating_count=count,
        )

        publish_on_commit(
            self._bus,
            Topics.USER_UPDATE,
            UserOutputDTO.from_entity(store).model_dump(mode="json"),
        )
        publish_on_commit(
            self._bus,
            Topics.ORDER_UPDATE,
            OrderOutputDTO.from_entity(order).model_dump(mode="json"),
        )
        return review

    def list_reviews(self, store_id: Any):
        """Reviews of a store, newest first."""
        return self._review_repo.list({"store_id": store_id})
