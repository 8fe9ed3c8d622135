"""Review API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.constants import UserRole
from modules.accounts.repositories import UserDjangoRepository
from modules.core.permissions import HasRole, IsApproved
from modules.orders.repositories import OrderDjangoRepository
from modules.reviews.dtos import SubmitReviewDTO
from modules.reviews.exceptions import ReviewRejected
from modules.reviews.models import Review
from modules.reviews.repositories import ReviewDjangoRepository
from modules.reviews.serializers import (
    ReviewQuerySerializer,
    ReviewSerializer,
    SubmitReviewSerializer,
)
from modules.reviews.services import ReviewAggregator
from shared.infrastructure.bus import get_notification_bus


class ReviewViewSet(GenericViewSet):
    """POST a review of a delivered order; GET the reviews of a store."""

    queryset = Review.objects.all()
    serializer_class = ReviewSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ReviewAggregator(
            review_repository=ReviewDjangoRepository(),
            order_repository=OrderDjangoRepository(),
            user_repository=UserDjangoRepository(),
            bus=get_notification_bus(),
        )

    def get_permissions(self):
        if self.action == "create":
            return [HasRole(UserRole.CLIENT)()]
        return [IsApproved()]

    def list(self, request: Request) -> Response:
        """GET /api/v1/reviews/?store=<id>"""
        params = ReviewQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        reviews = self._service.list_reviews(params.validated_data["store"])

        page = self.paginate_queryset(reviews)
        return self.get_paginated_response(ReviewSerializer(page, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/reviews/"""
        serializer = SubmitReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            review = self._service.submit_review(
                SubmitReviewDTO(customer_id=request.user.id, **serializer.validated_data)
            )
        except ReviewRejected:
            return Response(
                {"detail": "El pedido no puede ser calificado."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)
