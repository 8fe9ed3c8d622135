"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.constants import UserRole
from modules.accounts.repositories import UserDjangoRepository
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import HasRole, IsApproved
from modules.logistics.repositories import (
    ColonyDjangoRepository,
    SystemSettingsDjangoRepository,
)
from modules.orders.assignment import AssignmentArbiter
from modules.orders.dtos import CreateOrderDTO, TransitionOrderDTO
from modules.orders.exceptions import (
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    ProductUnavailable,
    StaleWrite,
    StoreClosed,
    StoreNotFound,
    Unauthorized,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    TransitionOrderSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories import ProductDjangoRepository
from shared.infrastructure.bus import get_notification_bus

NOT_FOUND = {"detail": "Pedido no encontrado."}


def build_order_service() -> OrderService:
    order_repository = OrderDjangoRepository()
    bus = get_notification_bus()
    return OrderService(
        order_repository=order_repository,
        user_repository=UserDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        colony_repository=ColonyDjangoRepository(),
        settings_repository=SystemSettingsDjangoRepository(),
        arbiter=AssignmentArbiter(order_repository, bus),
        bus=bus,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all writes go through the
    service/repository layer and orders are never deleted.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "store_name", "customer_name"]
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action == "create":
            return [HasRole(UserRole.CLIENT)()]
        if self.action in {"claim", "available"}:
            return [HasRole(UserRole.DELIVERY)()]
        return [IsApproved()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "available"}:
            throttle_scope = "order_listing"
        elif self.action == "claim":
            throttle_scope = "order_claim"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.visible_to(self.request.user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Prices, fees and totals are computed server-side; the payload only
        carries the intent (store, items, payment method, address).
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderDTO(
                customer_id=request.user.id, **create_serializer.validated_data
            )
            order = self._service.create_order(dto)
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except StoreNotFound:
            return Response(
                {"detail": "Tienda no encontrada."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except StoreClosed:
            return Response(
                {"detail": "La tienda no está recibiendo pedidos."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except ProductUnavailable as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Scoped to the caller (participants only, operator sees all).
        Filtering, ordering and pagination as configured on the view.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._visible_order(pk)
        if order is None:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"])
    def available(self, request: Request) -> Response:
        """GET /api/v1/orders/available/

        READY orders still waiting for a driver.  The list can be stale:
        claiming is what decides.
        """
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(self._service.list_available(), request)
        return paginator.get_paginated_response(OrderSerializer(page, many=True).data)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="status")
    def transition(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/status/"""
        serializer = TransitionOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = TransitionOrderDTO(
                order_id=pk,
                actor_id=request.user.id,
                actor_role=request.user.role,
                target_status=data["status"],
                driver_id=data.get("driver_id"),
                notes=data["notes"],
            )
        except PydanticValidationError:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)

        try:
            order = self._service.transition_order(dto)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidTransition as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except Unauthorized as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except StaleWrite as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def claim(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/claim/

        First driver wins; everyone else gets 409.
        """
        try:
            order = self._service.claim_order(pk, request.user.id)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except StaleWrite as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(OrderSerializer(order).data)

    def _visible_order(self, pk: str | None) -> Order | None:
        try:
            return self.get_queryset().filter(pk=pk).first()
        except (ValueError, ValidationError):
            return None
