"""Logistics API views: colonies, tariff settings and fee preview."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.constants import UserRole
from modules.core.permissions import HasRole
from modules.logistics.dtos import ColonyInputDTO, UpdateSettingsDTO
from modules.logistics.exceptions import ColonyAlreadyExists, ColonyNotFound
from modules.logistics.models import Colony
from modules.logistics.repositories import (
    ColonyDjangoRepository,
    SystemSettingsDjangoRepository,
)
from modules.logistics.serializers import (
    ColonyInputSerializer,
    ColonySerializer,
    FeeQuoteSerializer,
    QuoteQuerySerializer,
    SettingsSerializer,
    UpdateSettingsSerializer,
)
from modules.logistics.services import LogisticsService
from shared.infrastructure.bus import get_notification_bus


def build_logistics_service() -> LogisticsService:
    return LogisticsService(
        colony_repository=ColonyDjangoRepository(),
        settings_repository=SystemSettingsDjangoRepository(),
        bus=get_notification_bus(),
    )


class ColonyViewSet(GenericViewSet):
    """Colonies are public reference data; only the operator edits them."""

    queryset = Colony.objects.all()
    serializer_class = ColonySerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_logistics_service()

    def get_permissions(self):
        if self.action in {"list", "retrieve"}:
            return [AllowAny()]
        return [HasRole(UserRole.MASTER)()]

    def list(self, request: Request) -> Response:
        """GET /api/v1/colonies/"""
        colonies = self._service.list_colonies()
        return Response(ColonySerializer(colonies, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/colonies/{pk}/"""
        try:
            colony = self._service.get_colony(pk)
        except ColonyNotFound:
            return Response(
                {"detail": "Colonia no encontrada."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ColonySerializer(colony).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/colonies/"""
        serializer = ColonyInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            colony = self._service.create_colony(
                ColonyInputDTO(**serializer.validated_data)
            )
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except ColonyAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(ColonySerializer(colony).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/colonies/{pk}/"""
        serializer = ColonyInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            colony = self._service.update_colony(
                pk, ColonyInputDTO(**serializer.validated_data)
            )
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except ColonyNotFound:
            return Response(
                {"detail": "Colonia no encontrada."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except ColonyAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(ColonySerializer(colony).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/colonies/{pk}/"""
        try:
            self._service.delete_colony(pk)
        except ColonyNotFound:
            return Response(
                {"detail": "Colonia no encontrada."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class SettingsView(APIView):
    """GET/PUT /api/v1/settings/ (tariff singleton)."""

    def get_permissions(self):
        if self.request.method == "GET":
            return [IsAuthenticated()]
        return [HasRole(UserRole.MASTER)()]

    def get(self, request: Request) -> Response:
        settings = build_logistics_service().get_settings()
        return Response(SettingsSerializer(settings).data)

    def put(self, request: Request) -> Response:
        serializer = UpdateSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        settings = build_logistics_service().update_settings(
            UpdateSettingsDTO(**serializer.validated_data)
        )
        return Response(SettingsSerializer(settings).data)

    patch = put


class DeliveryQuoteView(APIView):
    """GET /api/v1/delivery-quote/?origin=<colony>&destination=<colony>

    Preview only: the order is always re-quoted server-side at creation.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        params = QuoteQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        quote = build_logistics_service().quote_between(
            params.validated_data["origin"],
            params.validated_data["destination"],
        )
        data = {
            "distance_km": quote.distance_km,
            "driver_fee": quote.driver_fee,
            "delivery_fee": quote.delivery_fee,
            "platform_fee": quote.platform_fee,
            "reconciliation_required": quote.reconciliation_required,
        }
        return Response(FeeQuoteSerializer(data).data)
