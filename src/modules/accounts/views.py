"""Account API views.

Domain exceptions raised by ``AccountService`` are translated into HTTP
status codes here; nothing else is caught.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.constants import UserRole
from modules.accounts.dtos import RegisterUserDTO, UpdateUserDTO
from modules.accounts.exceptions import (
    AccountActionNotAllowed,
    AccountAlreadyExists,
    UserNotFound,
)
from modules.accounts.filters import UserFilter
from modules.accounts.models import User
from modules.accounts.repositories import UserDjangoRepository
from modules.accounts.serializers import (
    ApprovalSerializer,
    RegisterSerializer,
    StoreListSerializer,
    UpdateUserSerializer,
    UserSerializer,
)
from modules.accounts.services import AccountService
from modules.core.permissions import HasRole, IsApproved
from shared.infrastructure.bus import get_notification_bus

NOT_FOUND = {"detail": "Usuario no encontrado."}


def build_account_service() -> AccountService:
    return AccountService(
        repository=UserDjangoRepository(), bus=get_notification_bus()
    )


class RegisterView(APIView):
    """POST /api/v1/auth/register/ (public; account starts unapproved)."""

    permission_classes = [AllowAny]
    throttle_scope = "registration"

    def post(self, request: Request) -> Response:
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = RegisterUserDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response(
                {"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST
            )
        try:
            user = build_account_service().register(dto)
        except AccountAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class UserViewSet(GenericViewSet):
    """Operator back-office over accounts; users may edit their own."""

    queryset = User.objects.all()
    serializer_class = UserSerializer
    filterset_class = UserFilter
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    search_fields = ["username", "email", "first_name", "last_name"]
    ordering_fields = ["created_at", "username"]
    ordering = ["-created_at", "-id"]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_account_service()

    def get_permissions(self):
        if self.action in {"list", "destroy", "approve"}:
            return [HasRole(UserRole.MASTER)()]
        return [IsApproved()]

    def get_queryset(self):
        return self._service.list_users()

    def list(self, request: Request) -> Response:
        """GET /api/v1/users/"""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = UserSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/users/{pk}/ (operator, or the account itself)."""
        if request.user.role != UserRole.MASTER and str(request.user.id) != str(pk):
            return Response(
                {"detail": "Acción no autorizada."}, status=status.HTTP_403_FORBIDDEN
            )
        try:
            user = self._service.get_user(pk)
        except UserNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(UserSerializer(user).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/users/{pk}/"""
        serializer = UpdateUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            user = self._service.update_user(
                request.user, pk, UpdateUserDTO(**serializer.validated_data)
            )
        except UserNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except AccountActionNotAllowed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except AccountAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(UserSerializer(user).data)

    update = partial_update

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/users/{pk}/ (deactivates the account)."""
        try:
            self._service.deactivate_user(pk)
        except UserNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except AccountActionNotAllowed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/users/{pk}/approve/ with ``{"approved": bool}``."""
        serializer = ApprovalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            user = self._service.set_approval(pk, serializer.validated_data["approved"])
        except UserNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(UserSerializer(user).data)


class StoreListView(APIView):
    """GET /api/v1/stores/?open=true (storefront directory, priority first)."""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        open_only = request.query_params.get("open", "").lower() in {"1", "true"}
        stores = build_account_service().list_stores(open_only=open_only)
        return Response(StoreListSerializer(stores, many=True).data)
