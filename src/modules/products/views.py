"""Product API views.

Exposes the ``ProductService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into HTTP status codes.
"""

from __future__ import annotations

from uuid import UUID

from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.constants import UserRole
from modules.accounts.repositories import UserDjangoRepository
from modules.core.permissions import HasRole, IsApproved
from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.exceptions import ProductActionNotAllowed, ProductNotFound
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories import ProductDjangoRepository
from modules.products.serializers import (
    CreateProductSerializer,
    ProductSerializer,
    UpdateProductSerializer,
)
from modules.products.services import ProductService
from shared.infrastructure.bus import get_notification_bus

NOT_FOUND = {"detail": "Producto no encontrado."}


class ProductViewSet(ListModelMixin, GenericViewSet):
    """Catalog CRUD.  Stores manage their own products; clients see visible ones."""

    filterset_class = ProductFilter
    search_fields = ["name", "description", "category"]
    ordering_fields = ["name", "price", "category", "created_at"]
    ordering = ["category", "name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.all()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(
            repository=ProductDjangoRepository(),
            user_repository=UserDjangoRepository(),
            bus=get_notification_bus(),
        )

    def get_permissions(self):
        if self.action in {"create", "update", "partial_update", "destroy"}:
            return [HasRole(UserRole.STORE, UserRole.MASTER)()]
        return [IsApproved()]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Product.objects.none()
        queryset = self._service.list_products()
        user = self.request.user
        if user.role == UserRole.MASTER:
            return queryset
        if user.role == UserRole.STORE:
            return queryset.filter(Q(is_visible=True) | Q(store_id=user.id))
        return queryset.filter(is_visible=True)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        product = self.get_queryset().filter(pk=pk).first() if _is_uuid(pk) else None
        if product is None:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        serializer = CreateProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            product = self._service.create_product(
                request.user, CreateProductDTO(**serializer.validated_data)
            )
        except ProductActionNotAllowed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        serializer = UpdateProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            product = self._service.update_product(
                request.user, pk, UpdateProductDTO(**serializer.validated_data)
            )
        except ProductNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except ProductActionNotAllowed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(ProductSerializer(product).data)

    update = partial_update

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        try:
            self._service.delete_product(request.user, pk)
        except ProductNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except ProductActionNotAllowed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(status=status.HTTP_204_NO_CONTENT)


def _is_uuid(value: str | None) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True
