"""Django ORM implementation of the Product repository.

Methods return ``None`` / ``False`` instead of raising: the Service Layer
decides how to translate a missing entity into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    def get_by_id(self, id: Any) -> Optional[Product]:
        """Live product by primary key; ``None`` for unknown or malformed ids."""
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None):
        queryset = Product.objects.alive().select_related("store")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_many(self, ids: Iterable[Any]) -> Dict[str, Product]:
        try:
            products = Product.objects.alive().filter(id__in=list(ids))
            return {str(p.id): p for p in products}
        except (ValueError, ValidationError):
            return {}

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        is_new = entity._state.adding
        entity.save()
        logger.info(
            "product.saved",
            product_id=str(entity.id),
            store_id=str(entity.store_id),
            is_new=is_new,
        )
        return entity

    @transaction.atomic
    def delete(self, id: Any) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True
