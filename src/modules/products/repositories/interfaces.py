"""Product repository interface.

Order creation reads authoritative prices through ``get_many``; it never
trusts prices sent by the client.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List live (not soft-deleted) products with optional filters."""

    @abstractmethod
    def get_many(self, ids: Iterable[Any]) -> Dict[str, Product]:
        """Live products keyed by ``str(id)``; unknown ids are absent."""

    @abstractmethod
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""

    @abstractmethod
    def delete(self, id: Any) -> bool:
        """Soft-delete; ``False`` when the product does not exist."""
