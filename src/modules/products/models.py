"""Store catalog.

Business rules implemented:
- Each product belongs to exactly one STORE account.
- Price must be greater than zero.
- Hidden products (``is_visible=False``) stay in the catalog but cannot be
  ordered.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel); placed
  orders keep their own snapshot of the product.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel


class Product(SoftDeleteModel):
    store = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="products",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    category = models.CharField(max_length=80)
    image = models.URLField(max_length=500, blank=True, default="")
    is_visible = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["category", "name"]
        indexes = [
            models.Index(fields=["store", "is_visible"], name="products_store_visible_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    def snapshot(self) -> Dict[str, Any]:
        """Immutable copy embedded in order items at purchase time."""
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "category": self.category,
            "image": self.image,
        }

    def __str__(self) -> str:
        return f"{self.name} (${self.price})"
