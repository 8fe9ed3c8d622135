"""Product service layer (Use Cases).

Business rules enforced here:
- A store manages only its own catalog; the operator manages any.
- Price must be greater than zero (validated by DTO).
- Deletion is soft; ``product_delete`` carries only the id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.accounts.constants import UserRole
from modules.products.dtos import ProductOutputDTO
from modules.products.exceptions import ProductActionNotAllowed, ProductNotFound
from modules.products.models import Product
from shared.domain.events import Topics
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.accounts.models import User
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import INotificationBus

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = ("name", "price", "category", "description", "image", "is_visible")


class ProductService:
    """Receives repositories and the bus via constructor injection."""

    def __init__(
        self,
        repository: IProductRepository,
        user_repository: IUserRepository,
        bus: INotificationBus,
    ) -> None:
        self._repo = repository
        self._user_repo = user_repository
        self._bus = bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, actor: User, dto: CreateProductDTO) -> Product:
        """Add a product to the actor's store (or ``dto.store_id`` for the operator).

        Raises:
            ProductActionNotAllowed: actor is not a store/operator, or the
                target store does not exist.
        """
        store_id = self._resolve_store(actor, dto.store_id)
        product = Product(
            store_id=store_id,
            name=dto.name,
            price=dto.price,
            category=dto.category,
            description=dto.description,
            image=dto.image,
            is_visible=dto.is_visible,
        )
        product = self._repo.save(product)
        logger.info(
            "product.created", product_id=str(product.id), store_id=str(store_id)
        )
        self._publish(product)
        return product

    @transaction.atomic
    def update_product(self, actor: User, id: Any, dto: UpdateProductDTO) -> Product:
        """Raises ``ProductNotFound`` / ``ProductActionNotAllowed``."""
        product = self.get_product(id)
        self._check_owner(actor, product)

        for field in EDITABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(product.id))
        self._publish(product)
        return product

    @transaction.atomic
    def delete_product(self, actor: User, id: Any) -> None:
        product = self.get_product(id)
        self._check_owner(actor, product)
        self._repo.delete(product.id)
        publish_on_commit(self._bus, Topics.PRODUCT_DELETE, str(product.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list(filters)

    def get_product(self, id: Any) -> Product:
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_store(self, actor: User, requested: Any) -> Any:
        if actor.role == UserRole.STORE:
            if requested is not None and str(requested) != str(actor.id):
                raise ProductActionNotAllowed("Stores can only add to their own catalog.")
            return actor.id
        if actor.role == UserRole.MASTER:
            if requested is None or self._user_repo.get_store(requested) is None:
                raise ProductActionNotAllowed("A valid store_id is required.")
            return requested
        raise ProductActionNotAllowed("Only stores manage catalogs.")

    def _check_owner(self, actor: User, product: Product) -> None:
        if actor.role == UserRole.MASTER:
            return
        if actor.role != UserRole.STORE or str(product.store_id) != str(actor.id):
            logger.warning(
                "product.not_owner", product_id=str(product.id), actor_id=str(actor.id)
            )
            raise ProductActionNotAllowed("Product belongs to another store.")

    def _publish(self, product: Product) -> None:
        payload = ProductOutputDTO.from_entity(product).model_dump(mode="json")
        publish_on_commit(self._bus, Topics.PRODUCT_UPDATE, payload)
