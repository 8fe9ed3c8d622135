"""Account service layer (use cases).

Business rules enforced here:
- Only STORE, DELIVERY and CLIENT accounts can self-register; they start
  unapproved.
- Username, email and phone are unique.
- The operator (MASTER) edits any account; everyone else edits only their
  own contact data, and stores their own storefront (not the subscription).
- Deleting an account deactivates it: orders keep PROTECT references.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.accounts.constants import UserRole
from modules.accounts.dtos import UserOutputDTO
from modules.accounts.exceptions import (
    AccountActionNotAllowed,
    AccountAlreadyExists,
    UserNotFound,
)
from shared.domain.events import Topics
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.accounts.dtos import RegisterUserDTO, UpdateUserDTO
    from modules.accounts.models import User
    from modules.accounts.repositories.interfaces import IUserRepository
    from shared.domain.bus import INotificationBus

logger = structlog.get_logger(__name__)

CONTACT_FIELDS = ("first_name", "last_name", "email", "phone")
STOREFRONT_FIELDS = (
    "store_name",
    "street",
    "number",
    "colony_id",
    "description",
    "prep_time",
    "is_open",
)
OPERATOR_ONLY_FIELDS = ("subscription",)


class AccountService:
    """Receives an ``IUserRepository`` and the bus via constructor injection."""

    def __init__(self, repository: IUserRepository, bus: INotificationBus) -> None:
        self._repo = repository
        self._bus = bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def register(self, dto: RegisterUserDTO) -> User:
        """Create an unapproved account.

        Raises:
            AccountAlreadyExists: username, email or phone already taken.
        """
        log = logger.bind(role=dto.role)
        for field in ("username", "email", "phone"):
            value = getattr(dto, field)
            lookup = {f"{field}__iexact": value} if field != "phone" else {field: value}
            if self._repo.exists(**lookup):
                log.warning("user.duplicate", field=field)
                raise AccountAlreadyExists(f"{field} already registered.")

        store = dto.store.model_dump() if dto.store is not None else None
        user = self._repo.create_user(
            data={
                "username": dto.username,
                "email": dto.email,
                "first_name": dto.first_name,
                "last_name": dto.last_name,
                "phone": dto.phone,
                "role": dto.role,
                "approved": False,
            },
            password=dto.password,
            store=store,
        )
        log.info("user.registered", user_id=str(user.id))
        self._publish(user)
        return user

    @transaction.atomic
    def update_user(self, actor: User, user_id: Any, dto: UpdateUserDTO) -> User:
        """Apply a partial update on behalf of ``actor``.

        Raises:
            UserNotFound: target does not exist.
            AccountActionNotAllowed: actor may not touch this account/field.
            AccountAlreadyExists: new email or phone collides.
        """
        user = self.get_user(user_id)
        changes = dto.model_dump(exclude_none=True)
        password = changes.pop("password", None)

        is_operator = actor.role == UserRole.MASTER
        if not is_operator and str(actor.id) != str(user.id):
            raise AccountActionNotAllowed("Cannot modify another account.")
        if not is_operator and any(f in changes for f in OPERATOR_ONLY_FIELDS):
            raise AccountActionNotAllowed("Only the operator can change subscriptions.")

        store_fields = {
            f: changes.pop(f)
            for f in (*STOREFRONT_FIELDS, *OPERATOR_ONLY_FIELDS)
            if f in changes
        }
        if store_fields and user.role != UserRole.STORE:
            raise AccountActionNotAllowed("Only store accounts have a storefront.")

        for field in ("email", "phone"):
            new_value = changes.get(field)
            if new_value is None or new_value == getattr(user, field):
                continue
            if self._repo.exists(**{field: new_value}):
                raise AccountAlreadyExists(f"{field} already registered.")

        user = self._repo.update(user, changes, store_fields, password=password)
        logger.info("user.profile_updated", user_id=str(user.id), actor_id=str(actor.id))
        self._publish(user)
        return user

    @transaction.atomic
    def set_approval(self, user_id: Any, approved: bool) -> User:
        user = self.get_user(user_id)
        user = self._repo.update(user, {"approved": approved})
        logger.info("user.approval_changed", user_id=str(user.id), approved=approved)
        self._publish(user)
        return user

    @transaction.atomic
    def deactivate_user(self, user_id: Any) -> None:
        """Disable login and approval; the row stays for order history."""
        user = self.get_user(user_id)
        if user.role == UserRole.MASTER:
            raise AccountActionNotAllowed("The operator account cannot be removed.")
        self._repo.update(user, {"is_active": False, "approved": False})
        logger.info("user.deactivated", user_id=str(user.id))
        publish_on_commit(self._bus, Topics.USER_DELETE, str(user.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_user(self, user_id: Any) -> User:
        user = self._repo.get_by_id(user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} not found.")
        return user

    def list_users(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list(filters)

    def list_stores(self, open_only: bool = False) -> List[User]:
        return self._repo.list_stores(open_only=open_only)

    def _publish(self, user: User) -> None:
        payload = UserOutputDTO.from_entity(user).model_dump(mode="json")
        publish_on_commit(self._bus, Topics.USER_UPDATE, payload)
