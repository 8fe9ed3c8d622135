"""Account repository interface.

Other modules read users and stores through this contract only
(``get_by_id`` / ``get_store``); they never query ``accounts`` tables.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import StoreProfile, User


class IUserRepository(IRepository["User"]):
    @abstractmethod
    def create_user(
        self,
        data: Dict[str, Any],
        password: str,
        store: Optional[Dict[str, Any]] = None,
    ) -> User:
        """Create a user (and its store profile) atomically."""

    @abstractmethod
    def update(
        self,
        user: User,
        user_fields: Dict[str, Any],
        store_fields: Optional[Dict[str, Any]] = None,
        password: Optional[str] = None,
    ) -> User:
        """Persist changed account and profile fields."""

    @abstractmethod
    def get_store(self, store_id: Any) -> Optional[User]:
        """Return an active STORE user with its profile, ``None`` otherwise."""

    @abstractmethod
    def list_stores(self, open_only: bool = False) -> List[User]:
        """Approved, active stores ordered by subscription priority."""

    @abstractmethod
    def exists(self, **lookups: Any) -> bool:
        """Uniqueness probe (username / email / phone)."""

    @abstractmethod
    def lock_store_profile(self, store_id: Any) -> Optional[StoreProfile]:
        """Fetch the store profile with a row lock (caller holds a transaction)."""
