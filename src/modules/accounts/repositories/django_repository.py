"""Django ORM implementation of the account repository.

Methods return ``None`` / ``False`` for missing rows; the service layer
decides which domain exception that becomes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.accounts.constants import UserRole
from modules.accounts.models import StoreProfile, User
from modules.accounts.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)


class UserDjangoRepository(IUserRepository):
    def get_by_id(self, id: Any) -> Optional[User]:
        try:
            return User.objects.select_related("store_profile").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None):
        queryset = User.objects.select_related("store_profile")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def exists(self, **lookups: Any) -> bool:
        return User.objects.filter(**lookups).exists()

    @transaction.atomic
    def create_user(
        self,
        data: Dict[str, Any],
        password: str,
        store: Optional[Dict[str, Any]] = None,
    ) -> User:
        user = User(**data)
        user.set_password(password)
        user.save()
        if store is not None:
            StoreProfile.objects.create(user=user, **store)
        logger.info("user.created", user_id=str(user.id), role=user.role)
        return self.get_by_id(user.id)

    @transaction.atomic
    def update(
        self,
        user: User,
        user_fields: Dict[str, Any],
        store_fields: Optional[Dict[str, Any]] = None,
        password: Optional[str] = None,
    ) -> User:
        for field, value in user_fields.items():
            setattr(user, field, value)
        changed = list(user_fields)
        if password:
            user.set_password(password)
            changed.append("password")
        if changed:
            user.save(update_fields=changed)

        if store_fields:
            profile = user.store_profile
            for field, value in store_fields.items():
                setattr(profile, field, value)
            profile.save(update_fields=list(store_fields))

        logger.info(
            "user.updated",
            user_id=str(user.id),
            fields=sorted(changed + list(store_fields or {})),
        )
        return user

    def get_store(self, store_id: Any) -> Optional[User]:
        try:
            return (
                User.objects.select_related("store_profile")
                .filter(
                    id=store_id,
                    role=UserRole.STORE,
                    is_active=True,
                    store_profile__isnull=False,
                )
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list_stores(self, open_only: bool = False) -> List[User]:
        queryset = User.objects.select_related("store_profile").filter(
            role=UserRole.STORE,
            approved=True,
            is_active=True,
            store_profile__isnull=False,
        )
        if open_only:
            queryset = queryset.filter(store_profile__is_open=True)
        return list(
            queryset.order_by(
                "-store_profile__subscription_priority",
                "-store_profile__average_rating",
                "store_profile__store_name",
            )
        )

    def lock_store_profile(self, store_id: Any) -> Optional[StoreProfile]:
        return StoreProfile.objects.select_for_update().filter(user_id=store_id).first()
