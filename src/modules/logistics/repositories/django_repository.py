"""Django ORM implementation of the logistics repositories."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.logistics.models import Colony, SystemSettings
from modules.logistics.repositories.interfaces import (
    IColonyRepository,
    ISystemSettingsRepository,
)

logger = structlog.get_logger(__name__)


class ColonyDjangoRepository(IColonyRepository):
    def get_by_id(self, id: Any) -> Optional[Colony]:
        """Return ``None`` for non-existent or malformed ids."""
        if id in (None, ""):
            return None
        try:
            return Colony.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_name(self, name: str) -> Optional[Colony]:
        return Colony.objects.filter(name__iexact=name).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Colony]:
        queryset = Colony.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def create(self, data: Dict[str, Any]) -> Colony:
        colony = Colony.objects.create(**data)
        logger.info("colony.created", colony_id=str(colony.id))
        return colony

    def update(self, id: Any, data: Dict[str, Any]) -> Optional[Colony]:
        colony = self.get_by_id(id)
        if colony is None:
            return None
        for field, value in data.items():
            setattr(colony, field, value)
        colony.save(update_fields=list(data))
        logger.info("colony.updated", colony_id=str(id))
        return colony

    def delete(self, id: Any) -> bool:
        colony = self.get_by_id(id)
        if colony is None:
            return False
        colony.delete()
        logger.info("colony.deleted", colony_id=str(id))
        return True


class SystemSettingsDjangoRepository(ISystemSettingsRepository):
    def get(self) -> Optional[SystemSettings]:
        return SystemSettings.objects.filter(key=SystemSettings.SINGLETON_KEY).first()

    def load(self) -> SystemSettings:
        return SystemSettings.load()

    def update(self, data: Dict[str, Any]) -> SystemSettings:
        settings = self.load()
        for field, value in data.items():
            setattr(settings, field, value)
        settings.save(update_fields=list(data))
        logger.info("settings.updated", fields=sorted(data))
        return settings
