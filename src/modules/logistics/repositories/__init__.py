"""Logistics repositories package."""

from modules.logistics.repositories.django_repository import (
    ColonyDjangoRepository,
    SystemSettingsDjangoRepository,
)
from modules.logistics.repositories.interfaces import (
    IColonyRepository,
    ISystemSettingsRepository,
)

__all__ = [
    "ColonyDjangoRepository",
    "IColonyRepository",
    "ISystemSettingsRepository",
    "SystemSettingsDjangoRepository",
]
