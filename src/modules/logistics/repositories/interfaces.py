"""Logistics repository interfaces.

Order creation only needs two narrow reads from this module: a colony by
id and the current tariff.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.logistics.models import Colony, SystemSettings


class IColonyRepository(IRepository["Colony"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Colony:
        """Insert a new colony."""

    @abstractmethod
    def update(self, id: Any, data: Dict[str, Any]) -> Optional[Colony]:
        """Overwrite the given fields; ``None`` when the colony is missing."""

    @abstractmethod
    def delete(self, id: Any) -> bool:
        """Remove a colony; ``False`` when it did not exist."""

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Colony]:
        """Case-insensitive lookup used to enforce unique names."""


class ISystemSettingsRepository(ABC):
    """Access to the tariff singleton."""

    @abstractmethod
    def get(self) -> Optional[SystemSettings]:
        """Return the singleton without creating it."""

    @abstractmethod
    def load(self) -> SystemSettings:
        """Return the singleton, creating it with defaults when missing."""

    @abstractmethod
    def update(self, data: Dict[str, Any]) -> SystemSettings:
        """Overwrite the given tariff fields."""
