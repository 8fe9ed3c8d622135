"""Logistics service layer: colonies and the platform tariff.

Every mutation publishes its topic once the transaction commits
(``colony_update`` / ``colony_delete`` / ``settings_update``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.logistics.dtos import ColonyOutputDTO, SettingsOutputDTO
from modules.logistics.exceptions import ColonyAlreadyExists, ColonyNotFound
from modules.logistics.fees import FeeQuote, quote_delivery
from shared.domain.events import Topics
from shared.infrastructure.bus import publish_on_commit

if TYPE_CHECKING:
    from modules.logistics.dtos import ColonyInputDTO, UpdateSettingsDTO
    from modules.logistics.fees import Tariff
    from modules.logistics.models import Colony, SystemSettings
    from modules.logistics.repositories.interfaces import (
        IColonyRepository,
        ISystemSettingsRepository,
    )
    from shared.domain.bus import INotificationBus

logger = structlog.get_logger(__name__)


class LogisticsService:
    def __init__(
        self,
        colony_repository: IColonyRepository,
        settings_repository: ISystemSettingsRepository,
        bus: INotificationBus,
    ) -> None:
        self._colony_repo = colony_repository
        self._settings_repo = settings_repository
        self._bus = bus

    # ------------------------------------------------------------------
    # Colonies
    # ------------------------------------------------------------------

    def list_colonies(self, filters: Optional[Dict[str, Any]] = None) -> List[Colony]:
        return self._colony_repo.list(filters)

    def get_colony(self, colony_id: Any) -> Colony:
        colony = self._colony_repo.get_by_id(colony_id)
        if colony is None:
            raise ColonyNotFound(f"Colony {colony_id} not found.")
        return colony

    @transaction.atomic
    def create_colony(self, dto: ColonyInputDTO) -> Colony:
        if self._colony_repo.get_by_name(dto.name):
            raise ColonyAlreadyExists(f"Colony '{dto.name}' already exists.")
        colony = self._colony_repo.create(dto.model_dump())
        self._publish_colony(colony)
        return colony

    @transaction.atomic
    def update_colony(self, colony_id: Any, dto: ColonyInputDTO) -> Colony:
        existing = self._colony_repo.get_by_name(dto.name)
        if existing is not None and str(existing.id) != str(colony_id):
            raise ColonyAlreadyExists(f"Colony '{dto.name}' already exists.")

        colony = self._colony_repo.update(colony_id, dto.model_dump())
        if colony is None:
            raise ColonyNotFound(f"Colony {colony_id} not found.")
        self._publish_colony(colony)
        return colony

    @transaction.atomic
    def delete_colony(self, colony_id: Any) -> None:
        colony = self.get_colony(colony_id)
        self._colony_repo.delete(colony.id)
        publish_on_commit(self._bus, Topics.COLONY_DELETE, str(colony.id))

    def _publish_colony(self, colony: Colony) -> None:
        payload = ColonyOutputDTO.from_entity(colony).model_dump(mode="json")
        publish_on_commit(self._bus, Topics.COLONY_UPDATE, payload)

    # ------------------------------------------------------------------
    # Tariff
    # ------------------------------------------------------------------

    def get_settings(self) -> SystemSettings:
        return self._settings_repo.load()

    def current_tariff(self) -> Optional[Tariff]:
        """Tariff in force, or ``None`` when the singleton was never created."""
        settings = self._settings_repo.get()
        return settings.as_tariff() if settings is not None else None

    def quote_between(self, origin_colony_id: Any, destination_colony_id: Any) -> FeeQuote:
        """Preview the delivery fee between two colonies with the current tariff."""
        origin = self._colony_repo.get_by_id(origin_colony_id)
        destination = self._colony_repo.get_by_id(destination_colony_id)
        return quote_delivery(
            origin.as_point() if origin is not None else None,
            destination.as_point() if destination is not None else None,
            self.current_tariff(),
        )

    @transaction.atomic
    def update_settings(self, dto: UpdateSettingsDTO) -> SystemSettings:
        """Overwrite the tariff.  Orders already placed keep their quote."""
        changes = dto.model_dump(exclude_none=True)
        settings = self._settings_repo.update(changes)
        logger.info(
            "settings.tariff_changed",
            base_fee=settings.base_fee,
            km_rate=str(settings.km_rate),
        )
        publish_on_commit(
            self._bus,
            Topics.SETTINGS_UPDATE,
            SettingsOutputDTO.from_entity(settings).model_dump(mode="json"),
        )
        return settings
