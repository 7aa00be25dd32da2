from __future__ import annotations

import json
import logging
from pathlib import Path

from booking_engine.application.dto.provider_directory import ProviderDirectoryDTO
from booking_engine.application.ports.service_catalog import ServiceCatalogPort
from booking_engine.application.ports.working_hours import WorkingHoursPort
from booking_engine.domain.entities.service_catalog import Provider, ServiceCatalogEntry
from booking_engine.domain.entities.working_hours import WorkingHours

logger = logging.getLogger(__name__)


class ProviderDirectory(WorkingHoursPort, ServiceCatalogPort):
    """Read-only view of providers, their services and working hours."""

    def __init__(
        self,
        services: dict[str, ServiceCatalogEntry] | None = None,
        providers: dict[str, Provider] | None = None,
        working_hours: dict[str, WorkingHours] | None = None,
    ) -> None:
        self._services = services or {}
        self._providers = providers or {}
        self._working_hours = working_hours or {}

    @classmethod
    def from_file(cls, path: str | Path) -> "ProviderDirectory":
        file_path = Path(path)
        if not file_path.exists():
            logger.warning("Provider directory file not found; starting empty", extra={"reason": str(file_path)})
            return cls()
        with open(file_path, "r", encoding="utf-8") as f:
            dto = ProviderDirectoryDTO.model_validate(json.load(f))
        directory = cls(
            services=dto.extract_services(),
            providers=dto.extract_providers(),
            working_hours=dto.extract_working_hours(),
        )
        logger.info(
            "Provider directory loaded",
            extra={"provider_count": len(directory._providers), "service_count": len(directory._services)},
        )
        return directory

    def get_working_hours(self, provider_id: str) -> WorkingHours | None:
        return self._working_hours.get(provider_id)

    def get_service(self, service_id: str) -> ServiceCatalogEntry | None:
        return self._services.get(service_id)

    def get_provider(self, provider_id: str) -> Provider | None:
        return self._providers.get(provider_id)

    def get_duration_minutes(self, provider_id: str, service_id: str) -> int | None:
        provider = self._providers.get(provider_id)
        if provider is None or not provider.offers(service_id):
            return None
        custom = provider.services.get(service_id)
        if custom:
            return custom
        entry = self._services.get(service_id)
        return entry.duration_minutes if entry else None

    def providers_offering(self, service_ids: list[str]) -> list[Provider]:
        return [
            provider
            for provider in sorted(self._providers.values(), key=lambda p: p.provider_id)
            if all(provider.offers(service_id) for service_id in service_ids)
        ]
