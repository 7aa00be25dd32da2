from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.service_catalog import Provider, ServiceCatalogEntry


class ServiceCatalogPort(ABC):
    @abstractmethod
    def get_service(self, service_id: str) -> ServiceCatalogEntry | None:
        """Get service catalog entry by service id."""
        raise NotImplementedError

    @abstractmethod
    def get_provider(self, provider_id: str) -> Provider | None:
        raise NotImplementedError

    @abstractmethod
    def get_duration_minutes(self, provider_id: str, service_id: str) -> int | None:
        """Provider specific execution time, falling back to the catalog duration. None if unknown."""
        raise NotImplementedError

    @abstractmethod
    def providers_offering(self, service_ids: list[str]) -> list[Provider]:
        """Providers offering every one of the given services."""
        raise NotImplementedError
