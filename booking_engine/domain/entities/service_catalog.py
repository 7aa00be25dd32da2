from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServiceCatalogEntry:
    service_id: str
    display_name: str
    duration_minutes: int
    price: int | None = None  # cents
    category: str | None = None


@dataclass(frozen=True)
class Provider:
    provider_id: str
    name: str
    # service_id -> provider specific execution time in minutes (None = catalog default)
    services: dict[str, int | None] = field(default_factory=dict)

    def offers(self, service_id: str) -> bool:
        return service_id in self.services
