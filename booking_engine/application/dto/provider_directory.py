from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, field_validator

from booking_engine.domain.entities.service_catalog import Provider, ServiceCatalogEntry
from booking_engine.domain.entities.working_hours import DateException, TimeRange, WorkingHours

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


def _weekday(key: str | int) -> int:
    if isinstance(key, int):
        return key
    normalized = key.strip().lower()
    if normalized in WEEKDAYS:
        return WEEKDAYS[normalized]
    return int(normalized)


def _ranges(pairs: list[tuple[str, str]]) -> tuple[TimeRange, ...]:
    return tuple(TimeRange.parse(start, end) for start, end in pairs)


class DateExceptionDTO(BaseModel):
    date: dt.date
    closed: bool = False
    hours: list[tuple[str, str]] | None = None
    blocked: list[tuple[str, str]] = Field(default_factory=list)
    reason: str | None = None


class WorkingHoursDTO(BaseModel):
    weekly: dict[str, list[tuple[str, str]]] = Field(default_factory=dict)
    breaks: dict[str, list[tuple[str, str]]] = Field(default_factory=dict)
    exceptions: list[DateExceptionDTO] = Field(default_factory=list)

    def to_entity(self, provider_id: str) -> WorkingHours:
        return WorkingHours(
            provider_id=provider_id,
            weekly={_weekday(k): _ranges(v) for k, v in self.weekly.items()},
            breaks={_weekday(k): _ranges(v) for k, v in self.breaks.items()},
            exceptions={
                e.date: DateException(
                    day=e.date,
                    closed=e.closed,
                    hours=_ranges(e.hours) if e.hours is not None else None,
                    blocked=_ranges(e.blocked),
                    reason=e.reason,
                )
                for e in self.exceptions
            },
        )


class ServiceDTO(BaseModel):
    service_id: str
    display_name: str
    duration_minutes: int = Field(gt=0)
    price: int | None = None
    category: str | None = None


class ProviderDTO(BaseModel):
    provider_id: str
    name: str
    # service_id -> custom execution time (null = catalog duration)
    services: dict[str, int | None] = Field(default_factory=dict)
    working_hours: WorkingHoursDTO | None = None

    @field_validator("services")
    @classmethod
    def _positive_durations(cls, value: dict[str, int | None]) -> dict[str, int | None]:
        for service_id, minutes in value.items():
            if minutes is not None and minutes <= 0:
                raise ValueError(f"Execution time for {service_id} must be positive")
        return value


class ProviderDirectoryDTO(BaseModel):
    services: list[ServiceDTO] = Field(default_factory=list)
    providers: list[ProviderDTO] = Field(default_factory=list)

    def extract_services(self) -> dict[str, ServiceCatalogEntry]:
        return {
            s.service_id: ServiceCatalogEntry(
                service_id=s.service_id,
                display_name=s.display_name,
                duration_minutes=s.duration_minutes,
                price=s.price,
                category=s.category,
            )
            for s in self.services
        }

    def extract_providers(self) -> dict[str, Provider]:
        return {p.provider_id: Provider(provider_id=p.provider_id, name=p.name, services=dict(p.services)) for p in self.providers}

    def extract_working_hours(self) -> dict[str, WorkingHours]:
        return {
            p.provider_id: p.working_hours.to_entity(p.provider_id)
            for p in self.providers
            if p.working_hours is not None
        }
