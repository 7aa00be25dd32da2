from __future__ import annotations

import logging
from datetime import date

from booking_engine.application.exceptions import ValidationError
from booking_engine.application.ports.service_catalog import ServiceCatalogPort
from booking_engine.application.use_cases.availability import GetAvailabilityUseCase
from booking_engine.domain.entities.service_catalog import Provider


class SearchProvidersUseCase:
    """Providers offering all requested services with at least one free slot that date."""

    def __init__(self, catalog: ServiceCatalogPort, availability: GetAvailabilityUseCase) -> None:
        self._catalog = catalog
        self._availability = availability
        self._logger = logging.getLogger(__name__)

    def execute(self, service_ids: list[str], day: date | None) -> list[Provider]:
        if day is None:
            raise ValidationError("date is required")
        if not service_ids:
            raise ValidationError("service_ids must not be empty")

        matches: list[Provider] = []
        for provider in self._catalog.providers_offering(service_ids):
            slots = self._availability.execute(
                provider.provider_id,
                day,
                service_ids=service_ids,
                optimize=False,
            )
            if slots:
                matches.append(provider)
        self._logger.info(
            "Provider search completed",
            extra={"date": day.isoformat(), "service_ids": ",".join(service_ids), "match_count": len(matches)},
        )
        return matches
