from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.working_hours import WorkingHours


class WorkingHoursPort(ABC):
    @abstractmethod
    def get_working_hours(self, provider_id: str) -> WorkingHours | None:
        """Return the provider's working hours, or None if none are configured."""
        raise NotImplementedError
