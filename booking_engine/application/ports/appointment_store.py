from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date

from booking_engine.domain.entities.appointment import Appointment


class AppointmentStorePort(ABC):
    @abstractmethod
    def locked(self, provider_id: str, day: date) -> AbstractContextManager[None]:
        """
        Serialize writers for one (provider, date).

        Reads and the insert performed inside the block form one atomic
        transaction with respect to other writers of the same key.
        """
        raise NotImplementedError

    @abstractmethod
    def list_for_day(self, provider_id: str, day: date) -> list[Appointment]:
        """All appointments (any status) of the provider starting on `day`, ordered by start."""
        raise NotImplementedError

    @abstractmethod
    def get(self, appointment_id: str) -> Appointment | None:
        raise NotImplementedError

    @abstractmethod
    def add(self, appointment: Appointment) -> Appointment:
        """
        Persist a new appointment.

        Raises StoreConstraintError if it overlaps another active, non-forced
        appointment of the same provider (exclusion constraint).
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, appointment: Appointment, previous_day: date | None = None) -> Appointment:
        """Persist changes to an existing appointment. `previous_day` is set when it moved dates."""
        raise NotImplementedError

    @abstractmethod
    def next_id(self) -> str:
        raise NotImplementedError
