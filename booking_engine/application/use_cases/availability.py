from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable

from booking_engine.application.exceptions import PastDateError, ValidationError
from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.application.ports.service_catalog import ServiceCatalogPort
from booking_engine.application.ports.working_hours import WorkingHoursPort
from booking_engine.application.use_cases.conflicts import detect_conflict, find_overlapping
from booking_engine.application.use_cases.slot_scoring import SlotOptimizer
from booking_engine.domain.entities.appointment import Appointment
from booking_engine.domain.entities.conflict import ConflictKind
from booking_engine.domain.entities.time_slot import TimeSlot
from booking_engine.domain.entities.working_hours import WorkingHours

Clock = Callable[[], datetime]

DEFAULT_STEP_MINUTES = 30


class AvailabilityCalculator:
    """Generates fixed-step candidate slots for one provider and date."""

    def compute(
        self,
        working_hours: WorkingHours | None,
        day: date,
        duration_minutes: int,
        appointments: list[Appointment],
        now: datetime,
        step_minutes: int = DEFAULT_STEP_MINUTES,
        include_unavailable: bool = False,
    ) -> list[TimeSlot]:
        if duration_minutes <= 0:
            raise ValidationError("duration_minutes must be positive")
        if step_minutes <= 0:
            raise ValidationError("step_minutes must be positive")
        if day < now.date():
            raise PastDateError(f"Date {day.isoformat()} is in the past")
        if working_hours is None:
            return []

        duration = timedelta(minutes=duration_minutes)
        step = timedelta(minutes=step_minutes)
        blocked = working_hours.blocked_intervals(day)
        slots: list[TimeSlot] = []

        for open_start, open_end in working_hours.open_intervals(day):
            cursor = open_start
            # A trailing window shorter than the duration is dropped.
            while cursor + duration <= open_end:
                slot_end = cursor + duration
                if cursor < now:
                    cursor += step
                    continue

                is_available = not any(cursor < b_end and b_start < slot_end for b_start, b_end in blocked)
                if is_available:
                    is_available = not find_overlapping(cursor, slot_end, appointments)

                if is_available or include_unavailable:
                    slots.append(TimeSlot(start_time=cursor, end_time=slot_end, is_available=is_available))
                cursor += step

        slots.sort(key=lambda s: s.start_time)
        return slots


@dataclass(frozen=True)
class AvailabilityCheck:
    available: bool
    kind: str | None
    start_time: datetime
    end_time: datetime
    conflicting_ids: tuple[str, ...] = ()


class GetAvailabilityUseCase:
    def __init__(
        self,
        working_hours: WorkingHoursPort,
        store: AppointmentStorePort,
        catalog: ServiceCatalogPort,
        clock: Clock,
        optimizer: SlotOptimizer | None = None,
        step_minutes: int = DEFAULT_STEP_MINUTES,
    ) -> None:
        self._working_hours = working_hours
        self._store = store
        self._catalog = catalog
        self._clock = clock
        self._optimizer = optimizer
        self._step_minutes = step_minutes
        self._calculator = AvailabilityCalculator()
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        provider_id: str,
        day: date | None,
        duration_minutes: int | None = None,
        service_ids: list[str] | None = None,
        step_minutes: int | None = None,
        include_unavailable: bool = False,
        optimize: bool = True,
    ) -> list[TimeSlot]:
        if day is None:
            raise ValidationError("date is required")
        if not provider_id:
            raise ValidationError("provider_id is required")

        duration = self.resolve_duration(provider_id, duration_minutes, service_ids)
        hours = self._working_hours.get_working_hours(provider_id)
        appointments = self._store.list_for_day(provider_id, day)

        slots = self._calculator.compute(
            hours,
            day,
            duration,
            appointments,
            now=self._clock(),
            step_minutes=self._step_minutes if step_minutes is None else step_minutes,
            include_unavailable=include_unavailable,
        )
        self._logger.info(
            "Availability computed",
            extra={"provider_id": provider_id, "date": day.isoformat(), "slot_count": len(slots)},
        )

        if optimize and self._optimizer is not None and slots:
            return self._optimizer.optimize(slots, appointments)
        return slots

    def resolve_duration(
        self,
        provider_id: str,
        duration_minutes: int | None,
        service_ids: list[str] | None,
    ) -> int:
        """Explicit duration wins; otherwise the sum of the provider's service durations."""
        if duration_minutes is not None:
            if duration_minutes <= 0:
                raise ValidationError("duration_minutes must be positive")
            return duration_minutes

        if not service_ids:
            raise ValidationError("duration_minutes or service_ids is required")

        total = 0
        for service_id in service_ids:
            minutes = self._catalog.get_duration_minutes(provider_id, service_id)
            if minutes is None:
                raise ValidationError(f"Unknown service: {service_id}")
            total += minutes
        return total


class CheckAvailabilityUseCase:
    """Answer whether one specific window could be booked right now."""

    def __init__(self, working_hours: WorkingHoursPort, store: AppointmentStorePort, clock: Clock) -> None:
        self._working_hours = working_hours
        self._store = store
        self._clock = clock

    def execute(self, provider_id: str, start: datetime, duration_minutes: int) -> AvailabilityCheck:
        if duration_minutes <= 0:
            raise ValidationError("duration_minutes must be positive")

        end = start + timedelta(minutes=duration_minutes)
        conflict = detect_conflict(
            start,
            end,
            self._working_hours.get_working_hours(provider_id),
            self._store.list_for_day(provider_id, start.date()),
            now=self._clock(),
        )
        if conflict is None:
            return AvailabilityCheck(available=True, kind=None, start_time=start, end_time=end)
        return AvailabilityCheck(
            available=False,
            kind=ConflictKind(conflict.kind).value,
            start_time=start,
            end_time=end,
            conflicting_ids=conflict.conflicting_ids,
        )
