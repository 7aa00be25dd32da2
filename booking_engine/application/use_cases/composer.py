from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from booking_engine.application.exceptions import ValidationError
from booking_engine.application.use_cases.conflicts import detect_conflict, raise_for_conflict
from booking_engine.domain.entities.appointment import Appointment, AppointmentSegment
from booking_engine.domain.entities.booking_request import ServiceRequest
from booking_engine.domain.entities.working_hours import WorkingHours


@dataclass(frozen=True)
class CompositeWindow:
    start_time: datetime
    end_time: datetime
    segments: tuple[AppointmentSegment, ...]

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


def chain_segments(start: datetime, services: Iterable[ServiceRequest]) -> CompositeWindow:
    """Lay services back to back from `start`. No validation against the calendar."""
    segments: list[AppointmentSegment] = []
    cursor = start
    for service in services:
        if service.duration_minutes <= 0:
            raise ValidationError(f"Service {service.service_id} has a non-positive duration")
        end = cursor + timedelta(minutes=service.duration_minutes)
        segments.append(AppointmentSegment(service_id=service.service_id, start_time=cursor, end_time=end))
        cursor = end

    if not segments:
        raise ValidationError("At least one service is required")

    return CompositeWindow(start_time=segments[0].start_time, end_time=segments[-1].end_time, segments=tuple(segments))


class ConsecutiveServiceComposer:
    """Chains several services into one contiguous window, validating every segment."""

    def compose(
        self,
        start: datetime,
        services: Iterable[ServiceRequest],
        working_hours: WorkingHours | None,
        appointments: list[Appointment],
        now: datetime,
        force_override: bool = False,
        exclude_id: str | None = None,
    ) -> CompositeWindow:
        window = chain_segments(start, services)

        # The whole chain sits in one open interval, like a single booking of the same length.
        raise_for_conflict(detect_conflict(window.start_time, window.end_time, working_hours, [], now))

        # All or nothing: the first failing segment rejects the whole chain.
        for segment in window.segments:
            conflict = detect_conflict(
                segment.start_time,
                segment.end_time,
                working_hours,
                appointments,
                now,
                force_override=force_override,
                exclude_id=exclude_id,
            )
            raise_for_conflict(conflict)

        return window
