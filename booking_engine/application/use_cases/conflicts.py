"""
Conflict detection for a candidate booking window.

Pure functions: the caller supplies the provider's working hours, the
appointments of that day and the current time, so the same check can run
against a read snapshot (availability) or inside a store transaction
(booking commit).
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from booking_engine.application.exceptions import (
    OutsideWorkingHoursError,
    OverlapConflictError,
    PastDateError,
)
from booking_engine.domain.entities.appointment import Appointment
from booking_engine.domain.entities.conflict import Conflict, ConflictKind
from booking_engine.domain.entities.working_hours import WorkingHours


def find_overlapping(
    start: datetime,
    end: datetime,
    appointments: Iterable[Appointment],
    exclude_id: str | None = None,
) -> list[Appointment]:
    """
    Appointments that block [start, end).

    Overlap condition: appt.start < end AND appt.end > start. Only pending or
    confirmed appointments block, and force-booked ones never do.
    """
    return [
        appt
        for appt in appointments
        if appt.blocks_calendar and appt.id != exclude_id and appt.overlaps(start, end)
    ]


def detect_conflict(
    start: datetime,
    end: datetime,
    working_hours: WorkingHours | None,
    appointments: Iterable[Appointment],
    now: datetime,
    force_override: bool = False,
    exclude_id: str | None = None,
) -> Conflict | None:
    """
    Check a candidate window. Returns None when the window is bookable.

    Order of checks: past date, working hours, overlap. force_override only
    suppresses overlap; the other kinds are always fatal.
    """
    if start.date() < now.date() or start < now:
        return Conflict(ConflictKind.past_date, start, end)

    if working_hours is None or not working_hours.contains(start, end):
        return Conflict(ConflictKind.outside_working_hours, start, end)

    if force_override:
        return None

    overlapping = find_overlapping(start, end, appointments, exclude_id=exclude_id)
    if overlapping:
        return Conflict(
            ConflictKind.overlap,
            start,
            end,
            conflicting_ids=tuple(appt.id for appt in overlapping),
        )
    return None


def raise_for_conflict(conflict: Conflict | None) -> None:
    if conflict is None:
        return
    if conflict.kind == ConflictKind.past_date:
        raise PastDateError("Requested time is in the past", conflict.start_time, conflict.end_time)
    if conflict.kind == ConflictKind.outside_working_hours:
        raise OutsideWorkingHoursError(
            "Requested time is outside the provider's working hours",
            conflict.start_time,
            conflict.end_time,
        )
    raise OverlapConflictError(
        "Requested time overlaps an existing booking",
        conflict.start_time,
        conflict.end_time,
        conflicting_ids=conflict.conflicting_ids,
    )
