from __future__ import annotations

from datetime import datetime, time

import pytest

from booking_engine.application.exceptions import OutsideWorkingHoursError, OverlapConflictError, ValidationError
from booking_engine.application.use_cases.composer import ConsecutiveServiceComposer, chain_segments
from booking_engine.domain.entities.booking_request import ServiceRequest
from booking_engine.domain.entities.working_hours import TimeRange, WorkingHours


def _hm(value: datetime) -> str:
    return value.strftime("%H:%M")


def test_two_services_chain_back_to_back(day, now, weekday_hours):
    """30 + 45 minutes from 14:00 -> 14:00-14:30, 14:30-15:15."""
    window = ConsecutiveServiceComposer().compose(
        datetime.combine(day, time(14, 0)),
        [ServiceRequest("haircut", 30), ServiceRequest("beard", 45)],
        weekday_hours,
        [],
        now,
    )

    assert [(_hm(s.start_time), _hm(s.end_time)) for s in window.segments] == [
        ("14:00", "14:30"),
        ("14:30", "15:15"),
    ]
    assert (_hm(window.start_time), _hm(window.end_time)) == ("14:00", "15:15")
    assert window.duration_minutes == 75
    assert [s.service_id for s in window.segments] == ["haircut", "beard"]


def test_any_failing_segment_rejects_the_chain(day, now, weekday_hours, make_appointment):
    # Only the second segment hits the 14:30 booking.
    appointments = [make_appointment("a1", "14:45")]

    with pytest.raises(OverlapConflictError) as exc_info:
        ConsecutiveServiceComposer().compose(
            datetime.combine(day, time(14, 0)),
            [ServiceRequest("haircut", 30), ServiceRequest("beard", 45)],
            weekday_hours,
            appointments,
            now,
        )
    assert _hm(exc_info.value.start_time) == "14:30"


def test_chain_running_past_closing_is_outside_hours(day, now, weekday_hours):
    with pytest.raises(OutsideWorkingHoursError):
        ConsecutiveServiceComposer().compose(
            datetime.combine(day, time(17, 30)),
            [ServiceRequest("haircut", 30), ServiceRequest("beard", 45)],
            weekday_hours,
            [],
            now,
        )


def test_force_override_allows_overlapping_chain(day, now, weekday_hours, make_appointment):
    window = ConsecutiveServiceComposer().compose(
        datetime.combine(day, time(14, 0)),
        [ServiceRequest("haircut", 30), ServiceRequest("beard", 45)],
        weekday_hours,
        [make_appointment("a1", "14:45")],
        now,
        force_override=True,
    )

    assert _hm(window.end_time) == "15:15"


def test_chain_segments_validates_durations(day):
    start = datetime.combine(day, time(9, 0))

    with pytest.raises(ValidationError):
        chain_segments(start, [])
    with pytest.raises(ValidationError):
        chain_segments(start, [ServiceRequest("haircut", 30), ServiceRequest("beard", 0)])


def test_chain_across_touching_shifts_matches_single_booking(day, now):
    """Two shifts that meet at 12:00 are still two open intervals for a chain."""
    hours = WorkingHours(
        provider_id="p1",
        weekly={0: (TimeRange.parse("09:00", "12:00"), TimeRange.parse("12:00", "18:00"))},
    )
    start = datetime.combine(day, time(11, 30))

    assert not hours.contains(start, datetime.combine(day, time(12, 30)))
    with pytest.raises(OutsideWorkingHoursError):
        ConsecutiveServiceComposer().compose(
            start,
            [ServiceRequest("haircut", 30), ServiceRequest("beard", 30)],
            hours,
            [],
            now,
        )

    window = ConsecutiveServiceComposer().compose(
        datetime.combine(day, time(11, 0)),
        [ServiceRequest("haircut", 30), ServiceRequest("beard", 30)],
        hours,
        [],
        now,
    )
    assert _hm(window.end_time) == "12:00"
