"""
Tests for slot generation and the availability use cases.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from booking_engine.application.exceptions import PastDateError, ValidationError
from booking_engine.application.use_cases.availability import (
    AvailabilityCalculator,
    CheckAvailabilityUseCase,
    GetAvailabilityUseCase,
)
from booking_engine.application.use_cases.slot_scoring import HeuristicSlotScorer, SlotOptimizer
from booking_engine.domain.entities.appointment import AppointmentStatus
from booking_engine.domain.entities.working_hours import DateException, TimeRange, WorkingHours


def _t(slot_time: datetime) -> str:
    return slot_time.strftime("%H:%M")


def test_open_day_without_bookings(day, now, weekday_hours):
    """09:00-18:00, 30 minutes: first slot 09:00-09:30, last 17:30-18:00."""
    slots = AvailabilityCalculator().compute(weekday_hours, day, 30, [], now)

    assert (_t(slots[0].start_time), _t(slots[0].end_time)) == ("09:00", "09:30")
    assert (_t(slots[-1].start_time), _t(slots[-1].end_time)) == ("17:30", "18:00")
    assert len(slots) == 18
    assert all(s.is_available for s in slots)
    assert all(s.duration_minutes == 30 for s in slots)


def test_trailing_partial_window_is_dropped(day, now, weekday_hours):
    slots = AvailabilityCalculator().compute(weekday_hours, day, 45, [], now)

    # 17:30 + 45 would end past 18:00.
    assert _t(slots[-1].start_time) == "17:00"
    assert all(s.end_time <= datetime.combine(day, time(18, 0)) for s in slots)


def test_step_smaller_than_duration(day, now, weekday_hours):
    slots = AvailabilityCalculator().compute(weekday_hours, day, 60, [], now, step_minutes=15)

    assert [_t(s.start_time) for s in slots[:3]] == ["09:00", "09:15", "09:30"]
    assert _t(slots[-1].start_time) == "17:00"


def test_booked_windows_are_excluded(day, now, weekday_hours, make_appointment):
    appointments = [make_appointment("a1", "10:00", minutes=60)]

    slots = AvailabilityCalculator().compute(weekday_hours, day, 30, appointments, now)
    starts = [_t(s.start_time) for s in slots]

    assert "10:00" not in starts
    assert "10:30" not in starts
    assert "09:30" in starts
    assert "11:00" in starts
    for slot in slots:
        assert not (slot.start_time < appointments[0].end_time and appointments[0].start_time < slot.end_time)


def test_forced_and_inactive_appointments_do_not_block(day, now, weekday_hours, make_appointment):
    appointments = [
        make_appointment("forced", "10:00", force_booked=True),
        make_appointment("canceled", "11:00", status=AppointmentStatus.canceled),
    ]

    starts = [_t(s.start_time) for s in AvailabilityCalculator().compute(weekday_hours, day, 30, appointments, now)]

    assert "10:00" in starts
    assert "11:00" in starts


def test_include_unavailable_marks_instead_of_dropping(day, now, weekday_hours, make_appointment):
    appointments = [make_appointment("a1", "10:00")]

    slots = AvailabilityCalculator().compute(weekday_hours, day, 30, appointments, now, include_unavailable=True)
    by_start = {_t(s.start_time): s for s in slots}

    assert len(slots) == 18
    assert by_start["10:00"].is_available is False
    assert by_start["10:30"].is_available is True


def test_no_working_hours_yields_empty_list(day, now):
    assert AvailabilityCalculator().compute(None, day, 30, [], now) == []


def test_closed_weekday_yields_empty_list(now, weekday_hours):
    saturday = date(2030, 6, 8)

    assert AvailabilityCalculator().compute(weekday_hours, saturday, 30, [], now) == []


def test_past_date_raises(day, now, weekday_hours):
    with pytest.raises(PastDateError):
        AvailabilityCalculator().compute(weekday_hours, day - timedelta(days=1), 30, [], now)


def test_non_positive_duration_raises(day, now, weekday_hours):
    with pytest.raises(ValidationError):
        AvailabilityCalculator().compute(weekday_hours, day, 0, [], now)
    with pytest.raises(ValidationError):
        AvailabilityCalculator().compute(weekday_hours, day, 30, [], now, step_minutes=0)


def test_slots_before_now_are_skipped_today(day, weekday_hours):
    late_morning = datetime.combine(day, time(11, 10))

    slots = AvailabilityCalculator().compute(weekday_hours, day, 30, [], late_morning)

    assert _t(slots[0].start_time) == "11:30"


def test_breaks_and_split_shifts(day, now):
    hours = WorkingHours(
        provider_id="p1",
        weekly={0: (TimeRange.parse("14:00", "18:00"), TimeRange.parse("09:00", "12:00"))},
        breaks={0: (TimeRange.parse("10:00", "10:30"),)},
    )

    starts = [_t(s.start_time) for s in AvailabilityCalculator().compute(hours, day, 60, [], now)]

    # 09:30 and 10:00 cross the break; 11:30 would cross the midday close.
    assert starts == ["09:00", "10:30", "11:00", "14:00", "14:30", "15:00", "15:30", "16:00", "16:30", "17:00"]


def test_date_exceptions(day, now, weekday_hours):
    closed = WorkingHours(
        provider_id="p1",
        weekly=weekday_hours.weekly,
        exceptions={day: DateException(day=day, closed=True, reason="holiday")},
    )
    assert AvailabilityCalculator().compute(closed, day, 30, [], now) == []

    short_day = WorkingHours(
        provider_id="p1",
        weekly=weekday_hours.weekly,
        exceptions={
            day: DateException(
                day=day,
                hours=(TimeRange.parse("13:00", "15:00"),),
                blocked=(TimeRange.parse("14:00", "14:30"),),
            )
        },
    )
    starts = [_t(s.start_time) for s in AvailabilityCalculator().compute(short_day, day, 30, [], now)]
    assert starts == ["13:00", "13:30", "14:30"]


def test_compute_is_idempotent(day, now, weekday_hours, make_appointment):
    appointments = [make_appointment("a1", "12:00")]
    calculator = AvailabilityCalculator()

    assert calculator.compute(weekday_hours, day, 30, appointments, now) == calculator.compute(
        weekday_hours, day, 30, appointments, now
    )


def test_use_case_reads_store_and_annotates(day, directory, store, clock, make_appointment):
    store.add(make_appointment("a1", "10:00"))
    uc = GetAvailabilityUseCase(
        working_hours=directory,
        store=store,
        catalog=directory,
        clock=clock,
        optimizer=SlotOptimizer(HeuristicSlotScorer()),
    )

    slots = uc.execute("p1", day, duration_minutes=30)

    assert "10:00" not in [_t(s.start_time) for s in slots]
    assert all(s.adaptation_score is not None for s in slots)
    assert [s.start_time for s in slots] == sorted(s.start_time for s in slots)


def test_use_case_sums_service_durations(day, directory, store, clock):
    uc = GetAvailabilityUseCase(working_hours=directory, store=store, catalog=directory, clock=clock)

    assert uc.resolve_duration("p1", None, ["haircut", "beard"]) == 75
    # Provider-specific execution time wins over the catalog default.
    assert uc.resolve_duration("p2", None, ["haircut"]) == 40

    slots = uc.execute("p2", day, service_ids=["haircut"])
    assert [_t(s.start_time) for s in slots] == ["09:00", "09:30", "10:00", "10:30", "11:00"]

    with pytest.raises(ValidationError):
        uc.resolve_duration("p1", None, ["coloring"])
    with pytest.raises(ValidationError):
        uc.resolve_duration("p1", None, None)


def test_use_case_requires_date(directory, store, clock):
    uc = GetAvailabilityUseCase(working_hours=directory, store=store, catalog=directory, clock=clock)

    with pytest.raises(ValidationError):
        uc.execute("p1", None, duration_minutes=30)


def test_unknown_provider_has_no_slots(day, directory, store, clock):
    uc = GetAvailabilityUseCase(working_hours=directory, store=store, catalog=directory, clock=clock)

    assert uc.execute("nobody", day, duration_minutes=30) == []


def test_check_availability(day, directory, store, clock, make_appointment):
    store.add(make_appointment("a1", "10:00"))
    uc = CheckAvailabilityUseCase(working_hours=directory, store=store, clock=clock)

    free = uc.execute("p1", datetime.combine(day, time(11, 0)), 30)
    assert free.available is True
    assert free.kind is None

    taken = uc.execute("p1", datetime.combine(day, time(10, 0)), 30)
    assert taken.available is False
    assert taken.kind == "overlap"
    assert taken.conflicting_ids == ("a1",)

    closed = uc.execute("p1", datetime.combine(day, time(19, 0)), 30)
    assert closed.kind == "outside_working_hours"


def test_use_case_rejects_zero_step(day, directory, store, clock):
    uc = GetAvailabilityUseCase(working_hours=directory, store=store, catalog=directory, clock=clock)

    with pytest.raises(ValidationError):
        uc.execute("p1", day, duration_minutes=30, step_minutes=0)

    assert len(uc.execute("p1", day, duration_minutes=30, step_minutes=None)) == 18
