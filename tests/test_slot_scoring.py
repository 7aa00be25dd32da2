from __future__ import annotations

from datetime import datetime, time

from booking_engine.application.exceptions import LLMUpstreamError
from booking_engine.application.ports.slot_scorer import SlotScorerPort
from booking_engine.application.use_cases.availability import GetAvailabilityUseCase
from booking_engine.application.use_cases.slot_scoring import REASON_ADJACENT, HeuristicSlotScorer, SlotOptimizer
from booking_engine.domain.entities.time_slot import TimeSlot


class ExplodingScorer(SlotScorerPort):
    def score(self, slots, appointments):
        raise LLMUpstreamError("upstream unavailable")


class ShrinkingScorer(SlotScorerPort):
    """Drops a slot; the optimizer must not trust it."""

    def score(self, slots, appointments):
        return [s.annotated(1.0, "best") for s in slots[1:]]


class ReversingScorer(SlotScorerPort):
    def score(self, slots, appointments):
        return [s.annotated(round(i / 10, 2), "rank") for i, s in enumerate(reversed(slots))]


def _slot(day, hh: int, mm: int, minutes: int = 30) -> TimeSlot:
    start = datetime.combine(day, time(hh, mm))
    end = datetime.combine(day, time(hh + (mm + minutes) // 60, (mm + minutes) % 60))
    return TimeSlot(start_time=start, end_time=end)


def test_adjacent_slots_score_higher(day, make_appointment):
    appointments = [make_appointment("a1", "10:00")]
    slots = [_slot(day, 9, 30), _slot(day, 10, 30), _slot(day, 13, 0)]

    scored = HeuristicSlotScorer().score(slots, appointments)
    by_start = {s.start_time.strftime("%H:%M"): s for s in scored}

    assert by_start["09:30"].adaptation_reason.startswith(REASON_ADJACENT)
    assert by_start["10:30"].adaptation_reason.startswith(REASON_ADJACENT)
    assert by_start["10:30"].adaptation_score > by_start["13:00"].adaptation_score
    assert all(0.0 <= s.adaptation_score <= 1.0 for s in scored)


def test_short_gaps_are_penalised(day, make_appointment):
    appointments = [make_appointment("a1", "10:00")]
    # 09:15-09:45 leaves a 15 minute hole before the booking.
    fragmenting = HeuristicSlotScorer(min_gap_minutes=30).score([_slot(day, 9, 15)], appointments)[0]
    free = HeuristicSlotScorer(min_gap_minutes=30).score([_slot(day, 15, 15)], appointments)[0]

    assert fragmenting.adaptation_score < free.adaptation_score


def test_scorer_ignores_forced_bookings(day, make_appointment):
    appointments = [make_appointment("forced", "10:00", force_booked=True)]

    scored = HeuristicSlotScorer().score([_slot(day, 10, 30)], appointments)[0]

    assert REASON_ADJACENT not in scored.adaptation_reason


def test_optimizer_keeps_start_order(day):
    slots = [_slot(day, 9, 0), _slot(day, 9, 30), _slot(day, 10, 0)]

    result = SlotOptimizer(ReversingScorer()).optimize(slots, [])

    assert [s.start_time for s in result] == [s.start_time for s in slots]
    assert all(s.adaptation_reason == "rank" for s in result)


def test_optimizer_failure_returns_raw_slots(day):
    slots = [_slot(day, 9, 0), _slot(day, 9, 30)]

    assert SlotOptimizer(ExplodingScorer()).optimize(slots, []) == slots
    assert SlotOptimizer(ShrinkingScorer()).optimize(slots, []) == slots


def test_disabled_optimizer_is_a_no_op(day):
    slots = [_slot(day, 9, 0)]

    assert SlotOptimizer(ReversingScorer(), enabled=False).optimize(slots, []) is slots


def test_get_availability_survives_scorer_failure(day, directory, store, clock):
    """A throwing optimizer still yields the raw slot list and no error."""
    uc = GetAvailabilityUseCase(
        working_hours=directory,
        store=store,
        catalog=directory,
        clock=clock,
        optimizer=SlotOptimizer(ExplodingScorer()),
    )

    slots = uc.execute("p1", day, duration_minutes=30)

    assert len(slots) == 18
    assert all(s.adaptation_score is None for s in slots)
