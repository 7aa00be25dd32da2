from __future__ import annotations

import logging
from datetime import datetime, timedelta

from booking_engine.application.exceptions import OptimizerError
from booking_engine.application.ports.slot_scorer import SlotScorerPort
from booking_engine.domain.entities.appointment import Appointment
from booking_engine.domain.entities.time_slot import TimeSlot

REASON_ADJACENT = "adjacent to existing booking, minimizes idle gap"
REASON_FRAGMENTS = "leaves a short idle gap next to a booking"
REASON_ROUND_HOUR = "on the hour"
REASON_HALF_HOUR = "on the half hour"
REASON_OPEN = "open period"


class HeuristicSlotScorer(SlotScorerPort):
    """
    Rank slots by how well they pack the provider's day.

    Weights:
    - adjacency to a booking (touches its start or end): +0.3
    - idle gap to the nearest booking shorter than `min_gap_minutes`: -0.25
    - round start (:00 +0.1, :30 +0.05)
    Scores are clamped to [0, 1].
    """

    def __init__(self, min_gap_minutes: int = 30) -> None:
        self._min_gap = timedelta(minutes=min_gap_minutes)

    def score(self, slots: list[TimeSlot], appointments: list[Appointment]) -> list[TimeSlot]:
        busy = sorted(
            ((a.start_time, a.end_time) for a in appointments if a.blocks_calendar),
            key=lambda pair: pair[0],
        )
        return [self._score_one(slot, busy) for slot in slots]

    def _score_one(self, slot: TimeSlot, busy: list[tuple[datetime, datetime]]) -> TimeSlot:
        score = 0.5
        reasons: list[str] = []

        gap_before = _gap_before(slot.start_time, busy)
        gap_after = _gap_after(slot.end_time, busy)

        if gap_before == timedelta(0) or gap_after == timedelta(0):
            score += 0.3
            reasons.append(REASON_ADJACENT)

        fragments = [g for g in (gap_before, gap_after) if g is not None and timedelta(0) < g < self._min_gap]
        if fragments:
            score -= 0.25
            reasons.append(REASON_FRAGMENTS)

        if slot.start_time.minute == 0:
            score += 0.1
            if not reasons:
                reasons.append(REASON_ROUND_HOUR)
        elif slot.start_time.minute == 30:
            score += 0.05
            if not reasons:
                reasons.append(REASON_HALF_HOUR)

        score = round(min(max(score, 0.0), 1.0), 3)
        return slot.annotated(score, "; ".join(reasons) or REASON_OPEN)


def _gap_before(start: datetime, busy: list[tuple[datetime, datetime]]) -> timedelta | None:
    ends = [b_end for _, b_end in busy if b_end <= start]
    return start - max(ends) if ends else None


def _gap_after(end: datetime, busy: list[tuple[datetime, datetime]]) -> timedelta | None:
    starts = [b_start for b_start, _ in busy if b_start >= end]
    return min(starts) - end if starts else None


class SlotOptimizer:
    """Optional annotation pass. Keeps the slot set and start-time order, never raises."""

    def __init__(self, scorer: SlotScorerPort, enabled: bool = True) -> None:
        self._scorer = scorer
        self._enabled = enabled
        self._logger = logging.getLogger(__name__)

    def optimize(self, slots: list[TimeSlot], appointments: list[Appointment]) -> list[TimeSlot]:
        if not self._enabled:
            return slots
        try:
            scored = self._scorer.score(list(slots), list(appointments))
            _check_same_windows(slots, scored)
            return sorted(scored, key=lambda s: s.start_time)
        except Exception as e:
            self._logger.warning(
                "Slot scoring failed; returning unscored slots",
                extra={"reason": f"{type(e).__name__}: {e}", "slot_count": len(slots)},
            )
            return slots


def _check_same_windows(raw: list[TimeSlot], scored: list[TimeSlot]) -> None:
    expected = sorted((s.start_time, s.end_time, s.is_available) for s in raw)
    actual = sorted((s.start_time, s.end_time, s.is_available) for s in scored)
    if expected != actual:
        raise OptimizerError("Scorer changed the slot set")
