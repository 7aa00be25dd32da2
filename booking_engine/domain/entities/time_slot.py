from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True)
class TimeSlot:
    start_time: datetime
    end_time: datetime
    is_available: bool = True
    adaptation_score: float | None = None
    adaptation_reason: str | None = None

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def annotated(self, score: float, reason: str) -> "TimeSlot":
        return replace(self, adaptation_score=score, adaptation_reason=reason)
