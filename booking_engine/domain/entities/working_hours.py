from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time


@dataclass(frozen=True)
class TimeRange:
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"TimeRange start must be before end: {self.start} >= {self.end}")

    @staticmethod
    def parse(start: str, end: str) -> "TimeRange":
        """Build a range from "HH:MM" strings."""
        return TimeRange(start=time.fromisoformat(start), end=time.fromisoformat(end))

    def on(self, day: date) -> tuple[datetime, datetime]:
        return datetime.combine(day, self.start), datetime.combine(day, self.end)

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class DateException:
    """Override for one calendar date: closed, replacement hours, and/or blocked periods."""

    day: date
    closed: bool = False
    hours: tuple[TimeRange, ...] | None = None  # None keeps the weekday hours
    blocked: tuple[TimeRange, ...] = ()
    reason: str | None = None


def _check_disjoint(ranges: tuple[TimeRange, ...], label: str) -> None:
    ordered = sorted(ranges, key=lambda r: r.start)
    for current, following in zip(ordered, ordered[1:]):
        if current.overlaps(following):
            raise ValueError(f"Overlapping intervals for {label}: {current} and {following}")


@dataclass(frozen=True)
class WorkingHours:
    provider_id: str
    weekly: dict[int, tuple[TimeRange, ...]] = field(default_factory=dict)  # weekday 0=Monday
    breaks: dict[int, tuple[TimeRange, ...]] = field(default_factory=dict)
    exceptions: dict[date, DateException] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for weekday, ranges in self.weekly.items():
            if not 0 <= weekday <= 6:
                raise ValueError(f"Invalid weekday: {weekday}")
            _check_disjoint(ranges, f"weekday {weekday}")
        for day, exception in self.exceptions.items():
            if exception.hours:
                _check_disjoint(exception.hours, f"exception {day.isoformat()}")

    def open_intervals(self, day: date) -> list[tuple[datetime, datetime]]:
        """Open intervals for the date, ordered by start. Empty when closed."""
        exception = self.exceptions.get(day)
        if exception and exception.closed:
            return []
        if exception and exception.hours is not None:
            ranges = exception.hours
        else:
            ranges = self.weekly.get(day.weekday(), ())
        return sorted((r.on(day) for r in ranges), key=lambda pair: pair[0])

    def blocked_intervals(self, day: date) -> list[tuple[datetime, datetime]]:
        """Breaks and exception blocks that fall inside the open hours of the date."""
        ranges = list(self.breaks.get(day.weekday(), ()))
        exception = self.exceptions.get(day)
        if exception:
            ranges.extend(exception.blocked)
        return sorted((r.on(day) for r in ranges), key=lambda pair: pair[0])

    def contains(self, start: datetime, end: datetime) -> bool:
        """True if [start, end) sits inside one open interval and touches no break."""
        if start.date() != end.date():
            return False
        day = start.date()
        inside = any(open_start <= start and end <= open_end for open_start, open_end in self.open_intervals(day))
        if not inside:
            return False
        return not any(start < b_end and b_start < end for b_start, b_end in self.blocked_intervals(day))
