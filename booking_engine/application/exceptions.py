from __future__ import annotations

from datetime import datetime
from typing import Any


class BookingError(Exception):
    """Base class for scheduling errors surfaced to callers."""

    kind = "booking_error"
    recoverable = False

    def __init__(
        self,
        message: str,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.start_time = start_time
        self.end_time = end_time

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.kind, "message": self.message, "recoverable": self.recoverable}
        if self.start_time and self.end_time:
            body["window"] = {"start_time": self.start_time.isoformat(), "end_time": self.end_time.isoformat()}
        return body


class ValidationError(BookingError):
    """Raised for malformed input before any computation happens."""

    kind = "validation_error"


class PastDateError(BookingError):
    kind = "past_date"


class OutsideWorkingHoursError(BookingError):
    kind = "outside_working_hours"


class OverlapConflictError(BookingError):
    """Window collides with an existing booking. Retry with force_override or re-fetch availability."""

    kind = "overlap"
    recoverable = True

    def __init__(
        self,
        message: str,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        conflicting_ids: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message, start_time, end_time)
        self.conflicting_ids = conflicting_ids

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["conflicting_ids"] = list(self.conflicting_ids)
        return body


class CommitConflictError(BookingError):
    """Race lost at write time: the caller's availability view is stale."""

    kind = "commit_conflict"

    def __init__(
        self,
        message: str,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        cause_kind: str | None = None,
    ) -> None:
        super().__init__(message, start_time, end_time)
        self.cause_kind = cause_kind

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["stale_availability"] = True
        body["cause"] = self.cause_kind
        return body


class AppointmentNotFoundError(BookingError):
    kind = "appointment_not_found"


class InvalidStatusTransitionError(BookingError):
    kind = "invalid_status_transition"


class StoreConstraintError(RuntimeError):
    """Raised by an appointment store when an insert violates its exclusion constraint."""


class OptimizerError(RuntimeError):
    """Raised inside the scoring layer; never leaves it."""


class LLMUpstreamError(RuntimeError):
    """Raised when LLM provider fails (timeouts, network errors, service unavailable)."""
    pass


class LLMContractError(RuntimeError):
    """Raised when LLM adapter violates contract (bad format or missing data)."""
    pass
