from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    canceled = "canceled"
    no_show = "no_show"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


class PaymentMethod(str, Enum):
    local = "local"
    cash = "cash"
    credit_card = "credit_card"
    pix = "pix"
    online = "online"

    @property
    def is_in_person(self) -> bool:
        return self in (PaymentMethod.local, PaymentMethod.cash)


ACTIVE_STATUSES = frozenset({AppointmentStatus.pending, AppointmentStatus.confirmed})
TERMINAL_STATUSES = frozenset({AppointmentStatus.completed, AppointmentStatus.canceled, AppointmentStatus.no_show})

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.pending: frozenset({AppointmentStatus.confirmed, AppointmentStatus.canceled}),
    AppointmentStatus.confirmed: frozenset(
        {AppointmentStatus.completed, AppointmentStatus.canceled, AppointmentStatus.no_show}
    ),
    AppointmentStatus.completed: frozenset(),
    AppointmentStatus.canceled: frozenset(),
    AppointmentStatus.no_show: frozenset(),
}


@dataclass(frozen=True)
class AppointmentSegment:
    service_id: str
    start_time: datetime
    end_time: datetime

    def __post_init__(self) -> None:
        if self.start_time >= self.end_time:
            raise ValueError("Segment start_time must be before end_time")

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


@dataclass(frozen=True)
class Appointment:
    id: str
    provider_id: str
    client_id: str
    segments: tuple[AppointmentSegment, ...]
    status: AppointmentStatus = AppointmentStatus.pending
    payment_status: PaymentStatus = PaymentStatus.pending
    payment_method: PaymentMethod = PaymentMethod.local
    force_booked: bool = False
    created_at: datetime | None = None
    notes: str | None = None
    meta: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("Appointment needs at least one segment")
        for current, following in zip(self.segments, self.segments[1:]):
            if current.end_time != following.start_time:
                raise ValueError("Appointment segments must be contiguous")
        if self.segments[0].start_time.date() != self.segments[-1].end_time.date():
            raise ValueError("Appointment must start and end on the same date")

    @property
    def start_time(self) -> datetime:
        return self.segments[0].start_time

    @property
    def end_time(self) -> datetime:
        return self.segments[-1].end_time

    @property
    def day(self) -> date:
        return self.start_time.date()

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def blocks_calendar(self) -> bool:
        # Force-booked appointments are squeezed in and never hold the slot.
        return self.is_active and not self.force_booked

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_time < end and start < self.end_time

    def with_changes(self, **changes) -> "Appointment":
        return replace(self, **changes)
