from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from booking_engine.domain.entities.appointment import PaymentMethod


@dataclass(frozen=True)
class ServiceRequest:
    service_id: str
    duration_minutes: int


@dataclass(frozen=True)
class BookingRequest:
    provider_id: str
    client_id: str
    services: tuple[ServiceRequest, ...]
    start_time: datetime
    payment_method: PaymentMethod = PaymentMethod.local
    force_override: bool = False
    notes: str | None = None

    @property
    def is_consecutive(self) -> bool:
        return len(self.services) > 1

    @property
    def day(self) -> date:
        return self.start_time.date()

    @property
    def total_minutes(self) -> int:
        return sum(s.duration_minutes for s in self.services)
