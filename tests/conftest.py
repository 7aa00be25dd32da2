from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

import pytest

from booking_engine.application.ports.balance import BalancePort
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.application.use_cases.booking import BookingTransactionCreator
from booking_engine.application.use_cases.events import EventDispatcher
from booking_engine.domain.entities.appointment import Appointment, AppointmentSegment, AppointmentStatus
from booking_engine.domain.entities.service_catalog import Provider, ServiceCatalogEntry
from booking_engine.domain.entities.working_hours import TimeRange, WorkingHours
from booking_engine.infrastructure.directory.provider_directory import ProviderDirectory
from booking_engine.infrastructure.store.memory_store import MemoryAppointmentStore

# Monday 08:00, one hour before opening.
NOW = datetime(2030, 6, 3, 8, 0)


class RecordingNotifier(NotificationPort):
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []

    def send(self, event: str, payload: dict[str, Any]) -> None:
        self.sent.append((event, payload))


class RecordingBalance(BalancePort):
    def __init__(self) -> None:
        self.synced: list[str] = []

    def sync_provider_balance(self, provider_id: str) -> None:
        self.synced.append(provider_id)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def day() -> date:
    return NOW.date()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def weekday_hours() -> WorkingHours:
    """p1: Monday to Friday 09:00-18:00, no breaks."""
    return WorkingHours(provider_id="p1", weekly={d: (TimeRange.parse("09:00", "18:00"),) for d in range(5)})


@pytest.fixture
def directory(weekday_hours: WorkingHours) -> ProviderDirectory:
    return ProviderDirectory(
        services={
            "haircut": ServiceCatalogEntry("haircut", "Haircut", 30, price=4000),
            "beard": ServiceCatalogEntry("beard", "Beard trim", 45, price=2500),
            "coloring": ServiceCatalogEntry("coloring", "Coloring", 90),
        },
        providers={
            "p1": Provider("p1", "Ana", services={"haircut": None, "beard": None}),
            "p2": Provider("p2", "Bruno", services={"haircut": 40, "coloring": None}),
        },
        working_hours={
            "p1": weekday_hours,
            "p2": WorkingHours(provider_id="p2", weekly={0: (TimeRange.parse("09:00", "12:00"),)}),
        },
    )


@pytest.fixture
def store() -> MemoryAppointmentStore:
    return MemoryAppointmentStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def balance() -> RecordingBalance:
    return RecordingBalance()


@pytest.fixture
def events(notifier: RecordingNotifier, balance: RecordingBalance) -> EventDispatcher:
    return EventDispatcher(notifier=notifier, balance=balance)


@pytest.fixture
def creator(directory, store, events, clock) -> BookingTransactionCreator:
    return BookingTransactionCreator(
        working_hours=directory,
        store=store,
        catalog=directory,
        events=events,
        clock=clock,
    )


@pytest.fixture
def make_appointment():
    """Build an appointment on the fixed test date from an "HH:MM" start."""

    def _make(
        appointment_id: str,
        start: str,
        minutes: int = 30,
        status: AppointmentStatus = AppointmentStatus.confirmed,
        provider_id: str = "p1",
        force_booked: bool = False,
        on: date | None = None,
    ) -> Appointment:
        start_time = datetime.combine(on or NOW.date(), datetime.strptime(start, "%H:%M").time())
        segment = AppointmentSegment("haircut", start_time, start_time + timedelta(minutes=minutes))
        return Appointment(
            id=appointment_id,
            provider_id=provider_id,
            client_id="c1",
            segments=(segment,),
            status=status,
            force_booked=force_booked,
        )

    return _make
