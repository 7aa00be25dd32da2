from __future__ import annotations

import threading
import uuid
from contextlib import AbstractContextManager
from datetime import date

from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.domain.entities.appointment import Appointment
from booking_engine.infrastructure.store.locks import KeyedLocks, check_exclusion


class MemoryAppointmentStore(AppointmentStorePort):
    def __init__(self) -> None:
        self._appointments: dict[str, Appointment] = {}
        self._by_day: dict[tuple[str, date], list[str]] = {}
        self._locks = KeyedLocks()
        self._data_lock = threading.Lock()

    def locked(self, provider_id: str, day: date) -> AbstractContextManager[None]:
        return self._locks.hold(provider_id, day)

    def list_for_day(self, provider_id: str, day: date) -> list[Appointment]:
        with self._data_lock:
            ids = list(self._by_day.get((provider_id, day), []))
            appointments = [self._appointments[i] for i in ids]
        return sorted(appointments, key=lambda a: (a.start_time, a.id))

    def get(self, appointment_id: str) -> Appointment | None:
        with self._data_lock:
            return self._appointments.get(appointment_id)

    def add(self, appointment: Appointment) -> Appointment:
        key = (appointment.provider_id, appointment.day)
        with self._data_lock:
            if appointment.id in self._appointments:
                raise ValueError(f"Duplicate appointment id {appointment.id}")
            check_exclusion(appointment, [self._appointments[i] for i in self._by_day.get(key, [])])
            self._appointments[appointment.id] = appointment
            self._by_day.setdefault(key, []).append(appointment.id)
        return appointment

    def save(self, appointment: Appointment, previous_day: date | None = None) -> Appointment:
        key = (appointment.provider_id, appointment.day)
        with self._data_lock:
            if appointment.id not in self._appointments:
                raise KeyError(appointment.id)
            check_exclusion(appointment, [self._appointments[i] for i in self._by_day.get(key, [])])
            if previous_day is not None and previous_day != appointment.day:
                old_ids = self._by_day.get((appointment.provider_id, previous_day), [])
                if appointment.id in old_ids:
                    old_ids.remove(appointment.id)
                self._by_day.setdefault(key, []).append(appointment.id)
            self._appointments[appointment.id] = appointment
        return appointment

    def next_id(self) -> str:
        return uuid.uuid4().hex
