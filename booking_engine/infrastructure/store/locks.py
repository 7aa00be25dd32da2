from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterator

from booking_engine.application.exceptions import StoreConstraintError
from booking_engine.domain.entities.appointment import Appointment


class KeyedLocks:
    """One lock per (provider_id, date), created on first use."""

    def __init__(self) -> None:
        self._locks: dict[tuple[str, date], threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict

    def _get_lock(self, provider_id: str, day: date) -> threading.Lock:
        key = (provider_id, day)
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    @contextmanager
    def hold(self, provider_id: str, day: date) -> Iterator[None]:
        lock = self._get_lock(provider_id, day)
        with lock:
            yield


def check_exclusion(candidate: Appointment, existing: list[Appointment]) -> None:
    """
    Exclusion constraint: active, non-forced appointments of one provider never overlap.

    Raises StoreConstraintError naming the clashing appointment.
    """
    if not candidate.blocks_calendar:
        return
    for other in existing:
        if other.id == candidate.id or other.provider_id != candidate.provider_id:
            continue
        if other.blocks_calendar and other.overlaps(candidate.start_time, candidate.end_time):
            raise StoreConstraintError(f"Appointment {candidate.id} overlaps {other.id}")
