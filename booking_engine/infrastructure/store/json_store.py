from __future__ import annotations

import json
import threading
import uuid
from contextlib import AbstractContextManager
from datetime import date, datetime
from pathlib import Path
from typing import Any

from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentSegment,
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
)
from booking_engine.infrastructure.store.locks import KeyedLocks, check_exclusion


class JsonAppointmentStore(AppointmentStorePort):
    """
    File-backed store: one JSON file per (provider, date) plus an id index.

    Layout:
        <data_dir>/<provider_id>/<YYYY-MM-DD>.json
        <data_dir>/index.json   {appointment_id: [provider_id, "YYYY-MM-DD"]}
    """

    def __init__(self, data_dir: str = "./data/appointments") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks = KeyedLocks()
        self._io_lock = threading.RLock()

    def locked(self, provider_id: str, day: date) -> AbstractContextManager[None]:
        return self._locks.hold(provider_id, day)

    def list_for_day(self, provider_id: str, day: date) -> list[Appointment]:
        with self._io_lock:
            data = self._load_day(provider_id, day)
        appointments = [self._deserialize(item) for item in data["appointments"]]
        return sorted(appointments, key=lambda a: (a.start_time, a.id))

    def get(self, appointment_id: str) -> Appointment | None:
        with self._io_lock:
            location = self._load_index().get(appointment_id)
            if not location:
                return None
            provider_id, day_iso = location
            data = self._load_day(provider_id, date.fromisoformat(day_iso))
        for item in data["appointments"]:
            if item["id"] == appointment_id:
                return self._deserialize(item)
        return None

    def add(self, appointment: Appointment) -> Appointment:
        with self._io_lock:
            index = self._load_index()
            if appointment.id in index:
                raise ValueError(f"Duplicate appointment id {appointment.id}")

            data = self._load_day(appointment.provider_id, appointment.day)
            existing = [self._deserialize(item) for item in data["appointments"]]
            check_exclusion(appointment, existing)

            data["appointments"].append(self._serialize(appointment))
            self._save_json(self._day_path(appointment.provider_id, appointment.day), data)
            index[appointment.id] = [appointment.provider_id, appointment.day.isoformat()]
            self._save_json(self._index_path(), index)
        return appointment

    def save(self, appointment: Appointment, previous_day: date | None = None) -> Appointment:
        with self._io_lock:
            data = self._load_day(appointment.provider_id, appointment.day)
            existing = [self._deserialize(item) for item in data["appointments"]]
            check_exclusion(appointment, existing)

            data["appointments"] = [i for i in data["appointments"] if i["id"] != appointment.id]
            data["appointments"].append(self._serialize(appointment))
            self._save_json(self._day_path(appointment.provider_id, appointment.day), data)

            if previous_day is not None and previous_day != appointment.day:
                # Write order: new day, index, old day. The entry is never absent from both days.
                index = self._load_index()
                index[appointment.id] = [appointment.provider_id, appointment.day.isoformat()]
                self._save_json(self._index_path(), index)

                old = self._load_day(appointment.provider_id, previous_day)
                old["appointments"] = [i for i in old["appointments"] if i["id"] != appointment.id]
                self._save_json(self._day_path(appointment.provider_id, previous_day), old)
        return appointment

    def next_id(self) -> str:
        return uuid.uuid4().hex

    def _day_path(self, provider_id: str, day: date) -> Path:
        return self._data_dir / provider_id / f"{day.isoformat()}.json"

    def _index_path(self) -> Path:
        return self._data_dir / "index.json"

    def _load_day(self, provider_id: str, day: date) -> dict[str, Any]:
        """Load a day file, return an empty day if missing."""
        path = self._day_path(provider_id, day)
        if not path.exists():
            return {"provider_id": provider_id, "date": day.isoformat(), "appointments": [], "version": 1}
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if "version" not in data:
            data["version"] = 1
        return data

    def _load_index(self) -> dict[str, list[str]]:
        path = self._index_path()
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _save_json(self, file_path: Path, data: dict[str, Any]) -> None:
        """Save JSON atomically."""
        file_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            # Write to temp file
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            # Atomic rename
            temp_path.replace(file_path)
        except Exception:
            # Clean up temp file on error
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _serialize(self, appointment: Appointment) -> dict[str, Any]:
        return {
            "id": appointment.id,
            "provider_id": appointment.provider_id,
            "client_id": appointment.client_id,
            "segments": [
                {
                    "service_id": s.service_id,
                    "start_time": s.start_time.isoformat(),
                    "end_time": s.end_time.isoformat(),
                }
                for s in appointment.segments
            ],
            "status": appointment.status.value,
            "payment_status": appointment.payment_status.value,
            "payment_method": appointment.payment_method.value,
            "force_booked": appointment.force_booked,
            "created_at": appointment.created_at.isoformat() if appointment.created_at else None,
            "notes": appointment.notes,
            "meta": dict(appointment.meta),
        }

    def _deserialize(self, data: dict[str, Any]) -> Appointment:
        created_at = data.get("created_at")
        return Appointment(
            id=data["id"],
            provider_id=data["provider_id"],
            client_id=data["client_id"],
            segments=tuple(
                AppointmentSegment(
                    service_id=s["service_id"],
                    start_time=datetime.fromisoformat(s["start_time"]),
                    end_time=datetime.fromisoformat(s["end_time"]),
                )
                for s in data["segments"]
            ),
            status=AppointmentStatus(data.get("status", "pending")),
            payment_status=PaymentStatus(data.get("payment_status", "pending")),
            payment_method=PaymentMethod(data.get("payment_method", "local")),
            force_booked=bool(data.get("force_booked", False)),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            notes=data.get("notes"),
            meta=dict(data.get("meta") or {}),
        )
