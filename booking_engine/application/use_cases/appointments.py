from __future__ import annotations

import logging
from contextlib import ExitStack
from datetime import datetime
from typing import Callable

from booking_engine.application.exceptions import (
    AppointmentNotFoundError,
    CommitConflictError,
    InvalidStatusTransitionError,
    OverlapConflictError,
    StoreConstraintError,
    ValidationError,
)
from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.application.ports.working_hours import WorkingHoursPort
from booking_engine.application.use_cases.booking import appointment_payload
from booking_engine.application.use_cases.composer import ConsecutiveServiceComposer
from booking_engine.application.use_cases.events import EventDispatcher
from booking_engine.domain.entities.appointment import (
    ALLOWED_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    PaymentStatus,
)
from booking_engine.domain.entities.booking_request import ServiceRequest
from booking_engine.domain.entities.outbound_event import (
    APPOINTMENT_RESCHEDULED,
    APPOINTMENT_STATUS_CHANGED,
    PROVIDER_BALANCE_SYNC,
    OutboundEvent,
)

Clock = Callable[[], datetime]


class UpdateAppointmentStatusUseCase:
    def __init__(self, store: AppointmentStorePort, events: EventDispatcher) -> None:
        self._store = store
        self._events = events
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        payment_status: PaymentStatus | None = None,
    ) -> Appointment:
        current = self._require(appointment_id)

        with self._store.locked(current.provider_id, current.day):
            # Re-read under the lock; a concurrent writer may have moved it on.
            current = self._require(appointment_id)

            if status == current.status:
                if payment_status is None:
                    raise InvalidStatusTransitionError(f"Appointment is already {status.value}")
            elif status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidStatusTransitionError(
                    f"Cannot move appointment from {current.status.value} to {status.value}"
                )

            changes: dict[str, object] = {"status": status}
            if payment_status is not None:
                changes["payment_status"] = payment_status
            updated = self._store.save(current.with_changes(**changes))

        self._logger.info(
            "Appointment status updated",
            extra={
                "appointment_id": updated.id,
                "provider_id": updated.provider_id,
                "status": updated.status.value,
                "previous_status": current.status.value,
            },
        )

        payload = appointment_payload(updated)
        payload["previous_status"] = current.status.value
        self._events.emit(OutboundEvent(APPOINTMENT_STATUS_CHANGED, updated.provider_id, payload))
        if updated.status == AppointmentStatus.completed and current.status != AppointmentStatus.completed:
            self._events.emit(OutboundEvent(PROVIDER_BALANCE_SYNC, updated.provider_id, {"appointment_id": updated.id}))
        return updated

    def _require(self, appointment_id: str) -> Appointment:
        appointment = self._store.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")
        return appointment


class RescheduleAppointmentUseCase:
    """Move an active appointment to a new start, keeping its services and durations."""

    def __init__(
        self,
        working_hours: WorkingHoursPort,
        store: AppointmentStorePort,
        events: EventDispatcher,
        clock: Clock,
    ) -> None:
        self._working_hours = working_hours
        self._store = store
        self._events = events
        self._clock = clock
        self._composer = ConsecutiveServiceComposer()
        self._logger = logging.getLogger(__name__)

    def execute(self, appointment_id: str, new_start: datetime, force_booking: bool = False) -> Appointment:
        if new_start is None:
            raise ValidationError("start_time is required")

        current = self._store.get(appointment_id)
        if current is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")
        if not current.is_active:
            raise InvalidStatusTransitionError(f"Cannot reschedule a {current.status.value} appointment")

        services = [
            ServiceRequest(service_id=s.service_id, duration_minutes=s.duration_minutes) for s in current.segments
        ]
        hours = self._working_hours.get_working_hours(current.provider_id)
        new_day = new_start.date()

        self._composer.compose(
            new_start,
            services,
            hours,
            self._store.list_for_day(current.provider_id, new_day),
            now=self._clock(),
            force_override=force_booking,
            exclude_id=current.id,
        )

        # Lock both dates in a fixed order so two reschedules cannot deadlock.
        days = sorted({current.day, new_day})
        with ExitStack() as stack:
            for day in days:
                stack.enter_context(self._store.locked(current.provider_id, day))

            latest = self._store.get(appointment_id)
            if latest is None or not latest.is_active:
                raise CommitConflictError("Appointment changed concurrently; reload it", cause_kind="status")

            try:
                window = self._composer.compose(
                    new_start,
                    services,
                    hours,
                    self._store.list_for_day(current.provider_id, new_day),
                    now=self._clock(),
                    force_override=force_booking,
                    exclude_id=current.id,
                )
            except OverlapConflictError as e:
                raise CommitConflictError(
                    "Slot is no longer available; refresh availability",
                    e.start_time,
                    e.end_time,
                    cause_kind=e.kind,
                ) from e

            moved = latest.with_changes(segments=window.segments, force_booked=force_booking)
            try:
                saved = self._store.save(moved, previous_day=latest.day)
            except StoreConstraintError as e:
                raise CommitConflictError(
                    "Slot was taken concurrently; refresh availability",
                    window.start_time,
                    window.end_time,
                    cause_kind="exclusion_constraint",
                ) from e

        self._logger.info(
            "Appointment rescheduled",
            extra={"appointment_id": saved.id, "provider_id": saved.provider_id, "date": saved.day.isoformat()},
        )
        payload = appointment_payload(saved)
        payload["previous_start_time"] = current.start_time.isoformat()
        self._events.emit(OutboundEvent(APPOINTMENT_RESCHEDULED, saved.provider_id, payload))
        return saved
