from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from booking_engine.application.exceptions import (
    BookingError,
    CommitConflictError,
    OutsideWorkingHoursError,
    OverlapConflictError,
    PastDateError,
    StoreConstraintError,
    ValidationError,
)
from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.application.ports.service_catalog import ServiceCatalogPort
from booking_engine.application.ports.working_hours import WorkingHoursPort
from booking_engine.application.use_cases.composer import ConsecutiveServiceComposer
from booking_engine.application.use_cases.events import EventDispatcher
from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
)
from booking_engine.domain.entities.booking_request import BookingRequest, ServiceRequest
from booking_engine.domain.entities.outbound_event import (
    APPOINTMENT_CREATED,
    PROVIDER_BALANCE_SYNC,
    OutboundEvent,
)

Clock = Callable[[], datetime]


def initial_status(payment_method: PaymentMethod) -> AppointmentStatus:
    """In-person payment confirms immediately; online payment waits for the gateway."""
    if payment_method.is_in_person:
        return AppointmentStatus.confirmed
    return AppointmentStatus.pending


def appointment_payload(appointment: Appointment) -> dict[str, Any]:
    return {
        "appointment_id": appointment.id,
        "provider_id": appointment.provider_id,
        "client_id": appointment.client_id,
        "status": appointment.status.value,
        "payment_status": appointment.payment_status.value,
        "start_time": appointment.start_time.isoformat(),
        "end_time": appointment.end_time.isoformat(),
        "service_ids": [s.service_id for s in appointment.segments],
    }


class BookingTransactionCreator:
    def __init__(
        self,
        working_hours: WorkingHoursPort,
        store: AppointmentStorePort,
        catalog: ServiceCatalogPort,
        events: EventDispatcher,
        clock: Clock,
    ) -> None:
        self._working_hours = working_hours
        self._store = store
        self._catalog = catalog
        self._events = events
        self._clock = clock
        self._composer = ConsecutiveServiceComposer()
        self._logger = logging.getLogger(__name__)

    def create_booking(
        self,
        provider_id: str,
        service_id: str,
        start_time: datetime,
        client_id: str,
        payment_method: PaymentMethod = PaymentMethod.local,
        force_booking: bool = False,
        notes: str | None = None,
    ) -> Appointment:
        duration = self._service_duration(provider_id, service_id)
        request = BookingRequest(
            provider_id=provider_id,
            client_id=client_id,
            services=(ServiceRequest(service_id=service_id, duration_minutes=duration),),
            start_time=start_time,
            payment_method=payment_method,
            force_override=force_booking,
            notes=notes,
        )
        return self.commit(request)

    def create_consecutive_booking(
        self,
        provider_id: str,
        start_time: datetime,
        services: list[ServiceRequest],
        client_id: str,
        payment_method: PaymentMethod = PaymentMethod.local,
        force_booking: bool = False,
        notes: str | None = None,
    ) -> Appointment:
        if not services:
            raise ValidationError("At least one service is required")

        resolved: list[ServiceRequest] = []
        for service in services:
            # Raises for services the provider does not offer, even with an explicit duration.
            catalog_minutes = self._service_duration(provider_id, service.service_id)
            resolved.append(ServiceRequest(service.service_id, service.duration_minutes or catalog_minutes))

        request = BookingRequest(
            provider_id=provider_id,
            client_id=client_id,
            services=tuple(resolved),
            start_time=start_time,
            payment_method=payment_method,
            force_override=force_booking,
            notes=notes,
        )
        return self.commit(request)

    def create_with_any_provider(
        self,
        provider_ids: list[str],
        service_id: str,
        start_time: datetime,
        client_id: str,
        payment_method: PaymentMethod = PaymentMethod.local,
    ) -> Appointment:
        """Book the first provider, in the given order, whose calendar accepts the window."""
        if not provider_ids:
            raise ValidationError("provider_ids must not be empty")

        last_error: BookingError | None = None
        for provider_id in provider_ids:
            try:
                return self.create_booking(provider_id, service_id, start_time, client_id, payment_method)
            except PastDateError:
                raise
            except (OverlapConflictError, OutsideWorkingHoursError, CommitConflictError, ValidationError) as e:
                self._logger.info(
                    "Provider unavailable for window",
                    extra={"provider_id": provider_id, "kind": e.kind},
                )
                last_error = e

        raise OverlapConflictError(
            "No provider is available for this time",
            last_error.start_time if last_error else start_time,
            last_error.end_time if last_error else None,
        )

    def commit(self, request: BookingRequest) -> Appointment:
        """
        Validate and persist a booking.

        The request is first checked against a read snapshot, raising the typed
        pre-commit errors (OverlapConflictError and friends). The check then
        runs again inside the store transaction; an overlap found only there
        means a concurrent writer won the slot and becomes CommitConflictError,
        as does an exclusion constraint violation on insert.
        """
        self._validate(request)
        hours = self._working_hours.get_working_hours(request.provider_id)

        self._composer.compose(
            request.start_time,
            request.services,
            hours,
            self._store.list_for_day(request.provider_id, request.day),
            now=self._clock(),
            force_override=request.force_override,
        )

        with self._store.locked(request.provider_id, request.day):
            appointments = self._store.list_for_day(request.provider_id, request.day)
            try:
                window = self._composer.compose(
                    request.start_time,
                    request.services,
                    hours,
                    appointments,
                    now=self._clock(),
                    force_override=request.force_override,
                )
            except OverlapConflictError as e:
                raise CommitConflictError(
                    "Slot is no longer available; refresh availability",
                    e.start_time,
                    e.end_time,
                    cause_kind=e.kind,
                ) from e

            appointment = Appointment(
                id=self._store.next_id(),
                provider_id=request.provider_id,
                client_id=request.client_id,
                segments=window.segments,
                status=initial_status(request.payment_method),
                payment_status=PaymentStatus.pending,
                payment_method=request.payment_method,
                force_booked=request.force_override,
                created_at=self._clock(),
                notes=request.notes,
            )
            try:
                saved = self._store.add(appointment)
            except StoreConstraintError as e:
                raise CommitConflictError(
                    "Slot was taken concurrently; refresh availability",
                    window.start_time,
                    window.end_time,
                    cause_kind="exclusion_constraint",
                ) from e

        self._logger.info(
            "Booking committed",
            extra={
                "appointment_id": saved.id,
                "provider_id": saved.provider_id,
                "date": saved.day.isoformat(),
                "status": saved.status.value,
                "force_booked": saved.force_booked,
            },
        )
        self._events.emit(OutboundEvent(APPOINTMENT_CREATED, saved.provider_id, appointment_payload(saved)))
        self._events.emit(OutboundEvent(PROVIDER_BALANCE_SYNC, saved.provider_id, {"appointment_id": saved.id}))
        return saved

    def _validate(self, request: BookingRequest) -> None:
        if not request.provider_id:
            raise ValidationError("provider_id is required")
        if not request.client_id:
            raise ValidationError("client_id is required")
        if request.start_time is None:
            raise ValidationError("start_time is required")
        if not request.services:
            raise ValidationError("At least one service is required")
        for service in request.services:
            if service.duration_minutes <= 0:
                raise ValidationError(f"Service {service.service_id} has a non-positive duration")

    def _service_duration(self, provider_id: str, service_id: str) -> int:
        duration = self._catalog.get_duration_minutes(provider_id, service_id)
        if duration is None:
            raise ValidationError(f"Unknown service {service_id} for provider {provider_id}")
        return duration
