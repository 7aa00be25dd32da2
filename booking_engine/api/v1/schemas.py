from datetime import date, datetime
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator

from booking_engine.core.config import settings
from booking_engine.domain.entities.appointment import (
    Appointment,
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
)
from booking_engine.domain.entities.service_catalog import Provider
from booking_engine.domain.entities.time_slot import TimeSlot


def to_business_time(value: datetime) -> datetime:
    """Naive wall-clock time in the business timezone. Aware values are converted, naive ones kept."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.BUSINESS_TIMEZONE)).replace(tzinfo=None)


class TimeSlotSchema(BaseModel):
    start_time: datetime
    end_time: datetime
    is_available: bool = True
    adaptation_score: float | None = None
    adaptation_reason: str | None = None

    @classmethod
    def from_entity(cls, slot: TimeSlot) -> "TimeSlotSchema":
        return cls(
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_available=slot.is_available,
            adaptation_score=slot.adaptation_score,
            adaptation_reason=slot.adaptation_reason,
        )


class AvailabilityResponseSchema(BaseModel):
    provider_id: str
    date: date
    duration_minutes: int
    slots: list[TimeSlotSchema]


class AvailabilityCheckSchema(BaseModel):
    available: bool
    kind: str | None = None
    start_time: datetime
    end_time: datetime
    conflicting_ids: list[str] = Field(default_factory=list)


class ProviderSchema(BaseModel):
    provider_id: str
    name: str
    service_ids: list[str]

    @classmethod
    def from_entity(cls, provider: Provider) -> "ProviderSchema":
        return cls(provider_id=provider.provider_id, name=provider.name, service_ids=sorted(provider.services))


class ProviderSearchResponseSchema(BaseModel):
    date: date
    providers: list[ProviderSchema]


class ServiceItemSchema(BaseModel):
    service_id: str
    # 0 or missing = provider/catalog duration
    duration_minutes: int = Field(default=0, ge=0)


class SingleBookingSchema(BaseModel):
    kind: Literal["single"]
    provider_id: str
    service_id: str
    start_time: datetime
    client_id: str
    payment_method: PaymentMethod = PaymentMethod.local
    force_booking: bool = False
    notes: str | None = None

    @field_validator("start_time")
    @classmethod
    def _to_business_time(cls, value: datetime) -> datetime:
        return to_business_time(value)


class ConsecutiveBookingSchema(BaseModel):
    kind: Literal["consecutive"]
    provider_id: str
    start_time: datetime
    services: list[ServiceItemSchema] = Field(min_length=1)
    client_id: str
    payment_method: PaymentMethod = PaymentMethod.local
    force_booking: bool = False
    notes: str | None = None

    @field_validator("start_time")
    @classmethod
    def _to_business_time(cls, value: datetime) -> datetime:
        return to_business_time(value)


BookingRequestSchema = SingleBookingSchema | ConsecutiveBookingSchema


class AnyProviderBookingSchema(BaseModel):
    provider_ids: list[str] = Field(min_length=1)
    service_id: str
    start_time: datetime
    client_id: str
    payment_method: PaymentMethod = PaymentMethod.local

    @field_validator("start_time")
    @classmethod
    def _to_business_time(cls, value: datetime) -> datetime:
        return to_business_time(value)


class StatusUpdateSchema(BaseModel):
    status: AppointmentStatus
    payment_status: PaymentStatus | None = None


class RescheduleSchema(BaseModel):
    start_time: datetime
    force_booking: bool = False

    @field_validator("start_time")
    @classmethod
    def _to_business_time(cls, value: datetime) -> datetime:
        return to_business_time(value)


class SegmentSchema(BaseModel):
    service_id: str
    start_time: datetime
    end_time: datetime


class AppointmentSchema(BaseModel):
    id: str
    provider_id: str
    client_id: str
    start_time: datetime
    end_time: datetime
    segments: list[SegmentSchema]
    status: AppointmentStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    force_booked: bool = False
    created_at: datetime | None = None
    notes: str | None = None

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentSchema":
        return cls(
            id=appointment.id,
            provider_id=appointment.provider_id,
            client_id=appointment.client_id,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            segments=[
                SegmentSchema(service_id=s.service_id, start_time=s.start_time, end_time=s.end_time)
                for s in appointment.segments
            ],
            status=appointment.status,
            payment_status=appointment.payment_status,
            payment_method=appointment.payment_method,
            force_booked=appointment.force_booked,
            created_at=appointment.created_at,
            notes=appointment.notes,
        )
