from typing import Annotated

from fastapi import APIRouter, Body, Depends

from booking_engine.api.v1.schemas import (
    AnyProviderBookingSchema,
    AppointmentSchema,
    BookingRequestSchema,
    ConsecutiveBookingSchema,
)
from booking_engine.application.use_cases.booking import BookingTransactionCreator
from booking_engine.domain.entities.booking_request import ServiceRequest
from booking_engine.wiring.dependencies import get_booking_creator

router = APIRouter(prefix="/bookings")


@router.post("", response_model=AppointmentSchema, status_code=201)
def create_booking(
    req: Annotated[BookingRequestSchema, Body(discriminator="kind")],
    uc: BookingTransactionCreator = Depends(get_booking_creator),
):
    start_time = req.start_time
    if isinstance(req, ConsecutiveBookingSchema):
        appointment = uc.create_consecutive_booking(
            provider_id=req.provider_id,
            start_time=start_time,
            services=[ServiceRequest(s.service_id, s.duration_minutes) for s in req.services],
            client_id=req.client_id,
            payment_method=req.payment_method,
            force_booking=req.force_booking,
            notes=req.notes,
        )
    else:
        appointment = uc.create_booking(
            provider_id=req.provider_id,
            service_id=req.service_id,
            start_time=start_time,
            client_id=req.client_id,
            payment_method=req.payment_method,
            force_booking=req.force_booking,
            notes=req.notes,
        )
    return AppointmentSchema.from_entity(appointment)


@router.post("/any-provider", response_model=AppointmentSchema, status_code=201)
def create_booking_any_provider(
    req: AnyProviderBookingSchema,
    uc: BookingTransactionCreator = Depends(get_booking_creator),
):
    appointment = uc.create_with_any_provider(
        provider_ids=req.provider_ids,
        service_id=req.service_id,
        start_time=req.start_time,
        client_id=req.client_id,
        payment_method=req.payment_method,
    )
    return AppointmentSchema.from_entity(appointment)
