from fastapi import APIRouter, Depends

from booking_engine.api.v1.schemas import AppointmentSchema, RescheduleSchema, StatusUpdateSchema
from booking_engine.application.use_cases.appointments import (
    RescheduleAppointmentUseCase,
    UpdateAppointmentStatusUseCase,
)
from booking_engine.wiring.dependencies import get_reschedule_use_case, get_update_status_use_case

router = APIRouter(prefix="/appointments")


@router.put("/{appointment_id}/status", response_model=AppointmentSchema)
def update_status(
    appointment_id: str,
    req: StatusUpdateSchema,
    uc: UpdateAppointmentStatusUseCase = Depends(get_update_status_use_case),
):
    appointment = uc.execute(appointment_id, req.status, req.payment_status)
    return AppointmentSchema.from_entity(appointment)


@router.put("/{appointment_id}/reschedule", response_model=AppointmentSchema)
def reschedule(
    appointment_id: str,
    req: RescheduleSchema,
    uc: RescheduleAppointmentUseCase = Depends(get_reschedule_use_case),
):
    appointment = uc.execute(appointment_id, req.start_time, force_booking=req.force_booking)
    return AppointmentSchema.from_entity(appointment)
