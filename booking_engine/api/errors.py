import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_engine.application.exceptions import (
    AppointmentNotFoundError,
    BookingError,
    CommitConflictError,
    InvalidStatusTransitionError,
    OutsideWorkingHoursError,
    OverlapConflictError,
    PastDateError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[BookingError], int] = {
    ValidationError: 422,
    PastDateError: 422,
    OutsideWorkingHoursError: 422,
    OverlapConflictError: 409,
    CommitConflictError: 409,
    InvalidStatusTransitionError: 409,
    AppointmentNotFoundError: 404,
}


def status_code_for(exc: BookingError) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_CODES:
            return STATUS_CODES[exc_type]
    return 400


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.info(
        "Request rejected",
        extra={"kind": exc.kind, "reason": exc.message, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
