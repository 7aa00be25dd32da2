from datetime import date, datetime

from fastapi import APIRouter, Depends, Query

from booking_engine.api.v1.schemas import (
    AvailabilityCheckSchema,
    AvailabilityResponseSchema,
    ProviderSchema,
    ProviderSearchResponseSchema,
    TimeSlotSchema,
    to_business_time,
)
from booking_engine.application.use_cases.availability import CheckAvailabilityUseCase, GetAvailabilityUseCase
from booking_engine.application.use_cases.provider_search import SearchProvidersUseCase
from booking_engine.wiring.dependencies import (
    get_availability_use_case,
    get_check_availability_use_case,
    get_search_providers_use_case,
)

router = APIRouter(prefix="/providers")


def _split_ids(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


@router.get("/search", response_model=ProviderSearchResponseSchema)
def search_providers(
    date: date = Query(...),
    service_ids: str = Query(..., description="Comma separated service ids"),
    uc: SearchProvidersUseCase = Depends(get_search_providers_use_case),
):
    providers = uc.execute(_split_ids(service_ids), date)
    return ProviderSearchResponseSchema(date=date, providers=[ProviderSchema.from_entity(p) for p in providers])


@router.get("/{provider_id}/availability", response_model=AvailabilityResponseSchema)
def get_availability(
    provider_id: str,
    date: date = Query(...),
    duration_minutes: int | None = Query(None),
    service_ids: str | None = Query(None, description="Comma separated; used when duration_minutes is absent"),
    step_minutes: int | None = Query(None),
    include_unavailable: bool = Query(False),
    uc: GetAvailabilityUseCase = Depends(get_availability_use_case),
):
    ids = _split_ids(service_ids)
    duration = uc.resolve_duration(provider_id, duration_minutes, ids)
    slots = uc.execute(
        provider_id,
        date,
        duration_minutes=duration,
        step_minutes=step_minutes,
        include_unavailable=include_unavailable,
    )
    return AvailabilityResponseSchema(
        provider_id=provider_id,
        date=date,
        duration_minutes=duration,
        slots=[TimeSlotSchema.from_entity(s) for s in slots],
    )


@router.get("/{provider_id}/availability/check", response_model=AvailabilityCheckSchema)
def check_availability(
    provider_id: str,
    start: datetime = Query(...),
    duration_minutes: int = Query(...),
    uc: CheckAvailabilityUseCase = Depends(get_check_availability_use_case),
):
    result = uc.execute(provider_id, to_business_time(start), duration_minutes)
    return AvailabilityCheckSchema(
        available=result.available,
        kind=result.kind,
        start_time=result.start_time,
        end_time=result.end_time,
        conflicting_ids=list(result.conflicting_ids),
    )
