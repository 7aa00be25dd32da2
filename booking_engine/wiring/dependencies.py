from functools import lru_cache
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from zoneinfo import ZoneInfo

from booking_engine.core.config import settings
from booking_engine.application.ports.appointment_store import AppointmentStorePort
from booking_engine.application.ports.balance import BalancePort
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.application.ports.slot_scorer import SlotScorerPort
from booking_engine.application.use_cases.appointments import (
    RescheduleAppointmentUseCase,
    UpdateAppointmentStatusUseCase,
)
from booking_engine.application.use_cases.availability import CheckAvailabilityUseCase, GetAvailabilityUseCase
from booking_engine.application.use_cases.booking import BookingTransactionCreator
from booking_engine.application.use_cases.events import EventDispatcher
from booking_engine.application.use_cases.provider_search import SearchProvidersUseCase
from booking_engine.application.use_cases.slot_scoring import HeuristicSlotScorer, SlotOptimizer
from booking_engine.infrastructure.balance.balance_client import HttpBalanceClient, LoggingBalanceClient
from booking_engine.infrastructure.directory.provider_directory import ProviderDirectory
from booking_engine.infrastructure.llm.openai_scorer import OpenAISlotScorer
from booking_engine.infrastructure.notifications.webhook_notifier import LoggingNotifier, WebhookNotifier
from booking_engine.infrastructure.store.json_store import JsonAppointmentStore
from booking_engine.infrastructure.store.memory_store import MemoryAppointmentStore

logger = logging.getLogger(__name__)


def now_local() -> datetime:
    """Current wall-clock time in the business timezone, naive like stored appointment times."""
    return datetime.now(ZoneInfo(settings.BUSINESS_TIMEZONE)).replace(tzinfo=None)


@lru_cache
def get_provider_directory() -> ProviderDirectory:
    return ProviderDirectory.from_file(settings.PROVIDER_DIRECTORY_FILE)


@lru_cache
def get_appointment_store() -> AppointmentStorePort:
    if settings.STORE_PROVIDER.lower() == "json":
        logger.info("Using JsonAppointmentStore", extra={"reason": settings.STORE_DATA_DIR})
        return JsonAppointmentStore(data_dir=settings.STORE_DATA_DIR)
    return MemoryAppointmentStore()


@lru_cache
def get_slot_scorer() -> SlotScorerPort:
    if settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.strip():
        return OpenAISlotScorer()
    return HeuristicSlotScorer(min_gap_minutes=settings.SLOT_STEP_MINUTES)


def get_notifier() -> NotificationPort:
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotifier(endpoint=settings.NOTIFICATION_WEBHOOK_URL)
    if settings.ENV.lower() not in {"dev", "local", "test"}:
        logger.warning("NOTIFICATION_WEBHOOK_URL not set; notifications will only be logged")
    return LoggingNotifier()


def get_balance_client() -> BalancePort:
    if settings.BALANCE_SYNC_URL:
        return HttpBalanceClient(base_url=settings.BALANCE_SYNC_URL)
    return LoggingBalanceClient()


@lru_cache
def get_event_dispatcher() -> EventDispatcher:
    return EventDispatcher(
        notifier=get_notifier(),
        balance=get_balance_client(),
        executor=ThreadPoolExecutor(max_workers=settings.EVENT_WORKERS, thread_name_prefix="booking-events"),
    )


def get_availability_use_case() -> GetAvailabilityUseCase:
    directory = get_provider_directory()
    return GetAvailabilityUseCase(
        working_hours=directory,
        store=get_appointment_store(),
        catalog=directory,
        clock=now_local,
        optimizer=SlotOptimizer(get_slot_scorer(), enabled=settings.OPTIMIZER_ENABLED),
        step_minutes=settings.SLOT_STEP_MINUTES,
    )


def get_check_availability_use_case() -> CheckAvailabilityUseCase:
    return CheckAvailabilityUseCase(
        working_hours=get_provider_directory(),
        store=get_appointment_store(),
        clock=now_local,
    )


def get_search_providers_use_case() -> SearchProvidersUseCase:
    return SearchProvidersUseCase(catalog=get_provider_directory(), availability=get_availability_use_case())


def get_booking_creator() -> BookingTransactionCreator:
    directory = get_provider_directory()
    return BookingTransactionCreator(
        working_hours=directory,
        store=get_appointment_store(),
        catalog=directory,
        events=get_event_dispatcher(),
        clock=now_local,
    )


def get_update_status_use_case() -> UpdateAppointmentStatusUseCase:
    return UpdateAppointmentStatusUseCase(store=get_appointment_store(), events=get_event_dispatcher())


def get_reschedule_use_case() -> RescheduleAppointmentUseCase:
    return RescheduleAppointmentUseCase(
        working_hours=get_provider_directory(),
        store=get_appointment_store(),
        events=get_event_dispatcher(),
        clock=now_local,
    )
