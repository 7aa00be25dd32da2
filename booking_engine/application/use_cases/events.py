from __future__ import annotations

import logging
from concurrent.futures import Executor

from booking_engine.application.ports.balance import BalancePort
from booking_engine.application.ports.notifications import NotificationPort
from booking_engine.domain.entities.outbound_event import PROVIDER_BALANCE_SYNC, OutboundEvent


class EventDispatcher:
    """
    Fire-and-forget delivery of outbound events to collaborators.

    With an executor, delivery runs on a worker thread and emit() returns
    immediately. Without one, delivery runs inline (tests, CLI). In both cases
    a failing collaborator is logged and never propagates to the caller.
    """

    def __init__(
        self,
        notifier: NotificationPort,
        balance: BalancePort,
        executor: Executor | None = None,
    ) -> None:
        self._notifier = notifier
        self._balance = balance
        self._executor = executor
        self._logger = logging.getLogger(__name__)

    def emit(self, event: OutboundEvent) -> None:
        if self._executor is None:
            self._deliver(event)
            return
        try:
            self._executor.submit(self._deliver, event)
        except RuntimeError as e:
            # Executor already shut down.
            self._logger.error("Event dropped", extra={"event": event.name, "reason": str(e)})

    def _deliver(self, event: OutboundEvent) -> None:
        try:
            if event.name == PROVIDER_BALANCE_SYNC:
                self._balance.sync_provider_balance(event.provider_id)
            else:
                self._notifier.send(event.name, event.payload)
            self._logger.info("Event delivered", extra={"event": event.name, "provider_id": event.provider_id})
        except Exception as e:
            self._logger.exception(
                "Event delivery failed",
                extra={"event": event.name, "provider_id": event.provider_id, "reason": str(e)},
            )
