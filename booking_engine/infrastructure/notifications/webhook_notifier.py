from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_engine.application.ports.notifications import NotificationPort


class WebhookNotifier(NotificationPort):
    """Posts {event, payload} to the notification service."""

    def __init__(self, endpoint: str, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self._endpoint = endpoint
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def send(self, event: str, payload: dict[str, Any]) -> None:
        resp = self._client.post(self._endpoint, json={"event": event, "payload": payload})
        if resp.status_code >= 400:
            self._logger.error(
                "Notification dispatch failed",
                extra={"event": event, "status": resp.status_code, "reason": resp.text[:200]},
            )
            resp.raise_for_status()


class LoggingNotifier(NotificationPort):
    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def send(self, event: str, payload: dict[str, Any]) -> None:
        self._logger.info(
            "WOULD_SEND_NOTIFICATION",
            extra={"event": event, "appointment_id": payload.get("appointment_id")},
        )
