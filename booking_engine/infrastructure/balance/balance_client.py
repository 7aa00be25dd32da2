from __future__ import annotations

import logging

import httpx

from booking_engine.application.ports.balance import BalancePort


class HttpBalanceClient(BalancePort):
    """Asks the earnings service to recompute a provider's balance."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def sync_provider_balance(self, provider_id: str) -> None:
        url = f"{self._base_url}/providers/{provider_id}/balance/sync"
        try:
            resp = self._client.post(url)
            resp.raise_for_status()
        except Exception as e:
            self._logger.error("Balance sync failed", extra={"provider_id": provider_id, "reason": str(e)})
            raise
        self._logger.info("Balance sync requested", extra={"provider_id": provider_id})


class LoggingBalanceClient(BalancePort):
    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def sync_provider_balance(self, provider_id: str) -> None:
        self._logger.info("WOULD_SYNC_BALANCE", extra={"provider_id": provider_id})
