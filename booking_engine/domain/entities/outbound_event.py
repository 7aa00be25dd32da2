from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

APPOINTMENT_CREATED = "appointment.created"
APPOINTMENT_STATUS_CHANGED = "appointment.status_changed"
APPOINTMENT_RESCHEDULED = "appointment.rescheduled"
PROVIDER_BALANCE_SYNC = "provider.balance_sync"


@dataclass(frozen=True)
class OutboundEvent:
    name: str
    provider_id: str
    payload: dict[str, Any] = field(default_factory=dict)
