from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ConflictKind(str, Enum):
    overlap = "overlap"
    outside_working_hours = "outside_working_hours"
    past_date = "past_date"


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    start_time: datetime
    end_time: datetime
    conflicting_ids: tuple[str, ...] = ()
