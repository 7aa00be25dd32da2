from __future__ import annotations

from abc import ABC, abstractmethod

from booking_engine.domain.entities.appointment import Appointment
from booking_engine.domain.entities.time_slot import TimeSlot


class SlotScorerPort(ABC):
    @abstractmethod
    def score(self, slots: list[TimeSlot], appointments: list[Appointment]) -> list[TimeSlot]:
        """
        Annotate slots with adaptation_score and adaptation_reason.

        Requirements:
        - Must return the same slots (same start/end), only annotated
        - Order is free; the optimizer restores start-time order
        - May raise; the optimizer degrades to the unscored list
        """
        raise NotImplementedError
