from abc import ABC, abstractmethod
from typing import Any


class NotificationPort(ABC):
    @abstractmethod
    def send(self, event: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError
