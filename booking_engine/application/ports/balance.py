from abc import ABC, abstractmethod


class BalancePort(ABC):
    @abstractmethod
    def sync_provider_balance(self, provider_id: str) -> None:
        """Recompute the provider's earnings from completed appointments."""
        raise NotImplementedError
