from abc import ABC, abstractmethod
from typing import Any, Dict

class INotificationBroker(ABC):
    @abstractmethod
    def emit(self, channel: str, event: str, payload: Dict[str, Any]) -> int:
        """Fire-and-forget fan-out to the channel's current members. Returns recipient count."""
        pass
