from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class GatewayOrder:
    """What the client needs to open the gateway's payment sheet."""
    amount: float
    currency: str
    gateway_order_id: Optional[str] = None
    key_id: Optional[str] = None
    client_secret: Optional[str] = None


class IPaymentGateway(ABC):
    # True when a verified confirmation means the money is already captured
    settles_on_confirmation: bool = True

    @abstractmethod
    def create_order(self, amount: float, currency: str, receipt: str) -> GatewayOrder:
        pass

    @abstractmethod
    def verify_payment(self, confirmation: Dict[str, Optional[str]]) -> bool:
        pass
