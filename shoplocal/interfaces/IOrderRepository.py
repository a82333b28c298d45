from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from shoplocal.domain.enums import OrderStatus
from shoplocal.domain.models import Order

class IOrderRepository(ABC):
    @abstractmethod
    def create_order(self, order_fields: Dict, lines: List[Dict]) -> Order:
        """Persist the order and all its items in one transaction."""
        pass

    @abstractmethod
    def get_order(self, order_id: int) -> Optional[Order]:
        pass

    @abstractmethod
    def update_status(self, order_id: int, expected_status: OrderStatus, expected_version: int,
                      new_status: OrderStatus) -> Optional[Order]:
        """Compare-and-swap. Returns None when the order moved on since it was read."""
        pass

    @abstractmethod
    def list_for_customer(self, customer_id: int) -> List[Order]:
        pass

    @abstractmethod
    def list_for_shops(self, shop_ids: List[int]) -> List[Order]:
        pass

    @abstractmethod
    def get_all_orders(self, limit: int = 50) -> List[Order]:
        pass

    @abstractmethod
    def count_by_status(self) -> Dict[str, int]:
        pass
