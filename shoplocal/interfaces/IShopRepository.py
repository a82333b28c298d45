from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from shoplocal.domain.models import Category, Product, Shop

class IShopRepository(ABC):
    @abstractmethod
    def list_categories(self) -> List[Category]:
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        pass

    @abstractmethod
    def create_category(self, data: Dict) -> Category:
        pass

    @abstractmethod
    def update_category(self, category_id: int, data: Dict) -> Optional[Category]:
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> bool:
        pass

    @abstractmethod
    def get_shop(self, shop_id: int) -> Optional[Shop]:
        pass

    @abstractmethod
    def list_shops(self, approved_only: bool = True, category_id: Optional[int] = None) -> List[Shop]:
        pass

    @abstractmethod
    def list_by_vendor(self, vendor_id: int) -> List[Shop]:
        pass

    @abstractmethod
    def create_shop(self, data: Dict) -> Shop:
        pass

    @abstractmethod
    def update_shop(self, shop_id: int, data: Dict) -> Optional[Shop]:
        pass

    @abstractmethod
    def delete_shop(self, shop_id: int) -> bool:
        pass

    @abstractmethod
    def list_products(self, shop_id: int) -> List[Product]:
        pass

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[Product]:
        pass

    @abstractmethod
    def get_products(self, product_ids: List[int]) -> Dict[int, Product]:
        pass

    @abstractmethod
    def create_product(self, data: Dict) -> Product:
        pass

    @abstractmethod
    def update_product(self, product_id: int, data: Dict) -> Optional[Product]:
        pass

    @abstractmethod
    def delete_product(self, product_id: int) -> bool:
        pass
