import logging
import math
from typing import Dict, List, Optional

from shoplocal.application.auth import Actor, ensure_role
from shoplocal.core.errors import AuthorizationError, NotFoundError, ValidationError
from shoplocal.domain import channels
from shoplocal.domain.enums import Role
from shoplocal.domain.models import Category, Product, Shop
from shoplocal.domain.schemas import ProductOut, ShopOut
from shoplocal.interfaces.INotificationBroker import INotificationBroker
from shoplocal.interfaces.IShopRepository import IShopRepository

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle (haversine) distance."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


class CatalogService:
    """Shops and their products. Every write is announced to live clients."""

    def __init__(self, shop_repo: IShopRepository, broker: INotificationBroker):
        self.shop_repo = shop_repo
        self.broker = broker

    # --- Categories ---

    def list_categories(self) -> List[Category]:
        return self.shop_repo.list_categories()

    def create_category(self, actor: Actor, data: Dict) -> Category:
        ensure_role(actor, Role.ADMIN)
        category = self.shop_repo.create_category(data)
        logger.info(f"Category {category.id} ({category.name}) created by admin {actor.user_id}")
        return category

    def update_category(self, actor: Actor, category_id: int, data: Dict) -> Category:
        ensure_role(actor, Role.ADMIN)
        category = self.shop_repo.update_category(category_id, data)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def delete_category(self, actor: Actor, category_id: int):
        ensure_role(actor, Role.ADMIN)
        if not self.shop_repo.delete_category(category_id):
            raise NotFoundError("Category not found")
        logger.info(f"Category {category_id} deleted by admin {actor.user_id}")

    # --- Shops ---

    def list_shops(self, lat: Optional[float] = None, lng: Optional[float] = None,
                   radius_km: Optional[float] = None, category_id: Optional[int] = None) -> List[Shop]:
        shops = self.shop_repo.list_shops(approved_only=True, category_id=category_id)
        if lat is None or lng is None:
            return shops

        radius_km = radius_km if radius_km is not None else 10.0
        nearby = []
        for shop in shops:
            if shop.latitude is None or shop.longitude is None:
                continue
            distance = distance_km(lat, lng, shop.latitude, shop.longitude)
            if distance <= radius_km:
                nearby.append((distance, shop))
        nearby.sort(key=lambda pair: (pair[0], pair[1].id))
        return [shop for _, shop in nearby]

    def all_shops(self, actor: Actor) -> List[Shop]:
        ensure_role(actor, Role.ADMIN)
        return self.shop_repo.list_shops(approved_only=False)

    def vendor_shops(self, actor: Actor) -> List[Shop]:
        ensure_role(actor, Role.VENDOR)
        return self.shop_repo.list_by_vendor(actor.user_id)

    def get_shop(self, shop_id: int, actor: Optional[Actor] = None) -> Shop:
        shop = self._require_shop(shop_id)
        if not shop.is_approved and not self._can_manage(actor, shop):
            raise AuthorizationError("Shop is awaiting approval")
        return shop

    def create_shop(self, actor: Actor, data: Dict) -> Shop:
        ensure_role(actor, Role.VENDOR)
        fields = dict(data)
        fields.pop("is_approved", None)
        self._check_category(fields.get("category_id"))
        fields["vendor_id"] = actor.user_id
        shop = self.shop_repo.create_shop(fields)
        logger.info(f"Shop {shop.id} created by vendor {actor.user_id}")
        self._emit_shop(channels.SHOP_ADDED, shop)
        return shop

    def update_shop(self, actor: Actor, shop_id: int, data: Dict) -> Shop:
        shop = self._require_shop(shop_id)
        self._ensure_manager(actor, shop)

        fields = dict(data)
        if "is_approved" in fields and actor.role is not Role.ADMIN:
            raise AuthorizationError("Only admins can approve shops")
        self._check_category(fields.get("category_id"))
        if not fields:
            return shop

        shop = self.shop_repo.update_shop(shop_id, fields)
        self._emit_shop(channels.SHOP_UPDATED, shop)
        return shop

    def approve_shop(self, actor: Actor, shop_id: int, approved: bool = True) -> Shop:
        ensure_role(actor, Role.ADMIN)
        self._require_shop(shop_id)
        shop = self.shop_repo.update_shop(shop_id, {"is_approved": approved})
        logger.info(f"Shop {shop_id} approval set to {approved} by admin {actor.user_id}")
        self._emit_shop(channels.SHOP_UPDATED, shop)
        return shop

    def toggle_shop(self, actor: Actor, shop_id: int) -> Shop:
        shop = self._require_shop(shop_id)
        self._ensure_manager(actor, shop)
        shop = self.shop_repo.update_shop(shop_id, {"is_open": not shop.is_open})
        self.broker.emit(channels.CUSTOMER_BROADCAST, channels.SHOP_TOGGLED,
                         {"shopId": shop.id, "isOpen": shop.is_open})
        return shop

    def delete_shop(self, actor: Actor, shop_id: int):
        shop = self._require_shop(shop_id)
        self._ensure_manager(actor, shop)
        self.shop_repo.delete_shop(shop_id)
        logger.info(f"Shop {shop_id} deleted by {actor.role.value}-{actor.user_id}")
        self.broker.emit(channels.CUSTOMER_BROADCAST, channels.SHOP_DELETED, {"shopId": shop_id})

    # --- Products ---

    def list_products(self, shop_id: int, actor: Optional[Actor] = None) -> List[Product]:
        self.get_shop(shop_id, actor)
        return self.shop_repo.list_products(shop_id)

    def create_product(self, actor: Actor, shop_id: int, data: Dict) -> Product:
        shop = self._require_shop(shop_id)
        self._ensure_manager(actor, shop)
        self._check_prices(data.get("mrp"), data.get("selling_price"))

        product = self.shop_repo.create_product({**data, "shop_id": shop_id})
        self._emit_product(channels.PRODUCT_ADDED, product)
        return product

    def update_product(self, actor: Actor, product_id: int, data: Dict) -> Product:
        product = self._require_product(product_id)
        self._ensure_manager(actor, self._require_shop(product.shop_id))

        fields = dict(data)
        fields.pop("shop_id", None)
        self._check_prices(fields.get("mrp", product.mrp), fields.get("selling_price", product.selling_price))
        if not fields:
            return product

        product = self.shop_repo.update_product(product_id, fields)
        self._emit_product(channels.PRODUCT_UPDATED, product)
        return product

    def delete_product(self, actor: Actor, product_id: int):
        product = self._require_product(product_id)
        self._ensure_manager(actor, self._require_shop(product.shop_id))
        self.shop_repo.delete_product(product_id)
        self.broker.emit(channels.shop_channel(product.shop_id), channels.PRODUCT_DELETED, {"productId": product_id})

    # --- Helpers ---

    def _require_shop(self, shop_id: int) -> Shop:
        shop = self.shop_repo.get_shop(shop_id)
        if shop is None:
            raise NotFoundError("Shop not found")
        return shop

    def _require_product(self, product_id: int) -> Product:
        product = self.shop_repo.get_product(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    def _can_manage(actor: Optional[Actor], shop: Shop) -> bool:
        if actor is None:
            return False
        return actor.role is Role.ADMIN or (actor.role is Role.VENDOR and shop.vendor_id == actor.user_id)

    def _ensure_manager(self, actor: Actor, shop: Shop):
        ensure_role(actor, Role.VENDOR)
        if not self._can_manage(actor, shop):
            raise AuthorizationError("Access denied")

    def _check_category(self, category_id: Optional[int]):
        if category_id is not None and self.shop_repo.get_category(category_id) is None:
            raise ValidationError.for_field("categoryId", f"Category {category_id} does not exist")

    @staticmethod
    def _check_prices(mrp: Optional[float], selling_price: Optional[float]):
        if mrp is not None and selling_price is not None and selling_price > mrp:
            raise ValidationError.for_field("sellingPrice", "Selling price cannot exceed MRP")

    def _emit_shop(self, event: str, shop: Shop):
        self.broker.emit(channels.CUSTOMER_BROADCAST, event, ShopOut.model_validate(shop).to_payload())

    def _emit_product(self, event: str, product: Product):
        self.broker.emit(channels.shop_channel(product.shop_id), event, ProductOut.model_validate(product).to_payload())
