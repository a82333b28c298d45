import logging
from typing import Dict, List

from shoplocal.core.errors import NotFoundError, ValidationError
from shoplocal.infrastructure.state_manager import StateManager
from shoplocal.interfaces.IShopRepository import IShopRepository

logger = logging.getLogger(__name__)


def _empty_cart() -> Dict:
    return {"shopId": None, "items": []}


class CartService:
    """
    One cart per customer, bound to a single shop.

    Stored as `{"shopId": int, "items": [{productId, name, price, quantity}]}`
    under `cart:{user_id}`. The price is what the customer was shown; the
    order manager re-checks it against the catalogue at checkout.
    """

    def __init__(self, shop_repo: IShopRepository, state: StateManager, ttl: int = 3600):
        self.shop_repo = shop_repo
        self.state = state
        self.ttl = ttl

    def get_cart(self, user_id: int) -> Dict:
        return self.state.get_json(self._key(user_id)) or _empty_cart()

    def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> Dict:
        if quantity < 1:
            raise ValidationError.for_field("quantity", "Quantity must be at least 1")

        product = self.shop_repo.get_product(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        if not product.is_available:
            raise ValidationError.for_field("productId", f"{product.name} is currently unavailable")

        cart = self.get_cart(user_id)
        if cart["shopId"] != product.shop_id:
            if cart["items"]:
                logger.info(f"Cart of {user_id} switched from shop {cart['shopId']} to {product.shop_id}")
            cart = {"shopId": product.shop_id, "items": []}

        for line in cart["items"]:
            if line["productId"] == product_id:
                line["quantity"] += quantity
                break
        else:
            cart["items"].append({
                "productId": product.id,
                "name": product.name,
                "price": product.selling_price,
                "quantity": quantity,
            })

        self._save(user_id, cart)
        return cart

    def set_quantity(self, user_id: int, product_id: int, quantity: int) -> Dict:
        if quantity <= 0:
            return self.remove_item(user_id, product_id)

        cart = self.get_cart(user_id)
        for line in cart["items"]:
            if line["productId"] == product_id:
                line["quantity"] = quantity
                self._save(user_id, cart)
                break
        return cart

    def remove_item(self, user_id: int, product_id: int) -> Dict:
        cart = self.get_cart(user_id)
        remaining = [line for line in cart["items"] if line["productId"] != product_id]
        if len(remaining) == len(cart["items"]):
            return cart
        cart["items"] = remaining
        if not remaining:
            self.clear(user_id)
            return _empty_cart()
        self._save(user_id, cart)
        return cart

    def clear(self, user_id: int):
        self.state.delete(self._key(user_id))

    @staticmethod
    def total(cart: Dict) -> float:
        return round(sum(line["price"] * line["quantity"] for line in cart["items"]), 2)

    @staticmethod
    def lines(cart: Dict) -> List[Dict]:
        return [dict(line) for line in cart["items"]]

    def _save(self, user_id: int, cart: Dict):
        self.state.set_json(self._key(user_id), cart, ttl=self.ttl)

    @staticmethod
    def _key(user_id: int) -> str:
        return f"cart:{user_id}"
