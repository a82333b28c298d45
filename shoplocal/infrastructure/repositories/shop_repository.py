import logging
from typing import Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError

from shoplocal.core.errors import ValidationError
from shoplocal.domain.models import Category, Order, OrderItem, Product, Review, Shop
from shoplocal.infrastructure.repositories.base import SqlAlchemyRepository
from shoplocal.interfaces.IShopRepository import IShopRepository

logger = logging.getLogger(__name__)


class SqlAlchemyShopRepository(SqlAlchemyRepository, IShopRepository):

    # --- Categories ---

    def list_categories(self) -> List[Category]:
        with self._session() as session:
            return session.query(Category).order_by(Category.id).all()

    def get_category(self, category_id: int) -> Optional[Category]:
        with self._session() as session:
            return session.get(Category, category_id)

    def create_category(self, data: Dict) -> Category:
        with self._session() as session:
            category = Category(**data)
            session.add(category)
            session.flush()
            return category

    def update_category(self, category_id: int, data: Dict) -> Optional[Category]:
        with self._session() as session:
            category = session.get(Category, category_id)
            if category is None:
                return None
            for key, value in data.items():
                setattr(category, key, value)
            session.flush()
            return category

    def delete_category(self, category_id: int) -> bool:
        with self._session() as session:
            category = session.get(Category, category_id)
            if category is None:
                return False
            if session.query(Shop.id).filter(Shop.category_id == category_id).first() is not None:
                raise ValidationError("Category still has shops and cannot be deleted")
            session.delete(category)
            return True

    # --- Shops ---

    def get_shop(self, shop_id: int) -> Optional[Shop]:
        with self._session() as session:
            return session.get(Shop, shop_id)

    def list_shops(self, approved_only: bool = True, category_id: Optional[int] = None) -> List[Shop]:
        with self._session() as session:
            query = session.query(Shop)
            if approved_only:
                query = query.filter(Shop.is_approved.is_(True))
            if category_id is not None:
                query = query.filter(Shop.category_id == category_id)
            return query.order_by(desc(Shop.created_at), desc(Shop.id)).all()

    def list_by_vendor(self, vendor_id: int) -> List[Shop]:
        with self._session() as session:
            return session.query(Shop).filter(Shop.vendor_id == vendor_id).order_by(Shop.id).all()

    def create_shop(self, data: Dict) -> Shop:
        with self._session() as session:
            shop = Shop(**data)
            session.add(shop)
            session.flush()
            return shop

    def update_shop(self, shop_id: int, data: Dict) -> Optional[Shop]:
        with self._session() as session:
            shop = session.get(Shop, shop_id)
            if shop is None:
                return None
            for key, value in data.items():
                setattr(shop, key, value)
            session.flush()
            return shop

    def delete_shop(self, shop_id: int) -> bool:
        with self._session() as session:
            shop = session.get(Shop, shop_id)
            if shop is None:
                return False
            has_orders = session.query(Order.id).filter(Order.shop_id == shop_id).first() is not None
            has_reviews = session.query(Review.id).filter(Review.shop_id == shop_id).first() is not None
            if has_orders or has_reviews:
                raise ValidationError("Shop has orders or reviews and cannot be deleted")
            try:
                session.query(Product).filter(Product.shop_id == shop_id).delete(synchronize_session=False)
                session.delete(shop)
                session.flush()
            except IntegrityError as e:
                logger.warning(f"Shop {shop_id} still referenced: {e.orig}")
                raise ValidationError("Shop has orders or reviews and cannot be deleted")
            return True

    # --- Products ---

    def list_products(self, shop_id: int) -> List[Product]:
        with self._session() as session:
            return session.query(Product).filter(Product.shop_id == shop_id).order_by(Product.id).all()

    def get_product(self, product_id: int) -> Optional[Product]:
        with self._session() as session:
            return session.get(Product, product_id)

    def get_products(self, product_ids: List[int]) -> Dict[int, Product]:
        if not product_ids:
            return {}
        with self._session() as session:
            products = session.query(Product).filter(Product.id.in_(set(product_ids))).all()
            return {p.id: p for p in products}

    def create_product(self, data: Dict) -> Product:
        with self._session() as session:
            product = Product(**data)
            session.add(product)
            session.flush()
            return product

    def update_product(self, product_id: int, data: Dict) -> Optional[Product]:
        with self._session() as session:
            product = session.get(Product, product_id)
            if product is None:
                return None
            for key, value in data.items():
                setattr(product, key, value)
            session.flush()
            return product

    def delete_product(self, product_id: int) -> bool:
        with self._session() as session:
            product = session.get(Product, product_id)
            if product is None:
                return False
            if session.query(OrderItem.id).filter(OrderItem.product_id == product_id).first() is not None:
                raise ValidationError("Product appears in existing orders and cannot be deleted")
            try:
                session.delete(product)
                session.flush()
            except IntegrityError as e:
                logger.warning(f"Product {product_id} still referenced: {e.orig}")
                raise ValidationError("Product appears in existing orders and cannot be deleted")
            return True
