import logging
from typing import Dict, List, Optional

from sqlalchemy import desc, func

from shoplocal.core.errors import ConflictError
from shoplocal.domain.enums import OrderStatus
from shoplocal.domain.models import Order, OrderItem, Product, utcnow
from shoplocal.infrastructure.repositories.base import SqlAlchemyRepository
from shoplocal.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)


class SqlAlchemyOrderRepository(SqlAlchemyRepository, IOrderRepository):

    def create_order(self, order_fields: Dict, lines: List[Dict]) -> Order:
        """
        Insert the order row and one row per line inside a single transaction.

        Each line carries the price snapshot the caller validated. The product
        price is re-read here, in the same transaction, so a price change that
        slipped in between validation and write aborts the whole order instead
        of persisting a stale snapshot.
        """
        with self._session() as session:
            order = Order(**order_fields)
            session.add(order)
            session.flush()  # assigns order.id

            for line in lines:
                product = session.get(Product, line["product_id"])
                if product is None or product.selling_price != line["price"]:
                    raise ConflictError(f"Price of product {line['product_id']} changed, please review your cart")
                order.items.append(
                    OrderItem(
                        order_id=order.id,
                        product_id=line["product_id"],
                        quantity=line["quantity"],
                        price=line["price"],
                    )
                )
            session.flush()
            logger.info(f"Order {order.id} stored with {len(lines)} item(s)")
            return order

    def get_order(self, order_id: int) -> Optional[Order]:
        with self._session() as session:
            return session.get(Order, order_id)

    def update_status(self, order_id: int, expected_status: OrderStatus, expected_version: int,
                      new_status: OrderStatus) -> Optional[Order]:
        with self._session() as session:
            updated = (
                session.query(Order)
                .filter(
                    Order.id == order_id,
                    Order.status == expected_status,
                    Order.version == expected_version,
                )
                .update(
                    {
                        Order.status: new_status,
                        Order.version: Order.version + 1,
                        Order.updated_at: utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            if updated == 0:
                return None
            return session.get(Order, order_id, populate_existing=True)

    def list_for_customer(self, customer_id: int) -> List[Order]:
        with self._session() as session:
            return (
                session.query(Order)
                .filter(Order.customer_id == customer_id)
                .order_by(desc(Order.created_at), desc(Order.id))
                .all()
            )

    def list_for_shops(self, shop_ids: List[int]) -> List[Order]:
        if not shop_ids:
            return []
        with self._session() as session:
            return (
                session.query(Order)
                .filter(Order.shop_id.in_(shop_ids))
                .order_by(desc(Order.created_at), desc(Order.id))
                .all()
            )

    def get_all_orders(self, limit: int = 50) -> List[Order]:
        """
        Retrieves the latest orders from the database.
        Ordered by created_at DESC (Newest first).
        """
        with self._session() as session:
            return session.query(Order).order_by(desc(Order.created_at), desc(Order.id)).limit(limit).all()

    def count_by_status(self) -> Dict[str, int]:
        with self._session() as session:
            rows = session.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
            return {OrderStatus(status).value: count for status, count in rows}
