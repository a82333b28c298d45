import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from shoplocal.application.auth import Actor, ensure_role
from shoplocal.core.errors import ConflictError, NotFoundError, ValidationError
from shoplocal.domain import channels
from shoplocal.domain.enums import OrderStatus, PaymentMethod, Role
from shoplocal.domain.lifecycle import check_transition
from shoplocal.domain.models import Order
from shoplocal.domain.schemas import CustomerDescriptor, NewOrderEvent, OrderItemOut, OrderStatusEvent
from shoplocal.interfaces.INotificationBroker import INotificationBroker
from shoplocal.interfaces.IOrderRepository import IOrderRepository
from shoplocal.interfaces.IShopRepository import IShopRepository
from shoplocal.interfaces.IUserRepository import IUserRepository

logger = logging.getLogger(__name__)


@dataclass
class OrderLine:
    product_id: int
    quantity: int
    price: Optional[float] = None  # what the client displayed, checked against the catalogue


class OrderLifecycleManager:
    """
    Creates orders and moves them through their lifecycle.

    Every successful write is followed by exactly one real-time event:
    `new-order` to the shop's vendor on creation, `order-status-update`
    to the order's customer on a status change.
    """

    def __init__(self, order_repo: IOrderRepository, shop_repo: IShopRepository, user_repo: IUserRepository,
                 broker: INotificationBroker, total_tolerance: float = 0.01):
        self.order_repo = order_repo
        self.shop_repo = shop_repo
        self.user_repo = user_repo
        self.broker = broker
        self.total_tolerance = total_tolerance

    def create_order(self, actor: Actor, shop_id: int, payment_method: PaymentMethod, items: List[OrderLine],
                     total_amount: Optional[float] = None, payment_status: bool = False,
                     delivery_address: Optional[str] = None, delivery_latitude: Optional[float] = None,
                     delivery_longitude: Optional[float] = None) -> Order:
        ensure_role(actor, Role.CUSTOMER)

        if not items:
            raise ValidationError.for_field("items", "Order must contain at least one item")

        shop = self.shop_repo.get_shop(shop_id)
        if shop is None:
            raise NotFoundError("Shop not found")

        lines = self._price_lines(shop_id, items)
        total = round(sum(line["price"] * line["quantity"] for line in lines), 2)
        if total_amount is not None and abs(total_amount - total) > self.total_tolerance:
            raise ValidationError.for_field(
                "totalAmount",
                f"Total {total_amount:.2f} does not match item prices ({total:.2f})",
                summary="Order total does not match item prices",
            )

        order = self.order_repo.create_order(
            {
                "customer_id": actor.user_id,
                "shop_id": shop_id,
                "status": OrderStatus.PENDING,
                "total_amount": total,
                "payment_method": PaymentMethod(payment_method),
                "payment_status": bool(payment_status),
                "delivery_address": delivery_address,
                "delivery_latitude": delivery_latitude,
                "delivery_longitude": delivery_longitude,
            },
            lines,
        )
        logger.info(f"Order {order.id} created by customer {actor.user_id} for shop {shop_id}, total {total}")

        self._notify_new_order(order, shop.vendor_id, actor)
        return order

    def update_status(self, order_id: int, new_status: OrderStatus, actor: Actor,
                      customer_id: Optional[int] = None) -> Order:
        """
        Validate and apply a status change, then tell the customer.

        `customer_id` is what older clients send along; the customer to
        notify always comes from the stored order.
        """
        order = self.order_repo.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found")

        shop = self.shop_repo.get_shop(order.shop_id)
        check_transition(actor, order, shop, new_status)

        updated = self.order_repo.update_status(order.id, order.status, order.version, OrderStatus(new_status))
        if updated is None:
            logger.warning(f"Order {order_id} changed while {actor.role.value}-{actor.user_id} was updating it")
            raise ConflictError("Order was updated by someone else, please refresh")

        if customer_id is not None and customer_id != updated.customer_id:
            logger.warning(f"Status update for order {order_id} named customer {customer_id}, "
                           f"order belongs to {updated.customer_id}")

        logger.info(f"Order {order_id}: {OrderStatus(order.status).value} -> {OrderStatus(updated.status).value} "
                    f"by {actor.role.value}-{actor.user_id}")

        event = OrderStatusEvent(order_id=updated.id, status=updated.status)
        self.broker.emit(channels.customer_channel(updated.customer_id), channels.ORDER_STATUS_UPDATE,
                         event.to_payload())
        return updated

    # --- Queries ---

    def orders_for_customer(self, customer_id: int) -> List[Order]:
        return self.order_repo.list_for_customer(customer_id)

    def orders_for_vendor(self, vendor_id: int) -> List[Order]:
        shop_ids = [shop.id for shop in self.shop_repo.list_by_vendor(vendor_id)]
        return self.order_repo.list_for_shops(shop_ids)

    def recent_orders(self, limit: int = 20) -> List[Order]:
        return self.order_repo.get_all_orders(limit)

    def status_counts(self) -> Dict[str, int]:
        return self.order_repo.count_by_status()

    # --- Helpers ---

    def _price_lines(self, shop_id: int, items: List[OrderLine]) -> List[dict]:
        products = self.shop_repo.get_products([item.product_id for item in items])
        errors = []
        lines = []
        for index, item in enumerate(items):
            field = f"items.{index}.productId"
            product = products.get(item.product_id)
            if product is None or product.shop_id != shop_id:
                errors.append({"field": field, "message": f"Product {item.product_id} is not sold by this shop"})
                continue
            if not product.is_available:
                errors.append({"field": field, "message": f"{product.name} is currently unavailable"})
                continue
            if item.quantity is None or item.quantity < 1:
                errors.append({"field": f"items.{index}.quantity", "message": "Quantity must be at least 1"})
                continue
            if item.price is not None and abs(item.price - product.selling_price) > self.total_tolerance:
                errors.append({
                    "field": f"items.{index}.price",
                    "message": f"Price of {product.name} is now {product.selling_price:.2f}",
                })
                continue
            lines.append({"product_id": product.id, "quantity": item.quantity, "price": product.selling_price})

        if errors:
            raise ValidationError("Invalid order items", errors=errors)
        return lines

    def _notify_new_order(self, order: Order, vendor_id: int, actor: Actor):
        customer = self.user_repo.get_user(order.customer_id)
        descriptor = CustomerDescriptor(id=order.customer_id, name=customer.name if customer else actor.name)
        event = NewOrderEvent(
            id=order.id,
            created_at=order.created_at,
            total_amount=order.total_amount,
            status=order.status,
            items=[OrderItemOut.model_validate(item) for item in order.items],
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            customer=descriptor,
        )
        self.broker.emit(channels.vendor_channel(vendor_id), channels.NEW_ORDER, event.to_payload())
