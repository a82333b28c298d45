import logging

from fastapi import APIRouter, Depends

from shoplocal.application.auth import Actor
from shoplocal.application.order_manager import OrderLine
from shoplocal.domain.enums import Role
from shoplocal.domain.schemas import CreateOrderRequest, OrderOut, UpdateStatusRequest
from shoplocal.interfaces.dependencies import current_actor, get_orders, require_role

router = APIRouter(prefix="/api", tags=["orders"])
logger = logging.getLogger(__name__)


def _orders_payload(orders):
    return [OrderOut.model_validate(order).to_payload() for order in orders]


@router.post("/orders", status_code=201)
def create_order(body: CreateOrderRequest, actor: Actor = Depends(require_role(Role.CUSTOMER)),
                 orders=Depends(get_orders)):
    if body.status and body.status != "pending":
        logger.info(f"Ignoring client status {body.status!r} on new order from customer {actor.user_id}")

    order = orders.create_order(
        actor,
        shop_id=body.shop_id,
        payment_method=body.payment_method,
        items=[OrderLine(item.product_id, item.quantity, item.price) for item in body.items],
        total_amount=body.total_amount,
        payment_status=body.payment_status,
        delivery_address=body.delivery_address,
        delivery_latitude=body.delivery_latitude,
        delivery_longitude=body.delivery_longitude,
    )
    return OrderOut.model_validate(order).to_payload()


@router.put("/orders/{order_id}/status")
def update_order_status(order_id: int, body: UpdateStatusRequest, actor: Actor = Depends(current_actor),
                        orders=Depends(get_orders)):
    order = orders.update_status(order_id, body.status, actor, customer_id=body.customer_id)
    return OrderOut.model_validate(order).to_payload()


@router.get("/customer/orders")
def customer_orders(actor: Actor = Depends(require_role(Role.CUSTOMER)), orders=Depends(get_orders)):
    return _orders_payload(orders.orders_for_customer(actor.user_id))


@router.get("/vendor/orders")
def vendor_orders(actor: Actor = Depends(require_role(Role.VENDOR)), orders=Depends(get_orders)):
    return _orders_payload(orders.orders_for_vendor(actor.user_id))


@router.get("/admin/customers/{customer_id}/orders")
def admin_customer_orders(customer_id: int, actor: Actor = Depends(require_role(Role.ADMIN)),
                          orders=Depends(get_orders)):
    return _orders_payload(orders.orders_for_customer(customer_id))
