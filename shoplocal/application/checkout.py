import logging
from typing import Dict, Optional

from shoplocal.application.auth import Actor, ensure_role
from shoplocal.application.cart_service import CartService
from shoplocal.application.order_manager import OrderLifecycleManager, OrderLine
from shoplocal.core.errors import ValidationError
from shoplocal.domain.enums import PaymentMethod, Role
from shoplocal.domain.models import Order
from shoplocal.infrastructure.state_manager import StateManager
from shoplocal.interfaces.IPaymentGateway import GatewayOrder, IPaymentGateway

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Two-step checkout: `begin` opens a payment with the gateway for the
    cart total, `confirm` verifies the gateway's confirmation and places
    the order. The cart survives until the order is stored.
    """

    def __init__(self, cart: CartService, orders: OrderLifecycleManager,
                 gateways: Dict[PaymentMethod, IPaymentGateway], state: StateManager,
                 currency: str = "INR", ttl: int = 3600):
        self.cart = cart
        self.orders = orders
        self.gateways = gateways
        self.state = state
        self.currency = currency
        self.ttl = ttl

    def begin(self, actor: Actor, payment_method: PaymentMethod) -> GatewayOrder:
        ensure_role(actor, Role.CUSTOMER)
        cart = self.cart.get_cart(actor.user_id)
        if not cart["items"]:
            raise ValidationError.for_field("items", "Your cart is empty")

        method = PaymentMethod(payment_method)
        gateway = self._gateway(method)
        amount = self.cart.total(cart)
        receipt = f"cart-{actor.user_id}-{cart['shopId']}"
        payment = gateway.create_order(amount, self.currency, receipt)

        self.state.set_json(self._key(actor.user_id), {
            "paymentMethod": method.value,
            "amount": amount,
            "gatewayOrderId": payment.gateway_order_id,
        }, ttl=self.ttl)
        logger.info(f"Checkout started for customer {actor.user_id}: {amount} {self.currency} via {method.value}")
        return payment

    def confirm(self, actor: Actor, confirmation: Dict[str, Optional[str]],
                delivery_address: Optional[str] = None, delivery_latitude: Optional[float] = None,
                delivery_longitude: Optional[float] = None) -> Order:
        ensure_role(actor, Role.CUSTOMER)
        pending = self.state.get_json(self._key(actor.user_id))
        if not pending:
            raise ValidationError("No checkout in progress")

        method = PaymentMethod(pending["paymentMethod"])
        gateway = self._gateway(method)

        if pending.get("gatewayOrderId"):
            confirmation = {**confirmation, "gateway_order_id": pending["gatewayOrderId"]}
        if not gateway.verify_payment(confirmation):
            logger.warning(f"Payment verification failed for customer {actor.user_id}")
            raise ValidationError("Invalid payment signature")

        cart = self.cart.get_cart(actor.user_id)
        if not cart["items"]:
            raise ValidationError.for_field("items", "Your cart is empty")

        order = self.orders.create_order(
            actor,
            shop_id=cart["shopId"],
            payment_method=method,
            items=[OrderLine(line["productId"], line["quantity"], line["price"]) for line in cart["items"]],
            total_amount=pending["amount"],
            payment_status=gateway.settles_on_confirmation,
            delivery_address=delivery_address,
            delivery_latitude=delivery_latitude,
            delivery_longitude=delivery_longitude,
        )

        self.cart.clear(actor.user_id)
        self.state.delete(self._key(actor.user_id))
        return order

    def _gateway(self, method: PaymentMethod) -> IPaymentGateway:
        gateway = self.gateways.get(method)
        if gateway is None:
            raise ValidationError.for_field("paymentMethod", f"{method.value} payments are not supported")
        return gateway

    @staticmethod
    def _key(user_id: int) -> str:
        return f"checkout:{user_id}"
