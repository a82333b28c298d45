import logging
from typing import Dict, Optional

import razorpay
import requests
import stripe
from razorpay.errors import BadRequestError, GatewayError, ServerError, SignatureVerificationError

from shoplocal.core.config import settings
from shoplocal.core.errors import IntegrationError
from shoplocal.domain.enums import PaymentMethod
from shoplocal.interfaces.IPaymentGateway import GatewayOrder, IPaymentGateway

logger = logging.getLogger(__name__)


def _minor_units(amount: float) -> int:
    # Both gateways take the smallest currency unit (paise, cents)
    return int(round(amount * 100))


class RazorpayGateway(IPaymentGateway):
    """UPI payments through the Razorpay Orders API."""

    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None, client=None):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.client = client or razorpay.Client(auth=(self.key_id, self.key_secret))

    @property
    def enabled(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def create_order(self, amount: float, currency: str, receipt: str) -> GatewayOrder:
        if not self.enabled:
            raise IntegrationError("Payment gateway is not configured")

        try:
            data = self.client.order.create(data={
                "amount": _minor_units(amount),
                "currency": currency,
                "receipt": receipt,
            })
        except (BadRequestError, GatewayError, ServerError, requests.RequestException) as e:
            logger.error(f"❌ Razorpay rejected order: {e}")
            raise IntegrationError("Failed to create payment order") from e

        logger.info(f"Razorpay order {data.get('id')} created for {amount} {currency}")
        return GatewayOrder(amount=amount, currency=currency, gateway_order_id=data.get("id"), key_id=self.key_id)

    def verify_payment(self, confirmation: Dict[str, Optional[str]]) -> bool:
        order_id = confirmation.get("gateway_order_id")
        payment_id = confirmation.get("gateway_payment_id")
        signature = confirmation.get("gateway_signature")
        if not (order_id and payment_id and signature and self.key_secret):
            return False

        try:
            return bool(self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            }))
        except SignatureVerificationError:
            return False


class StripeGateway(IPaymentGateway):
    """Card payments through Stripe PaymentIntents."""

    def __init__(self, secret_key: Optional[str] = None, publishable_key: Optional[str] = None):
        self.secret_key = secret_key or settings.STRIPE_SECRET_KEY
        self.publishable_key = publishable_key or settings.STRIPE_PUBLISHABLE_KEY

    @property
    def enabled(self) -> bool:
        return bool(self.secret_key)

    def create_order(self, amount: float, currency: str, receipt: str) -> GatewayOrder:
        if not self.enabled:
            raise IntegrationError("Payment gateway is not configured")

        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.secret_key,
                amount=_minor_units(amount),
                currency=currency.lower(),
                payment_method_types=["card"],
                metadata={"receipt": receipt},
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe rejected payment intent: {e}")
            raise IntegrationError("Failed to create payment intent") from e

        logger.info(f"Stripe intent {intent.id} created for {amount} {currency}")
        return GatewayOrder(amount=amount, currency=currency, gateway_order_id=intent.id,
                            key_id=self.publishable_key, client_secret=intent.client_secret)

    def verify_payment(self, confirmation: Dict[str, Optional[str]]) -> bool:
        intent_id = confirmation.get("gateway_order_id")
        if not (intent_id and self.secret_key):
            return False

        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.error(f"❌ Could not fetch Stripe intent {intent_id}: {e}")
            raise IntegrationError("Failed to verify payment") from e

        if intent.status != "succeeded":
            logger.warning(f"Stripe intent {intent_id} is {intent.status}, not succeeded")
            return False
        return True


class CashOnDeliveryGateway(IPaymentGateway):
    """Nothing to call: money changes hands at the door."""

    settles_on_confirmation = False

    def create_order(self, amount: float, currency: str, receipt: str) -> GatewayOrder:
        return GatewayOrder(amount=amount, currency=currency)

    def verify_payment(self, confirmation: Dict[str, Optional[str]]) -> bool:
        return True


def default_gateways() -> Dict[PaymentMethod, IPaymentGateway]:
    return {
        PaymentMethod.UPI: RazorpayGateway(),
        PaymentMethod.CARD: StripeGateway(),
        PaymentMethod.CASH: CashOnDeliveryGateway(),
    }
