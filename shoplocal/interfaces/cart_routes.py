from fastapi import APIRouter, Depends

from shoplocal.application.auth import Actor
from shoplocal.domain.enums import Role
from shoplocal.domain.schemas import (
    CartItemIn,
    CartOut,
    CartQuantityIn,
    CheckoutConfirmRequest,
    CheckoutOut,
    CheckoutRequest,
    OrderOut,
)
from shoplocal.interfaces.dependencies import get_cart, get_checkout, require_role

router = APIRouter(prefix="/api/cart", tags=["cart"])

customer_only = require_role(Role.CUSTOMER)


def _cart(cart_service, cart):
    return CartOut(shop_id=cart["shopId"], items=cart["items"], total=cart_service.total(cart)).to_payload()


@router.get("")
def get_cart_contents(actor: Actor = Depends(customer_only), cart=Depends(get_cart)):
    return _cart(cart, cart.get_cart(actor.user_id))


@router.post("/items", status_code=201)
def add_item(body: CartItemIn, actor: Actor = Depends(customer_only), cart=Depends(get_cart)):
    return _cart(cart, cart.add_item(actor.user_id, body.product_id, body.quantity))


@router.put("/items/{product_id}")
def set_quantity(product_id: int, body: CartQuantityIn, actor: Actor = Depends(customer_only),
                 cart=Depends(get_cart)):
    return _cart(cart, cart.set_quantity(actor.user_id, product_id, body.quantity))


@router.delete("/items/{product_id}")
def remove_item(product_id: int, actor: Actor = Depends(customer_only), cart=Depends(get_cart)):
    return _cart(cart, cart.remove_item(actor.user_id, product_id))


@router.delete("")
def clear_cart(actor: Actor = Depends(customer_only), cart=Depends(get_cart)):
    cart.clear(actor.user_id)
    return _cart(cart, cart.get_cart(actor.user_id))


@router.post("/checkout")
def begin_checkout(body: CheckoutRequest, actor: Actor = Depends(customer_only), checkout=Depends(get_checkout)):
    payment = checkout.begin(actor, body.payment_method)
    return CheckoutOut(
        payment_method=body.payment_method,
        amount=payment.amount,
        currency=payment.currency,
        gateway_order_id=payment.gateway_order_id,
        key_id=payment.key_id,
        client_secret=payment.client_secret,
    ).to_payload()


@router.post("/checkout/confirm", status_code=201)
def confirm_checkout(body: CheckoutConfirmRequest, actor: Actor = Depends(customer_only),
                     checkout=Depends(get_checkout)):
    order = checkout.confirm(
        actor,
        {
            "gateway_order_id": body.gateway_order_id,
            "gateway_payment_id": body.gateway_payment_id,
            "gateway_signature": body.gateway_signature,
        },
        delivery_address=body.delivery_address,
        delivery_latitude=body.delivery_latitude,
        delivery_longitude=body.delivery_longitude,
    )
    return OrderOut.model_validate(order).to_payload()
