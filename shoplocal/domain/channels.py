"""Real-time channel names, event names, and who may join what."""
from shoplocal.domain.enums import Role

CUSTOMER_BROADCAST = "customer"

# Event names (wire contract with the web client)
SHOP_ADDED = "shop-added"
SHOP_UPDATED = "shop-updated"
SHOP_DELETED = "shop-deleted"
SHOP_TOGGLED = "shop-toggled"
PRODUCT_ADDED = "product-added"
PRODUCT_UPDATED = "product-updated"
PRODUCT_DELETED = "product-deleted"
NEW_ORDER = "new-order"
ORDER_STATUS_UPDATE = "order-status-update"
NEW_REVIEW = "new-review"


def private_channel(role: Role, user_id: int) -> str:
    return f"{Role(role).value}-{user_id}"


def vendor_channel(vendor_id: int) -> str:
    return private_channel(Role.VENDOR, vendor_id)


def customer_channel(customer_id: int) -> str:
    return private_channel(Role.CUSTOMER, customer_id)


def shop_channel(shop_id: int) -> str:
    return f"shop-{shop_id}"


def default_channels(actor) -> list:
    """Channels a connection joins as soon as its actor is known."""
    channels = [private_channel(actor.role, actor.user_id)]
    if actor.role is Role.CUSTOMER:
        channels.append(CUSTOMER_BROADCAST)
    return channels


def is_known_channel(channel: str) -> bool:
    if channel == CUSTOMER_BROADCAST:
        return True
    prefix, _, suffix = channel.rpartition("-")
    if not suffix.isdigit():
        return False
    return prefix == "shop" or prefix in {r.value for r in Role}


def can_join(actor, channel: str) -> bool:
    """
    Identity comes from the server-side session, so a connection can only
    ever listen on its own private channel. Admins may watch anything.
    """
    if not is_known_channel(channel):
        return False
    if actor.role is Role.ADMIN:
        return True
    if channel == CUSTOMER_BROADCAST:
        return actor.role is Role.CUSTOMER
    if channel.startswith("shop-"):
        return True
    return channel == private_channel(actor.role, actor.user_id)
