"""
Order lifecycle state machine.

    pending -> confirmed -> dispatched -> delivered
    pending -> cancelled

Vendors walk the edges above for orders of their own shops. Customers may
only cancel their own pending orders, and admins may set any status.
"""
from typing import Dict, FrozenSet

from shoplocal.core.errors import AuthorizationError, ValidationError
from shoplocal.domain.enums import OrderStatus, Role

LIFECYCLE_EDGES: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.DISPATCHED}),
    OrderStatus.DISPATCHED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, targets in LIFECYCLE_EDGES.items() if not targets)


def is_lifecycle_edge(current: OrderStatus, target: OrderStatus) -> bool:
    return OrderStatus(target) in LIFECYCLE_EDGES[OrderStatus(current)]


def _invalid_transition(current: OrderStatus, target: OrderStatus) -> ValidationError:
    return ValidationError.for_field(
        "status",
        f"Cannot transition from {current.value} to {target.value}",
        summary="Invalid status transition",
    )


def check_transition(actor, order, shop, target: OrderStatus) -> None:
    """
    Raise unless `actor` may move `order` to `target`.

    Role and ownership are checked before the edge itself, so callers
    without rights on the order learn nothing about its state.
    """
    current = OrderStatus(order.status)
    target = OrderStatus(target)

    if actor.role is Role.ADMIN:
        if target == current:
            raise _invalid_transition(current, target)
        return

    if actor.role is Role.VENDOR:
        if shop is None or shop.vendor_id != actor.user_id:
            raise AuthorizationError("Access denied")
        if not is_lifecycle_edge(current, target):
            raise _invalid_transition(current, target)
        return

    if actor.role is Role.CUSTOMER:
        if order.customer_id != actor.user_id:
            raise AuthorizationError("Access denied")
        if target == current:
            raise _invalid_transition(current, target)
        if target is not OrderStatus.CANCELLED or current is not OrderStatus.PENDING:
            raise AuthorizationError("You can only cancel pending orders")
        return

    raise AuthorizationError("Access denied")
