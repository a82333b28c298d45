from types import SimpleNamespace

import pytest

from shoplocal.application.auth import Actor
from shoplocal.core.errors import AuthorizationError, ValidationError
from shoplocal.domain.enums import OrderStatus, Role
from shoplocal.domain.lifecycle import TERMINAL_STATES, check_transition, is_lifecycle_edge

VENDOR = Actor(user_id=7, role=Role.VENDOR)
OTHER_VENDOR = Actor(user_id=8, role=Role.VENDOR)
CUSTOMER = Actor(user_id=9, role=Role.CUSTOMER)
OTHER_CUSTOMER = Actor(user_id=10, role=Role.CUSTOMER)
ADMIN = Actor(user_id=1, role=Role.ADMIN)

SHOP = SimpleNamespace(id=3, vendor_id=7)


def order_in(status):
    return SimpleNamespace(id=42, shop_id=3, customer_id=9, status=status)


class TestLifecycleEdges:
    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.DISPATCHED),
            (OrderStatus.DISPATCHED, OrderStatus.DELIVERED),
            (OrderStatus.PENDING, OrderStatus.CANCELLED),
        ],
    )
    def test_forward_edges(self, current, target):
        assert is_lifecycle_edge(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (OrderStatus.PENDING, OrderStatus.DISPATCHED),
            (OrderStatus.PENDING, OrderStatus.DELIVERED),
            (OrderStatus.CONFIRMED, OrderStatus.PENDING),
            (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
            (OrderStatus.DELIVERED, OrderStatus.DISPATCHED),
            (OrderStatus.CANCELLED, OrderStatus.PENDING),
        ],
    )
    def test_skips_and_backward_moves_are_not_edges(self, current, target):
        assert not is_lifecycle_edge(current, target)

    def test_terminal_states(self):
        assert TERMINAL_STATES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

    def test_accepts_plain_strings(self):
        assert is_lifecycle_edge("pending", "confirmed")


class TestVendorTransitions:
    def test_owner_walks_the_lifecycle(self):
        check_transition(VENDOR, order_in(OrderStatus.PENDING), SHOP, OrderStatus.CONFIRMED)
        check_transition(VENDOR, order_in(OrderStatus.CONFIRMED), SHOP, OrderStatus.DISPATCHED)
        check_transition(VENDOR, order_in(OrderStatus.DISPATCHED), SHOP, OrderStatus.DELIVERED)

    def test_owner_may_cancel_pending(self):
        check_transition(VENDOR, order_in(OrderStatus.PENDING), SHOP, OrderStatus.CANCELLED)

    def test_skipping_a_step_is_invalid(self):
        with pytest.raises(ValidationError) as exc:
            check_transition(VENDOR, order_in(OrderStatus.PENDING), SHOP, OrderStatus.DELIVERED)
        assert exc.value.errors[0]["field"] == "status"

    def test_other_vendor_is_denied_before_edge_check(self):
        with pytest.raises(AuthorizationError):
            check_transition(OTHER_VENDOR, order_in(OrderStatus.PENDING), SHOP, OrderStatus.DELIVERED)

    def test_missing_shop_is_denied(self):
        with pytest.raises(AuthorizationError):
            check_transition(VENDOR, order_in(OrderStatus.PENDING), None, OrderStatus.CONFIRMED)


class TestCustomerTransitions:
    def test_owner_cancels_pending(self):
        check_transition(CUSTOMER, order_in(OrderStatus.PENDING), SHOP, OrderStatus.CANCELLED)

    def test_cancelling_confirmed_is_denied(self):
        with pytest.raises(AuthorizationError):
            check_transition(CUSTOMER, order_in(OrderStatus.CONFIRMED), SHOP, OrderStatus.CANCELLED)

    def test_customer_cannot_confirm(self):
        with pytest.raises(AuthorizationError):
            check_transition(CUSTOMER, order_in(OrderStatus.PENDING), SHOP, OrderStatus.CONFIRMED)

    def test_other_customer_is_denied(self):
        with pytest.raises(AuthorizationError):
            check_transition(OTHER_CUSTOMER, order_in(OrderStatus.PENDING), SHOP, OrderStatus.CANCELLED)

    def test_same_status_is_invalid(self):
        with pytest.raises(ValidationError):
            check_transition(CUSTOMER, order_in(OrderStatus.CANCELLED), SHOP, OrderStatus.CANCELLED)


class TestAdminTransitions:
    def test_admin_may_jump_to_delivered(self):
        check_transition(ADMIN, order_in(OrderStatus.PENDING), None, OrderStatus.DELIVERED)

    def test_admin_may_reopen(self):
        check_transition(ADMIN, order_in(OrderStatus.CANCELLED), SHOP, OrderStatus.PENDING)

    def test_admin_same_status_is_invalid(self):
        with pytest.raises(ValidationError):
            check_transition(ADMIN, order_in(OrderStatus.CONFIRMED), SHOP, OrderStatus.CONFIRMED)
