import asyncio
import logging

import pytest

from shoplocal.application.auth import Actor
from shoplocal.domain.enums import Role
from shoplocal.infrastructure.notification_service import NotificationBroker, SocketIOTransport

CUSTOMER = Actor(user_id=9, role=Role.CUSTOMER)
VENDOR = Actor(user_id=7, role=Role.VENDOR)
ADMIN = Actor(user_id=1, role=Role.ADMIN)


class TestMembership:
    def test_connect_joins_default_channels(self, broker):
        joined = broker.connect("c1", CUSTOMER)
        assert joined == ["customer", "customer-9"]
        assert broker.members("customer-9") == {"c1"}

    def test_subscribe_is_idempotent(self, broker, transport):
        broker.connect("v1", VENDOR)
        assert broker.subscribe("v1", "vendor-7")
        assert broker.subscribe("v1", "vendor-7")

        assert broker.emit("vendor-7", "new-order", {"id": 1}) == 1
        assert transport.to("v1") == [("new-order", {"id": 1})]

    def test_foreign_private_channel_is_refused(self, broker):
        broker.connect("c1", CUSTOMER)
        assert not broker.subscribe("c1", "vendor-7")
        assert broker.members("vendor-7") == set()
        assert "vendor-7" not in broker.channels_of("c1")

    def test_subscribe_from_unknown_connection(self, broker):
        assert not broker.subscribe("ghost", "shop-1")

    def test_shop_channel_is_open(self, broker):
        broker.connect("v1", VENDOR)
        assert broker.subscribe("v1", "shop-3")
        assert broker.channels_of("v1") == {"vendor-7", "shop-3"}

    def test_admin_may_watch_private_channels(self, broker):
        broker.connect("a1", ADMIN)
        assert broker.subscribe("a1", "vendor-7")

    def test_unsubscribe_is_idempotent(self, broker):
        broker.connect("v1", VENDOR)
        broker.unsubscribe("v1", "vendor-7")
        broker.unsubscribe("v1", "vendor-7")
        assert broker.members("vendor-7") == set()
        assert broker.channels_of("v1") == set()

    def test_disconnect_drops_every_membership(self, broker, transport):
        broker.connect("c1", CUSTOMER)
        broker.subscribe("c1", "shop-3")
        broker.disconnect("c1")
        broker.disconnect("c1")

        assert broker.emit("customer", "shop-added", {}) == 0
        assert broker.emit("shop-3", "product-added", {}) == 0
        assert transport.sent == []


class TestEmit:
    def test_every_member_receives_once(self, broker, transport):
        broker.connect("c1", CUSTOMER)
        broker.connect("c2", Actor(user_id=10, role=Role.CUSTOMER))

        assert broker.emit("customer", "shop-toggled", {"shopId": 3, "isOpen": False}) == 2
        assert sorted(sid for sid, _ in transport.events("shop-toggled")) == ["c1", "c2"]

    def test_empty_channel(self, broker, transport):
        assert broker.emit("vendor-99", "new-order", {}) == 0
        assert transport.sent == []

    def test_delivery_failure_does_not_propagate(self, broker, transport):
        broker.connect("v1", VENDOR)
        transport.fail = True
        assert broker.emit("vendor-7", "new-order", {"id": 1}) == 0

    def test_without_transport(self):
        broker = NotificationBroker()
        broker.connect("v1", VENDOR)
        assert broker.emit("vendor-7", "new-order", {}) == 0


class FakeServer:
    def __init__(self):
        self.rooms = {}
        self.sent = []

    async def enter_room(self, sid, room):
        self.rooms.setdefault(room, set()).add(sid)

    async def leave_room(self, sid, room):
        self.rooms.get(room, set()).discard(sid)

    async def emit(self, event, payload, room=None):
        self.sent.append((room, event, payload))


class BrokenServer(FakeServer):
    async def emit(self, event, payload, room=None):
        raise ConnectionResetError("peer gone")


class TestSocketIOTransport:
    def test_membership_mirrors_into_rooms(self):
        server = FakeServer()
        broker = NotificationBroker(SocketIOTransport(server))

        async def run():
            broker.connect("c1", CUSTOMER)
            broker.subscribe("c1", "shop-3")
            broker.unsubscribe("c1", "customer")
            await asyncio.sleep(0)

        asyncio.run(run())
        assert server.rooms == {"customer": set(), "customer-9": {"c1"}, "shop-3": {"c1"}}

    def test_emits_once_per_room(self):
        server = FakeServer()
        broker = NotificationBroker(SocketIOTransport(server))

        async def run():
            broker.connect("c1", CUSTOMER)
            broker.connect("c2", Actor(user_id=10, role=Role.CUSTOMER))
            assert broker.emit("customer", "shop-toggled", {"shopId": 3}) == 2
            await asyncio.sleep(0)

        asyncio.run(run())
        assert server.sent == [("customer", "shop-toggled", {"shopId": 3})]

    def test_hands_off_to_bound_loop_from_worker_thread(self):
        server = FakeServer()
        transport = SocketIOTransport(server)

        async def run():
            transport.bind_loop(asyncio.get_running_loop())
            await asyncio.to_thread(transport.deliver, "customer-9", "order-status-update", {"orderId": 1})
            for _ in range(5):
                await asyncio.sleep(0)

        asyncio.run(run())
        assert server.sent == [("customer-9", "order-status-update", {"orderId": 1})]

    def test_failed_send_is_logged(self, caplog):
        transport = SocketIOTransport(BrokenServer())

        async def run():
            transport.deliver("vendor-7", "new-order", {})
            for _ in range(3):
                await asyncio.sleep(0)

        with caplog.at_level(logging.ERROR):
            asyncio.run(run())
        assert "peer gone" in caplog.text
        assert not transport._pending

    def test_drops_without_loop(self):
        server = FakeServer()
        SocketIOTransport(server).deliver("vendor-7", "new-order", {})
        assert server.sent == []


@pytest.mark.parametrize("role, expected", [(Role.VENDOR, ["vendor-7"]), (Role.ADMIN, ["admin-7"])])
def test_default_channels_per_role(broker, role, expected):
    assert broker.connect("s", Actor(user_id=7, role=role)) == expected
