from collections import defaultdict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from shoplocal.application.auth import Actor, SessionManager, hash_password
from shoplocal.application.cart_service import CartService
from shoplocal.application.checkout import CheckoutService
from shoplocal.application.order_manager import OrderLifecycleManager
from shoplocal.domain import models  # noqa: F401
from shoplocal.domain.enums import PaymentMethod, Role
from shoplocal.infrastructure.database import Base, build_session_factory
from shoplocal.infrastructure.notification_service import NotificationBroker
from shoplocal.infrastructure.payment_gateways import CashOnDeliveryGateway
from shoplocal.infrastructure.repositories.order_repository import SqlAlchemyOrderRepository
from shoplocal.infrastructure.repositories.review_repository import SqlAlchemyReviewRepository
from shoplocal.infrastructure.repositories.shop_repository import SqlAlchemyShopRepository
from shoplocal.infrastructure.repositories.user_repository import SqlAlchemyUserRepository
from shoplocal.infrastructure.state_manager import StateManager
from shoplocal.interfaces.IPaymentGateway import GatewayOrder, IPaymentGateway

PASSWORD = "secret123"
# One hash for every fixture user, scrypt is slow on purpose
PASSWORD_HASH = hash_password(PASSWORD)


class RecordingTransport:
    """Stands in for Socket.IO rooms: remembers every (sid, event, payload) a room emit reached."""

    def __init__(self):
        self.rooms = defaultdict(set)
        self.sent = []
        self.fail = False

    def enter_room(self, sid, room):
        self.rooms[room].add(sid)

    def leave_room(self, sid, room):
        self.rooms[room].discard(sid)

    def deliver(self, room, event, payload):
        if self.fail:
            raise RuntimeError("socket write failed")
        for sid in sorted(self.rooms.get(room, ())):
            self.sent.append((sid, event, payload))

    def to(self, sid):
        return [(event, payload) for s, event, payload in self.sent if s == sid]

    def events(self, name):
        return [(sid, payload) for sid, event, payload in self.sent if event == name]


class FakeGateway(IPaymentGateway):
    """Accepts any confirmation whose signature is "valid"."""

    def __init__(self):
        self.created = []

    def create_order(self, amount, currency, receipt):
        self.created.append((amount, currency, receipt))
        return GatewayOrder(amount=amount, currency=currency, gateway_order_id=f"order_{len(self.created)}",
                            key_id="rzp_test_key")

    def verify_payment(self, confirmation):
        return confirmation.get("gateway_signature") == "valid"


@pytest.fixture()
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def foreign_keys(engine):
    """SQLite ignores REFERENCES clauses unless asked; Postgres never does."""
    with engine.connect() as connection:
        connection.exec_driver_sql("PRAGMA foreign_keys=ON")
    yield
    with engine.connect() as connection:
        connection.exec_driver_sql("PRAGMA foreign_keys=OFF")


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def order_repo(session_factory):
    return SqlAlchemyOrderRepository(session_factory)


@pytest.fixture()
def shop_repo(session_factory):
    return SqlAlchemyShopRepository(session_factory)


@pytest.fixture()
def user_repo(session_factory):
    return SqlAlchemyUserRepository(session_factory)


@pytest.fixture()
def review_repo(session_factory):
    return SqlAlchemyReviewRepository(session_factory)


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def broker(transport):
    return NotificationBroker(transport)


@pytest.fixture()
def state():
    return StateManager(None)


@pytest.fixture()
def sessions(state):
    return SessionManager(state, ttl=600)


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def gateways(gateway):
    return {
        PaymentMethod.UPI: gateway,
        PaymentMethod.CARD: gateway,
        PaymentMethod.CASH: CashOnDeliveryGateway(),
    }


@pytest.fixture()
def order_manager(order_repo, shop_repo, user_repo, broker):
    return OrderLifecycleManager(order_repo, shop_repo, user_repo, broker, total_tolerance=0.01)


@pytest.fixture()
def cart_service(shop_repo, state):
    return CartService(shop_repo, state, ttl=600)


@pytest.fixture()
def checkout_service(cart_service, order_manager, gateways, state):
    return CheckoutService(cart_service, order_manager, gateways, state, currency="INR", ttl=600)


# --- Data builders ---

@pytest.fixture()
def make_user(user_repo):
    counter = {"n": 0}

    def _make(role=Role.CUSTOMER, name=None, **fields):
        counter["n"] += 1
        data = {
            "name": name or f"{Role(role).value.title()} {counter['n']}",
            "email": f"{Role(role).value}{counter['n']}@example.com",
            "password_hash": PASSWORD_HASH,
            "role": Role(role),
        }
        data.update(fields)
        return user_repo.create_user(data)

    return _make


@pytest.fixture()
def make_shop(shop_repo):
    def _make(vendor, approved=True, **fields):
        data = {
            "vendor_id": vendor.id,
            "name": "Corner Store",
            "address": "12 Market Road",
            "city": "Pune",
            "state": "MH",
            "is_approved": approved,
        }
        data.update(fields)
        return shop_repo.create_shop(data)

    return _make


@pytest.fixture()
def make_product(shop_repo):
    def _make(shop, price=50.0, **fields):
        data = {
            "shop_id": shop.id,
            "name": "Milk 1L",
            "mrp": max(price, 60.0),
            "selling_price": price,
            "stock": 100,
            "unit": "pack",
        }
        data.update(fields)
        return shop_repo.create_product(data)

    return _make


def actor_for(user):
    return Actor(user_id=user.id, role=Role(user.role), name=user.name)


@pytest.fixture()
def vendor(make_user):
    return make_user(Role.VENDOR, name="Vendor Vik")


@pytest.fixture()
def customer(make_user):
    return make_user(Role.CUSTOMER, name="Asha")


@pytest.fixture()
def admin(make_user):
    return make_user(Role.ADMIN, name="Admin")


@pytest.fixture()
def shop(make_shop, vendor):
    return make_shop(vendor)


@pytest.fixture()
def milk(make_product, shop):
    return make_product(shop, price=50.0, name="Milk 1L")


@pytest.fixture()
def bread(make_product, shop):
    return make_product(shop, price=35.5, name="Bread")


# --- HTTP ---

@pytest.fixture()
def app(engine, broker, state, gateways):
    from shoplocal.main import create_app

    return create_app(engine=engine, broker=broker, state=state, gateways=gateways)


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def auth_headers(app):
    def _headers(user):
        token = app.state.sessions.create_session(user)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def as_actor():
    return actor_for
