import asyncio
import time
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError

from shoplocal.core.config import settings
from shoplocal.core.logging import configure_logging

# 1. Infrastructure & Domain Imports
from shoplocal.domain import models  # noqa: F401  registers tables on Base.metadata
from shoplocal.infrastructure import database
from shoplocal.infrastructure.database import Base
from shoplocal.infrastructure.notification_service import NotificationBroker, SocketIOTransport
from shoplocal.infrastructure.payment_gateways import default_gateways
from shoplocal.infrastructure.repositories.order_repository import SqlAlchemyOrderRepository
from shoplocal.infrastructure.repositories.review_repository import SqlAlchemyReviewRepository
from shoplocal.infrastructure.repositories.shop_repository import SqlAlchemyShopRepository
from shoplocal.infrastructure.repositories.user_repository import SqlAlchemyUserRepository
from shoplocal.infrastructure.state_manager import StateManager
from shoplocal.application.auth import AuthService, SessionManager
from shoplocal.application.cart_service import CartService
from shoplocal.application.catalog_service import CatalogService
from shoplocal.application.checkout import CheckoutService
from shoplocal.application.customer_service import CustomerService
from shoplocal.application.order_manager import OrderLifecycleManager
from shoplocal.application.review_service import ReviewService
from shoplocal.interfaces import (
    auth_routes,
    cart_routes,
    customer_routes,
    dashboard,
    order_routes,
    review_routes,
    shop_routes,
)
from shoplocal.interfaces.error_handlers import register_exception_handlers
from shoplocal.interfaces.socket_gateway import SocketGateway

configure_logging()

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=settings.CORS_ORIGINS)


# ---------------------------------------------------------
# DATABASE CONNECTION (With Retry Logic)
# ---------------------------------------------------------
def wait_for_database(engine, max_retries: int = None, wait_seconds: int = None) -> bool:
    max_retries = max_retries or settings.DB_MAX_RETRIES
    wait_seconds = wait_seconds if wait_seconds is not None else settings.DB_RETRY_WAIT_SECONDS

    for attempt in range(max_retries):
        try:
            print(f"🔄 Attempting DB connection ({attempt + 1}/{max_retries})...")
            Base.metadata.create_all(bind=engine)
            print("✅ DB Connected and Tables Created.")
            return True
        except OperationalError:
            print(f"⚠️ DB not ready yet. Waiting {wait_seconds}s...")
            time.sleep(wait_seconds)

    print("❌ Could not connect to DB after retries.")
    return False


# ---------------------------------------------------------
# COMPOSITION ROOT
# ---------------------------------------------------------
def create_app(engine=None, broker=None, state=None, gateways=None) -> FastAPI:
    engine = engine or database.engine
    session_factory = database.build_session_factory(engine) if engine is not database.engine else database.SessionLocal

    broker = broker or NotificationBroker(SocketIOTransport(sio))
    state = state or StateManager(settings.REDIS_URL, default_ttl=settings.SESSION_TTL)
    gateways = gateways or default_gateways()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await asyncio.to_thread(wait_for_database, engine)
        if isinstance(getattr(broker, "transport", None), SocketIOTransport):
            broker.transport.bind_loop(asyncio.get_running_loop())
        yield

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    order_repo = SqlAlchemyOrderRepository(session_factory)
    shop_repo = SqlAlchemyShopRepository(session_factory)
    user_repo = SqlAlchemyUserRepository(session_factory)
    review_repo = SqlAlchemyReviewRepository(session_factory)

    sessions = SessionManager(state, ttl=settings.SESSION_TTL)
    orders = OrderLifecycleManager(order_repo, shop_repo, user_repo, broker,
                                   total_tolerance=settings.ORDER_TOTAL_TOLERANCE)
    cart = CartService(shop_repo, state, ttl=settings.CART_TTL)

    app.state.broker = broker
    app.state.sessions = sessions
    app.state.auth = AuthService(user_repo, sessions)
    app.state.orders = orders
    app.state.catalog = CatalogService(shop_repo, broker)
    app.state.customers = CustomerService(user_repo)
    app.state.reviews = ReviewService(review_repo, shop_repo, order_repo, broker)
    app.state.cart = cart
    app.state.checkout = CheckoutService(cart, orders, gateways, state, currency=settings.PAYMENT_CURRENCY,
                                         ttl=settings.CART_TTL)

    register_exception_handlers(app)

    # Include Routers
    app.include_router(auth_routes.router)
    app.include_router(shop_routes.router)
    app.include_router(order_routes.router)
    app.include_router(review_routes.router)
    app.include_router(cart_routes.router)
    app.include_router(customer_routes.router)
    app.include_router(dashboard.router)

    @app.get("/health")
    def health_check():
        return {"status": "active", "system": settings.PROJECT_NAME}

    return app


app = create_app()
SocketGateway(app.state.broker, app.state.sessions).register(sio)

# uvicorn shoplocal.main:asgi_app
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)
