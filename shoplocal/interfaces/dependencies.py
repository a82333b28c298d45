from typing import Optional

from fastapi import Request

from shoplocal.application.auth import Actor, ensure_role
from shoplocal.core.config import settings
from shoplocal.core.errors import AuthenticationError
from shoplocal.domain.enums import Role


def session_token(request: Request) -> Optional[str]:
    """Bearer token first, then the session cookie."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def optional_actor(request: Request) -> Optional[Actor]:
    return request.app.state.sessions.resolve(session_token(request))


def current_actor(request: Request) -> Actor:
    actor = optional_actor(request)
    if actor is None:
        raise AuthenticationError()
    return actor


def require_role(*roles: Role):
    def dependency(request: Request) -> Actor:
        return ensure_role(current_actor(request), *roles)
    return dependency


# --- Services (built in main.create_app) ---

def get_auth(request: Request):
    return request.app.state.auth


def get_orders(request: Request):
    return request.app.state.orders


def get_catalog(request: Request):
    return request.app.state.catalog


def get_reviews(request: Request):
    return request.app.state.reviews


def get_cart(request: Request):
    return request.app.state.cart


def get_checkout(request: Request):
    return request.app.state.checkout


def get_customers(request: Request):
    return request.app.state.customers
