import logging
from http.cookies import CookieError, SimpleCookie
from typing import Optional

from socketio.exceptions import ConnectionRefusedError

from shoplocal.application.auth import SessionManager
from shoplocal.core.config import settings
from shoplocal.infrastructure.notification_service import NotificationBroker

logger = logging.getLogger(__name__)


def _cookie_token(environ: dict) -> Optional[str]:
    raw = environ.get("HTTP_COOKIE")
    if not raw:
        return None
    try:
        cookie = SimpleCookie(raw)
    except CookieError:
        return None
    morsel = cookie.get(settings.SESSION_COOKIE_NAME)
    return morsel.value if morsel else None


class SocketGateway:
    """
    Socket.IO protocol on top of the broker.

    Clients authenticate in the handshake (`auth: {token}` or the session
    cookie) and then emit `subscribe` / `unsubscribe` with a channel name.
    """

    def __init__(self, broker: NotificationBroker, sessions: SessionManager):
        self.broker = broker
        self.sessions = sessions

    async def on_connect(self, sid, environ, auth=None):
        token = None
        if isinstance(auth, dict):
            token = auth.get("token")
        token = token or _cookie_token(environ or {})

        actor = self.sessions.resolve(token)
        if actor is None:
            logger.info(f"Refused unauthenticated socket {sid}")
            raise ConnectionRefusedError("authentication required")
        self.broker.connect(sid, actor)

    async def on_subscribe(self, sid, channel):
        if not isinstance(channel, str):
            logger.warning(f"Socket {sid} sent a non-string channel: {channel!r}")
            return False
        return self.broker.subscribe(sid, channel)

    async def on_unsubscribe(self, sid, channel):
        if isinstance(channel, str):
            self.broker.unsubscribe(sid, channel)

    async def on_disconnect(self, sid, reason=None):
        self.broker.disconnect(sid)

    def register(self, sio):
        sio.on("connect", self.on_connect)
        sio.on("subscribe", self.on_subscribe)
        sio.on("unsubscribe", self.on_unsubscribe)
        sio.on("disconnect", self.on_disconnect)
