import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set

from shoplocal.domain.channels import can_join, default_channels
from shoplocal.interfaces.INotificationBroker import INotificationBroker

logger = logging.getLogger(__name__)


class SocketIOTransport:
    """
    Delivers events through a python-socketio AsyncServer.

    Channel membership is mirrored into Socket.IO rooms and every event is
    emitted once per room, so a shared client manager (Redis, Kafka) can
    fan it out across workers. Sync FastAPI routes run in a worker thread,
    so calls are handed to the server's event loop and never awaited by
    the caller.
    """

    def __init__(self, sio):
        self.sio = sio
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set[asyncio.Task] = set()

    def bind_loop(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop

    def enter_room(self, sid: str, room: str):
        self._schedule(self.sio.enter_room(sid, room))

    def leave_room(self, sid: str, room: str):
        self._schedule(self.sio.leave_room(sid, room))

    def deliver(self, room: str, event: str, payload: Dict[str, Any]):
        self._schedule(self.sio.emit(event, payload, room=room))

    def _schedule(self, result):
        # Room calls are plain functions on some python-socketio releases
        if not asyncio.iscoroutine(result):
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None:
            task = running.create_task(result)
            self._pending.add(task)
            task.add_done_callback(self._finished)
        elif self.loop is not None and not self.loop.is_closed():
            future = asyncio.run_coroutine_threadsafe(result, self.loop)
            future.add_done_callback(self._finished)
        else:
            result.close()
            logger.warning("⚠️ SocketIOTransport: no event loop bound, event dropped")

    def _finished(self, future):
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"❌ Socket.IO send failed: {error}")


class NotificationBroker(INotificationBroker):
    """
    Channel registry and fan-out for live connections.

    A connection (Socket.IO sid) belongs to one actor and to any number of
    channels. The registry decides who may join what; the transport mirrors
    each membership into its own rooms and delivers once per channel.
    Delivery is best effort: no queue, no replay, no ack.
    """

    def __init__(self, transport=None):
        self.transport = transport
        self._channels: Dict[str, Set[str]] = defaultdict(set)
        self._connections: Dict[str, tuple] = {}
        self._lock = threading.RLock()

    def connect(self, sid: str, actor) -> List[str]:
        with self._lock:
            self._connections[sid] = (actor, set())
            for channel in default_channels(actor):
                self._join(sid, channel)
            joined = sorted(self._connections[sid][1])
        logger.info(f"Connection {sid} opened for {actor.role.value}-{actor.user_id}, joined {joined}")
        return joined

    def subscribe(self, sid: str, channel: str) -> bool:
        with self._lock:
            entry = self._connections.get(sid)
            if entry is None:
                logger.warning(f"Subscribe from unknown connection {sid}")
                return False
            actor, _ = entry
            if not can_join(actor, channel):
                logger.warning(f"Connection {sid} ({actor.role.value}-{actor.user_id}) refused channel {channel!r}")
                return False
            self._join(sid, channel)
        return True

    def unsubscribe(self, sid: str, channel: str):
        with self._lock:
            entry = self._connections.get(sid)
            if entry is None or channel not in entry[1]:
                return
            self._leave(sid, channel)

    def disconnect(self, sid: str):
        with self._lock:
            entry = self._connections.get(sid)
            if entry is None:
                return
            for channel in list(entry[1]):
                self._leave(sid, channel)
            del self._connections[sid]
        logger.info(f"Connection {sid} closed")

    def members(self, channel: str) -> Set[str]:
        with self._lock:
            return set(self._channels.get(channel, ()))

    def channels_of(self, sid: str) -> Set[str]:
        with self._lock:
            entry = self._connections.get(sid)
            return set(entry[1]) if entry else set()

    def emit(self, channel: str, event: str, payload: Dict[str, Any]) -> int:
        """
        Send `event` to every connection in `channel`.

        Returns the number of local listeners. The room is handed to the
        transport even when it is empty here, other workers may hold members.
        """
        listeners = len(self.members(channel))
        if self.transport is None:
            logger.warning(f"No transport configured, dropping {event} for {channel}")
            return 0
        try:
            self.transport.deliver(channel, event, payload)
        except Exception as e:
            logger.error(f"❌ Failed to deliver {event} to {channel}: {e}")
            return 0
        if listeners:
            logger.info(f"Emitted {event} to {channel} ({listeners} connection(s))")
        else:
            logger.debug(f"No local listeners on {channel} for {event}")
        return listeners

    def _join(self, sid: str, channel: str):
        connection_channels = self._connections[sid][1]
        if channel in connection_channels:
            return
        connection_channels.add(channel)
        self._channels[channel].add(sid)
        if self.transport is not None:
            self.transport.enter_room(sid, channel)

    def _leave(self, sid: str, channel: str):
        self._connections[sid][1].discard(channel)
        members = self._channels.get(channel)
        if members is not None:
            members.discard(sid)
            if not members:
                del self._channels[channel]
        if self.transport is not None:
            self.transport.leave_room(sid, channel)
