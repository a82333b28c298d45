import json
import logging
import threading
import time
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class StateManager:
    """
    Small JSON key-value store with per-key TTL.

    Redis is the primary memory. When Redis is not configured or goes away,
    values live in process RAM instead, so sessions and carts keep working
    on a single-process deployment.
    """

    def __init__(self, redis_url: Optional[str] = None, default_ttl: int = 3600):
        self.redis = None
        self.redis_available = False
        self.default_ttl = default_ttl

        # 1. Primary Memory (Redis)
        if redis_url:
            try:
                self.redis = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=1  # Fail fast if Redis is down
                )
                self.redis.ping()
                self.redis_available = True
                print("✅ StateManager: Connected to Redis.")
            except RedisError as e:
                print(f"⚠️ StateManager: Redis unreachable ({e}). Using RAM fallback.")
        else:
            print("⚠️ StateManager: REDIS_URL not set. Using RAM fallback.")

        # 2. Fallback Memory (RAM): key -> (expires_at, value)
        self._memory_store = {}
        self._lock = threading.Lock()

    def get_json(self, key: str) -> Any:
        if self.redis_available:
            try:
                data = self.redis.get(key)
                return json.loads(data) if data else None
            except RedisError as e:
                self._handle_redis_error(e)

        with self._lock:
            entry = self._memory_store.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= time.monotonic():
                del self._memory_store[key]
                return None
            return json.loads(value)

    def set_json(self, key: str, value: Any, ttl: Optional[int] = None):
        ttl = ttl or self.default_ttl
        data = json.dumps(value)

        if self.redis_available:
            try:
                self.redis.setex(key, ttl, data)
                return
            except RedisError as e:
                self._handle_redis_error(e)

        with self._lock:
            self._memory_store[key] = (time.monotonic() + ttl, data)

    def delete(self, key: str):
        if self.redis_available:
            try:
                self.redis.delete(key)
            except RedisError as e:
                self._handle_redis_error(e)

        with self._lock:
            self._memory_store.pop(key, None)

    def _handle_redis_error(self, e):
        """Log error and switch flag to False to stop trying Redis."""
        logger.error(f"❌ Redis Error: {e}. Switching to RAM mode.")
        self.redis_available = False
