from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator
from uuid import uuid4

from redis import Redis
from redis.exceptions import RedisError

from tourops.core.cache import cache_client
from tourops.core.config import get_settings
from tourops.core.errors import TableLockedError

logger = logging.getLogger(__name__)

# Compare-and-delete so a holder never releases a lock that expired and was re-acquired.
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class TableLockRegistry:
    """At most one mutating sync job per destination table."""

    def __init__(self, redis: Redis | None = None, ttl_seconds: int | None = None) -> None:
        self._redis = redis
        self.ttl_seconds = ttl_seconds or get_settings().sync_lock_ttl_seconds
        self._guard = threading.Lock()
        self._local: dict[str, tuple[str, float]] = {}

    @staticmethod
    def _key(table: str) -> str:
        return f"sync-lock:{table}"

    def acquire(self, table: str) -> str:
        token = str(uuid4())
        if self._redis is not None:
            try:
                if self._redis.set(self._key(table), token, nx=True, ex=self.ttl_seconds):
                    return token
                raise TableLockedError(table)
            except RedisError as exc:
                logger.warning("Redis lock unavailable for %s, using local lock: %s", table, exc)

        with self._guard:
            now = time.monotonic()
            held = self._local.get(table)
            if held and held[1] > now:
                raise TableLockedError(table)
            self._local[table] = (token, now + self.ttl_seconds)
        return token

    def release(self, table: str, token: str) -> None:
        if self._redis is not None:
            try:
                self._redis.eval(_RELEASE_SCRIPT, 1, self._key(table), token)
            except RedisError as exc:
                logger.warning("Failed to release redis lock for %s: %s", table, exc)
        with self._guard:
            held = self._local.get(table)
            if held and held[0] == token:
                del self._local[table]

    def is_locked(self, table: str) -> bool:
        if self._redis is not None:
            try:
                return bool(self._redis.exists(self._key(table)))
            except RedisError:
                pass
        with self._guard:
            held = self._local.get(table)
            return bool(held and held[1] > time.monotonic())

    @contextmanager
    def hold(self, table: str) -> Iterator[str]:
        token = self.acquire(table)
        try:
            yield token
        finally:
            self.release(table, token)


table_locks = TableLockRegistry(redis=cache_client.redis)
