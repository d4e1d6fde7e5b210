import fnmatch
import json
from dataclasses import dataclass
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

from tourops.core.config import get_settings


@dataclass
class CacheResult:
    hit: bool
    value: Any | None


class CacheClient:
    def __init__(self) -> None:
        self.settings = get_settings()
        self._fallback: dict[str, str] = {}
        self._redis: Redis | None = None
        if self.settings.cache_enabled:
            try:
                self._redis = Redis.from_url(self.settings.redis_url, decode_responses=True)
                self._redis.ping()
            except RedisError:
                self._redis = None

    @property
    def redis(self) -> Redis | None:
        return self._redis

    def get_json(self, key: str) -> CacheResult:
        value: str | None = None
        try:
            if self._redis:
                value = self._redis.get(key)
            else:
                value = self._fallback.get(key)
        except RedisError:
            value = self._fallback.get(key)
        if value is None:
            return CacheResult(hit=False, value=None)
        return CacheResult(hit=True, value=json.loads(value))

    def set_json(self, key: str, payload: Any, ttl_seconds: int) -> None:
        encoded = json.dumps(payload, default=str)
        try:
            if self._redis:
                self._redis.setex(key, ttl_seconds, encoded)
            else:
                self._fallback[key] = encoded
        except RedisError:
            self._fallback[key] = encoded

    def delete_pattern(self, pattern: str) -> int:
        removed = 0
        local_keys = [key for key in self._fallback if fnmatch.fnmatchcase(key, pattern)]
        for key in local_keys:
            del self._fallback[key]
            removed += 1
        if self._redis:
            try:
                keys = list(self._redis.scan_iter(match=pattern))
                if keys:
                    removed += self._redis.delete(*keys)
            except RedisError:
                pass
        return removed


cache_client = CacheClient()
