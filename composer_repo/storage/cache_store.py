"""Key/value stores backing the metadata cache."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Port for cache operations."""

    def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or None when absent or unreadable."""
        ...

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store a value for ``ttl_seconds``. Failures are not reported."""
        ...


class RedisCacheStore:
    """
    Cache store on a Redis server.

    Redis errors never reach the caller: a failed read looks like a miss and
    a failed write is dropped.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheStore":
        return cls(redis.Redis.from_url(url))

    def get(self, key: str) -> Optional[bytes]:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read of {key} failed, treating as miss: {e}")
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            self.client.setex(key, ttl_seconds, value)
        except redis.RedisError as e:
            logger.warning(f"Cache write of {key} failed, skipping: {e}")


class MemoryCacheStore:
    """In-process cache store, used when no Redis server is configured."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[bytes, float]] = {}

    def get(self, key: str) -> Optional[bytes]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)
