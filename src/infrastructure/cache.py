"""
TTL caches for provider lookups.

Injected into the geocoding and weather clients instead of living as
module-level state.  The check-then-write is lock-free: two
concurrent misses for the same key may both fetch, and the later write
wins.

* ``InMemoryTTLCache`` -- bounded, per process, evicts the oldest write.
* ``RedisTTLCache``    -- shared across processes, expiry handled by Redis.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Callable, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class TTLCache(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Any]: ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...


class InMemoryTTLCache(TTLCache):
    def __init__(
        self,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + ttl_seconds, value)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)


class RedisTTLCache(TTLCache):
    """Stores JSON-serialisable values under ``<prefix>:<key>``."""

    def __init__(self, client: aioredis.Redis, prefix: str = "ridemate"):
        self.redis = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(self._key(key))
        except RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Cache entry %s is not valid JSON; ignoring", key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        try:
            await self.redis.set(
                self._key(key), json.dumps(value), ex=max(1, int(ttl_seconds))
            )
        except RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
