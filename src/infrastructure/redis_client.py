"""
Shared Redis client for the ``redis`` cache backend.

Created on first use, so the default in-memory backend never opens a
connection, and closed by the app lifespan.  Reads and writes are bounded
by ``redis_socket_timeout_seconds``.
"""

from typing import Optional

import redis.asyncio as aioredis

from src.config import settings

_client: Optional[aioredis.Redis] = None


async def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout_seconds,
            socket_connect_timeout=settings.redis_socket_timeout_seconds,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
