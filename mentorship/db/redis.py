"""Redis client backing the notification queue.

Created only when REDIS_URL is set; otherwise ``redis_pool`` is None and
services/task_queue.py uses its in-memory queue.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from mentorship.core.config import SETTINGS

logger = logging.getLogger(__name__)

redis_pool: aioredis.Redis | None = (  # type: ignore[type-arg]
    aioredis.from_url(SETTINGS.redis_url, decode_responses=True, max_connections=20)
    if SETTINGS.redis_url
    else None
)


@asynccontextmanager
async def lifespan_redis() -> AsyncIterator[None]:
    if redis_pool is None:
        logger.warning(
            "REDIS_URL not set; notifications stay in an in-memory queue and "
            "are not delivered to a separate worker process"
        )
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
    except RedisError:
        # Workflow writes do not depend on Redis; enqueue failures are
        # logged per request instead.
        logger.exception("Redis unreachable at startup; continuing without it")
    try:
        yield
    finally:
        await redis_pool.aclose()
        logger.info("Redis connection pool closed")
