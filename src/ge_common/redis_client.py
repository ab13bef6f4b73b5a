"""Redis access for the per-account rate limiter.

Balances never touch Redis: they are read from and written to PostgreSQL
only, through the balance store.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Lazily build the shared client (one connection pool per process)."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


async def check_redis() -> None:
    """Fail fast at startup if Redis is unreachable."""
    redis = await get_redis()
    await redis.ping()


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


async def incr_window(redis: aioredis.Redis, key: str, window_seconds: int) -> int:
    """Increment a fixed-window counter, arming its expiry on first hit."""
    count = int(await redis.incr(key))
    if count == 1:
        await redis.expire(key, window_seconds)
    return count
