"""Redis client factory — used for request rate limiting only.

NOT used for quote, bet or wallet-session state (those go through PostgreSQL).
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


async def incr_fixed_window(redis: aioredis.Redis, key: str, window_seconds: int) -> tuple[int, int]:
    """Increment a fixed-window counter. Returns (count, seconds until reset).

    SET NX EX, INCR and TTL run in one MULTI/EXEC: the first hit of a window
    creates the key together with its TTL, so a counter never outlives it.
    """
    async with redis.pipeline(transaction=True) as pipe:
        pipe.set(key, 0, ex=window_seconds, nx=True)
        pipe.incr(key)
        pipe.ttl(key)
        _, count, ttl = await pipe.execute()
    return int(count), int(ttl)
