"""
Redis Configuration

Async Redis client backing login sessions and rate limits.
Redis is optional: when it is unavailable the session store and rate
limiter fall back to process memory.
"""

from redis.asyncio import Redis, from_url

from admissions.core.config import settings

# Redis client instance
redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Initialize Redis connection.

    Call this on application startup. Leaves `redis_client` unset if the
    ping fails so callers fall back to memory.
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    redis_client = client
    return redis_client


def get_redis() -> Redis | None:
    """Return the Redis client, or None when Redis is not connected."""
    return redis_client


def is_redis_available() -> bool:
    """Check if Redis client is initialized and available."""
    return redis_client is not None


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
