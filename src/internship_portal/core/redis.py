"""
Redis Client

Holds the single async Redis client used by the rate limiter for its
sliding-window counters (``rate_limit:<scope>:<ip>`` sorted sets).

Redis is optional outside production: when it is not reachable at startup
the client stays None and rate limits are tracked in process memory instead.
The health endpoint reports which of the two is in use.
"""

from redis.asyncio import Redis, from_url

from internship_portal.core.config import settings

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to REDIS_URL on startup.

    The client is only published once it answers a ping, so a failed
    connection leaves rate limiting on the in-memory fallback.

    Raises:
        redis.exceptions.RedisError / OSError: If Redis cannot be reached
    """
    global redis_client
    client = from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    redis_client = client
    return redis_client


async def get_redis() -> Redis | None:
    """Client for rate limit counters, or None to use the in-memory fallback."""
    return redis_client


def is_redis_available() -> bool:
    return redis_client is not None


async def close_redis() -> None:
    """Close the client on shutdown."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
