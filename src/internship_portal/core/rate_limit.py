"""
Rate limiting for the public endpoints.

Sliding-window counters live in Redis (one sorted set per key) and fall
back to a process-local store when Redis is not configured or errors out.
The fallback is per-process only.

Used by:
- POST /api/applications (submission limit, per client IP)
- the read/update endpoints (general API limit, per client IP)
"""

import logging
import time
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis
from redis.exceptions import RedisError

from internship_portal.core.redis import get_redis

logger = logging.getLogger(__name__)

# key -> request timestamps inside the current window
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """429 carrying the limit and how long to back off."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "success": False,
                "error": "RATE_LIMIT_EXCEEDED",
                "message": "Too many requests from this IP, please try again later.",
                "limit": limit,
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """Record a hit in the key's sorted set and report whether it fits the window."""
    now = time.time()

    pipe = client.pipeline(transaction=True)
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    # Member must be unique so hits in the same instant are all counted
    pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
    pipe.expire(key, window_seconds)
    _, hits_before, _, _ = await pipe.execute()

    return hits_before < limit


async def _check_rate_limit_memory(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    now = time.time()
    hits = [ts for ts in _memory_store.get(key, []) if ts > now - window_seconds]

    allowed = len(hits) < limit
    if allowed:
        hits.append(now)
    _memory_store[key] = hits

    return allowed


def reset_memory_store() -> None:
    """Forget all in-memory rate limit windows."""
    _memory_store.clear()


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Count one request against ``key``.

    Args:
        key: Limit key, e.g. "rate_limit:submit:127.0.0.1"
        limit: Requests allowed per window
        window_seconds: Window length

    Returns:
        True if the request is allowed
    """
    client = await get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis rate limit check failed for {key}, using memory: {e}")

    return await _check_rate_limit_memory(key, limit, window_seconds)


def client_ip_key(scope: str) -> Callable[[Request], str]:
    """Key requests by client IP within a named scope."""

    def key_func(request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        return f"rate_limit:{scope}:{client_ip}"

    return key_func


def _find_request(args: tuple, kwargs: dict) -> Request | None:
    for value in (*args, *kwargs.values()):
        if isinstance(value, Request):
            return value
    return None


def rate_limit(
    limit: int = 10,
    window_seconds: int = 60,
    key_func: Callable[[Request], str] | None = None,
):
    """
    Decorate an endpoint with a sliding-window limit.

    The endpoint must accept a ``request: Request`` parameter. Without a
    ``key_func`` requests are keyed by client IP and path.

    Usage:
        @router.post("")
        @rate_limit(limit=5, window_seconds=3600, key_func=client_ip_key("submit"))
        async def submit_application(request: Request, ...):
            ...

    Raises:
        RateLimitExceeded: When the window is full (HTTP 429)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            request = _find_request(args, kwargs)
            if request is None:
                logger.warning(f"Rate limit on {func.__name__} skipped: no Request argument")
                return await func(*args, **kwargs)

            if key_func:
                key = key_func(request)
            else:
                client_ip = request.client.host if request.client else "unknown"
                key = f"rate_limit:{client_ip}:{request.url.path}"

            if not await check_rate_limit(key, limit, window_seconds):
                logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
                raise RateLimitExceeded(limit, window_seconds)

            return await func(*args, **kwargs)

        return wrapper

    return decorator


__all__ = [
    "rate_limit",
    "check_rate_limit",
    "client_ip_key",
    "reset_memory_store",
    "RateLimitExceeded",
]
