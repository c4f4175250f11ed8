"""
Tests for the shared Redis client.
"""

from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from internship_portal.core import redis as redis_module

FROM_URL = "internship_portal.core.redis.from_url"


@pytest.fixture(autouse=True)
def no_client(monkeypatch):
    monkeypatch.setattr(redis_module, "redis_client", None)


class TestRedisClient:
    """Tests for init_redis / get_redis / close_redis."""

    @pytest.mark.asyncio
    async def test_unavailable_until_initialized(self):
        assert await redis_module.get_redis() is None
        assert redis_module.is_redis_available() is False

    @pytest.mark.asyncio
    async def test_failed_ping_keeps_memory_fallback(self):
        client = AsyncMock()
        client.ping.side_effect = RedisConnectionError("refused")

        with patch(FROM_URL, return_value=client), pytest.raises(RedisConnectionError):
            await redis_module.init_redis()

        client.aclose.assert_awaited_once()
        assert await redis_module.get_redis() is None

    @pytest.mark.asyncio
    async def test_init_and_close(self):
        client = AsyncMock()

        with patch(FROM_URL, return_value=client):
            await redis_module.init_redis()

        assert await redis_module.get_redis() is client
        assert redis_module.is_redis_available() is True

        await redis_module.close_redis()

        client.aclose.assert_awaited_once()
        assert await redis_module.get_redis() is None
