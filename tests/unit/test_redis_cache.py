"""
Unit tests for the Redis cache backing the measurement mirror.
"""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from field_alerts.adapters.cache.redis_cache import RedisCache
from field_alerts.core.ports.cache_service import CacheKeyPatterns, CacheService


@pytest.fixture
def mock_redis():
    client = MagicMock()
    client.setex = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def cache(mock_redis):
    return RedisCache(host="localhost", port=6379, default_ttl=120, client=mock_redis)


class TestRedisCache:
    """Test cases for RedisCache."""

    def test_key_pattern(self):
        assert CacheKeyPatterns.latest_measurement("field-1") == "measurements:latest:field-1"

    @pytest.mark.asyncio
    async def test_set_json_uses_ttl(self, cache, mock_redis):
        stored = await cache.set_json("measurements:latest:field-1", {"soil_moisture": 25.0}, 60)

        assert stored is True
        key, ttl, value = mock_redis.setex.await_args.args
        assert key == "measurements:latest:field-1"
        assert ttl == 60
        assert json.loads(value) == {"soil_moisture": 25.0}

    @pytest.mark.asyncio
    async def test_set_default_ttl(self, cache, mock_redis):
        await cache.set("key", "value")
        mock_redis.setex.assert_awaited_once_with("key", 120, "value")

    @pytest.mark.asyncio
    async def test_set_failure_returns_false(self, cache, mock_redis):
        """Test that Redis errors are reported, not raised."""
        mock_redis.setex.side_effect = ConnectionError("down")

        assert await cache.set("key", "value") is False

    @pytest.mark.asyncio
    async def test_disconnect(self, cache, mock_redis):
        await cache.disconnect()

        mock_redis.aclose.assert_awaited_once()
        assert cache.is_connected is False


class InMemoryCache(CacheService):
    def __init__(self):
        self.entries = {}

    async def set(self, key, value, ttl=None):
        self.entries[key] = (value, ttl)
        return True


class TestCacheService:
    """Test cases for the cache port."""

    @pytest.mark.asyncio
    async def test_write_only_port(self):
        """Test that the mirror port needs nothing beyond set."""
        cache = InMemoryCache()

        assert await cache.set_json("measurements:latest:field-1", {"id": "m-1"}, 30) is True
        value, ttl = cache.entries["measurements:latest:field-1"]
        assert json.loads(value) == {"id": "m-1"}
        assert ttl == 30

    @pytest.mark.asyncio
    async def test_unserializable_document_rejected(self):
        cache = InMemoryCache()
        document = {"id": "m-1"}
        document["self"] = document

        assert await cache.set_json("key", document, 30) is False
        assert cache.entries == {}
