"""Unit tests for the Redis cache layer."""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest
from redis.exceptions import RedisError

from app.domain.exceptions import CacheException
from app.infrastructure.cache.redis_client import RedisCacheManager, RedisClient


class TestRedisClient:
    """Test cases for RedisClient."""

    @pytest.fixture
    def redis_client(self):
        """Create Redis client instance."""
        return RedisClient("redis://localhost:6379/0")

    @pytest.mark.asyncio
    async def test_initialize_success(self, redis_client):
        """Test successful Redis initialization."""
        mock_pool = Mock()
        mock_redis = AsyncMock()
        mock_redis.ping = AsyncMock()

        with (
            patch("redis.asyncio.ConnectionPool.from_url", return_value=mock_pool),
            patch(
                "app.infrastructure.cache.redis_client.Redis",
                return_value=mock_redis,
            ),
        ):
            await redis_client.initialize()

            assert redis_client.pool == mock_pool
            assert redis_client.redis_client == mock_redis
            mock_redis.ping.assert_called_once()

    @pytest.mark.asyncio
    async def test_initialize_connection_failure(self, redis_client):
        """Test Redis initialization with connection failure."""
        with patch(
            "redis.asyncio.ConnectionPool.from_url",
            side_effect=RedisError("Connection failed"),
        ):
            with pytest.raises(CacheException) as exc:
                await redis_client.initialize()

            assert "Redis initialization failed" in str(exc.value)

    @pytest.mark.asyncio
    async def test_close(self, redis_client):
        """Test closing Redis connection."""
        mock_redis = AsyncMock()
        redis_client.redis_client = mock_redis

        await redis_client.close()

        mock_redis.aclose.assert_awaited_once()
        assert redis_client.redis_client is None

    @pytest.mark.asyncio
    async def test_health_check_no_client(self, redis_client):
        """Test health check with no client."""
        assert await redis_client.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_ping_failure(self, redis_client):
        """Test health check with ping failure."""
        mock_redis = AsyncMock()
        mock_redis.ping = AsyncMock(side_effect=RedisError("Connection lost"))
        redis_client.redis_client = mock_redis

        assert await redis_client.health_check() is False

    def test_get_client_not_initialized(self, redis_client):
        """Test getting Redis client when not initialized."""
        with pytest.raises(CacheException) as exc:
            redis_client.get_client()

        assert "Redis client not initialized" in str(exc.value)


class TestRedisCacheManager:
    """Test cases for RedisCacheManager."""

    @pytest.fixture
    def mock_redis(self):
        return AsyncMock()

    @pytest.fixture
    def cache_manager(self, mock_redis):
        client = Mock()
        client.get_client.return_value = mock_redis
        return RedisCacheManager(client, prefix="hub")

    def test_key(self, cache_manager):
        assert cache_manager.key("risk_assessment", 42) == "hub:risk_assessment:42"

    @pytest.mark.asyncio
    async def test_set_temporary_data(self, cache_manager, mock_redis):
        """Values are stored as JSON with the given TTL."""
        await cache_manager.set_temporary_data("hub:k", {"score": 62}, ttl=60)

        mock_redis.set.assert_awaited_once_with("hub:k", json.dumps({"score": 62}), ex=60)

    @pytest.mark.asyncio
    async def test_set_temporary_data_error(self, cache_manager, mock_redis):
        mock_redis.set.side_effect = RedisError("OOM")

        with pytest.raises(CacheException, match="Cache set failed"):
            await cache_manager.set_temporary_data("hub:k", {})

    @pytest.mark.asyncio
    async def test_get_temporary_data(self, cache_manager, mock_redis):
        mock_redis.get.return_value = '{"score": 62}'

        assert await cache_manager.get_temporary_data("hub:k") == {"score": 62}

    @pytest.mark.asyncio
    async def test_get_miss(self, cache_manager, mock_redis):
        mock_redis.get.return_value = None

        assert await cache_manager.get_temporary_data("hub:k") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "failure", [RedisError("down"), CacheException("Redis client not initialized")]
    )
    async def test_read_failures_count_as_miss(self, cache_manager, failure):
        """A broken or missing connection reads as an empty cache."""
        cache_manager.redis_client.get_client.side_effect = failure

        assert await cache_manager.get_temporary_data("hub:k") is None

    @pytest.mark.asyncio
    async def test_corrupt_value_is_a_miss(self, cache_manager, mock_redis):
        mock_redis.get.return_value = "{not json"

        assert await cache_manager.get_temporary_data("hub:k") is None
