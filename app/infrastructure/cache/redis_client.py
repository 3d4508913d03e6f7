import asyncio
import json
from typing import Any, Dict, Optional

import redis.asyncio as redis
import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.observability import metrics
from app.domain.exceptions import CacheException

logger = structlog.get_logger(__name__)


class RedisClient:
    """Redis client manager for connection pooling and operations."""

    def __init__(self, redis_url: str) -> None:
        self.redis_url = redis_url
        self.pool: Optional[redis.ConnectionPool] = None
        self.redis_client: Optional[Redis] = None

    async def initialize(self) -> None:
        """Initialize Redis connection pool."""
        try:
            self.pool = redis.ConnectionPool.from_url(
                self.redis_url,
                decode_responses=True,
                max_connections=20,
                health_check_interval=30,
            )
            self.redis_client = Redis(connection_pool=self.pool)

            await self.redis_client.ping()
            logger.info("Redis connection initialized", url=self.redis_url)
        except Exception as e:
            logger.error("Failed to initialize Redis connection", error=str(e))
            raise CacheException(f"Redis initialization failed: {e}")

    async def close(self) -> None:
        client = self.redis_client
        if not client:
            return

        aclose_method = getattr(client, "aclose", None)
        if aclose_method is not None:
            res = aclose_method()
        else:
            res = client.close()
        if asyncio.iscoroutine(res):
            await res

        self.redis_client = None
        logger.info("Redis connection closed")

    async def health_check(self) -> bool:
        try:
            if not self.redis_client:
                return False
            await self.redis_client.ping()
            return True
        except Exception as e:
            logger.error("Redis health check failed", error=str(e))
            return False

    def get_client(self) -> Redis:
        if not self.redis_client:
            raise CacheException("Redis client not initialized")
        return self.redis_client


class RedisCacheManager:
    """JSON values with a TTL, namespaced under the configured key prefix."""

    def __init__(self, redis_client: RedisClient, prefix: Optional[str] = None) -> None:
        self.redis_client = redis_client
        self.prefix = prefix or settings.cache_key_prefix

    def key(self, *parts: Any) -> str:
        return ":".join([self.prefix, *(str(p) for p in parts)])

    async def set_temporary_data(
        self, key: str, data: Dict[str, Any], ttl: int = 3600
    ) -> None:
        """Set temporary data with TTL."""
        try:
            client = self.redis_client.get_client()
            await client.set(key, json.dumps(data, default=str), ex=ttl)

            metrics.record_redis_operation("cache_set", "success")

        except RedisError as e:
            logger.error("Failed to set temporary data", key=key, error=str(e))
            metrics.record_redis_operation("cache_set", "error")
            raise CacheException(f"Cache set failed: {e}")

    async def get_temporary_data(self, key: str) -> Optional[Dict[str, Any]]:
        """Get temporary data. Read failures count as a miss."""
        try:
            client = self.redis_client.get_client()
            result = await client.get(key)

            metrics.record_redis_operation("cache_get", "success")

            if result:
                return json.loads(result)
            return None

        except (RedisError, CacheException, json.JSONDecodeError) as e:
            logger.error("Failed to get temporary data", key=key, error=str(e))
            metrics.record_redis_operation("cache_get", "error")
            return None
