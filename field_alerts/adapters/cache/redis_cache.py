"""
Redis Cache Implementation.
Backs the latest-measurement mirror; every operation reports failure by return value.
"""

import redis.asyncio as redis
from typing import Optional
import logging

from ...core.ports.cache_service import CacheService


class RedisCache(CacheService):
    """Redis implementation of the CacheService interface."""

    def __init__(
        self,
        host: str,
        port: int,
        password: Optional[str] = None,
        db: int = 0,
        default_ttl: int = 900,
        client: Optional[redis.Redis] = None
    ):
        """
        Initialize Redis cache settings. The connection is opened lazily.

        Args:
            host: Redis server host
            port: Redis server port
            password: Redis password (optional)
            db: Redis database number
            default_ttl: Default TTL in seconds
            client: Pre-built client, mainly for tests
        """
        self.host = host
        self.port = port
        self.password = password
        self.db = db
        self.default_ttl = default_ttl
        self.logger = logging.getLogger(__name__)
        self._redis: Optional[redis.Redis] = client

    async def connect(self) -> bool:
        """
        Establish connection to Redis server.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            self._redis = redis.Redis(
                host=self.host,
                port=self.port,
                password=self.password,
                db=self.db,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )
            await self._redis.ping()
            self.logger.info(f"Connected to Redis at {self.host}:{self.port}")
            return True

        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {str(e)}")
            self._redis = None
            return False

    async def disconnect(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Disconnected from Redis")

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    async def _ensure_connected(self) -> bool:
        if not self.is_connected:
            return await self.connect()
        return True

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        try:
            if not await self._ensure_connected():
                return False

            ttl_to_use = ttl if ttl is not None else self.default_ttl
            result = await self._redis.setex(key, ttl_to_use, value)
            self.logger.debug(f"Cache SET for key: {key} (TTL: {ttl_to_use}s)")
            return bool(result)

        except Exception as e:
            self.logger.error(f"Redis SET error for key {key}: {str(e)}")
            return False

