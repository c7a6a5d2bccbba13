"""
Cache Service Port - Abstract interface for the best-effort measurement mirror.
Implementations report failures through return values instead of raising.
"""

from abc import ABC, abstractmethod
from typing import Optional, Any, Dict
import json


class CacheService(ABC):
    """Abstract base class for cache service implementations."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """
        Store a value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache (as string)
            ttl: Time to live in seconds, None for default TTL

        Returns:
            True if successfully cached, False otherwise
        """
        pass

    async def set_json(self, key: str, value: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        """Serialize and store a JSON value."""
        try:
            json_value = json.dumps(value, default=str, separators=(',', ':'))
            return await self.set(key, json_value, ttl)
        except (TypeError, ValueError):
            return False


class CacheKeyPatterns:
    """Common cache key patterns for the field alerts service."""

    LATEST_MEASUREMENT = "measurements:latest"

    @staticmethod
    def latest_measurement(field_id: str) -> str:
        return f"{CacheKeyPatterns.LATEST_MEASUREMENT}:{field_id}"


class CacheTTL:
    """Common TTL values in seconds."""

    VERY_LONG = 86400      # 24 hours
