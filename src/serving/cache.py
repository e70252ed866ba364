"""
Redis Cache Module

Result cache for analytic responses:
- Client lifecycle owned by the application lifespan
- JSON serialization
- TTL management
"""

import json
from typing import Any, Optional, Union
from datetime import timedelta

import structlog
from redis.asyncio import Redis

from src.config.settings import CacheSettings

logger = structlog.get_logger(__name__)


async def create_redis(settings: CacheSettings) -> Redis:
    """Create a Redis client and verify the connection."""
    client = Redis.from_url(
        settings.get_url(),
        max_connections=settings.max_connections,
        socket_timeout=settings.socket_timeout,
        decode_responses=True,
    )

    try:
        await client.ping()
        logger.info("Redis connection established", host=settings.host, db=settings.db)
    except Exception as e:
        logger.error("Redis connection failed", error=str(e))
        await client.aclose()
        raise

    return client


async def close_redis(client: Optional[Redis]) -> None:
    """Close a Redis client and its connection pool."""
    if client is not None:
        await client.aclose()
        logger.info("Redis connection closed")


class CacheManager:
    """
    Cache manager with namespace support and automatic key generation.

    Example:
        cache = CacheManager(client, "analytics")
        await cache.set("top-products:10", payload, ttl=600)
        payload = await cache.get("top-products:10")
    """

    def __init__(self, client: Redis, namespace: str, default_ttl: int = 600):
        self.client = client
        self.namespace = namespace
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        """Generate namespaced key"""
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Decoded value or None if not found
        """
        value = await self.client.get(self._key(key))

        if value is None:
            return None

        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache entry", key=key)
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[Union[int, timedelta]] = None,
    ) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            ttl: Time-to-live in seconds or timedelta

        Returns:
            True if stored
        """
        try:
            serialized = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.warning("Failed to serialize value for cache", key=key, error=str(e))
            return False

        ttl = ttl or self.default_ttl
        if isinstance(ttl, timedelta):
            ttl = int(ttl.total_seconds())
        await self.client.setex(self._key(key), ttl, serialized)
        return True
