from typing import Optional, List, Sequence
import redis.asyncio as redis
from redis.asyncio import Redis

from core.config import settings
from core.logging_config import logger
from application.repositories.interfaces import ICacheStore


class RedisCacheService(ICacheStore):
    """Redis cache service for job offer and application reads"""

    def __init__(self, client: Optional[Redis] = None):
        """Initialize with an existing client, or connect later"""
        self._redis: Optional[Redis] = client

    @property
    def client(self) -> Optional[Redis]:
        return self._redis

    async def connect(self):
        """Connect to Redis"""
        try:
            redis_url = settings.CACHE_REDIS_URL
            self._redis = redis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
            )
            await self._redis.ping()
            logger.info(f"Connected to Redis: {redis_url}")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            # Don't raise - allow app to run without cache
            self._redis = None

    async def disconnect(self):
        """Disconnect from Redis"""
        if self._redis:
            await self._redis.aclose()
            logger.info("Disconnected from Redis")

    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self._redis:
            return None

        try:
            return await self._redis.get(key)
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: str, ttl: int = settings.CACHE_TTL_SECONDS):
        """
        Set value in cache with TTL

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds
        """
        if not self._redis:
            return

        try:
            await self._redis.setex(key, ttl, value)
            logger.debug(f"Cached key {key} with TTL {ttl}s")
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")

    async def delete(self, key: str):
        """Delete key from cache"""
        await self.delete_many([key])

    async def delete_many(self, keys: Sequence[str]):
        """
        Delete keys from cache

        Raises the Redis error so the caller can fall back to a full clear.
        """
        if not self._redis or not keys:
            return

        await self._redis.delete(*keys)
        logger.debug(f"Deleted {len(keys)} key(s)")

    async def delete_all(self):
        """Flush the cache database"""
        if not self._redis:
            return

        await self._redis.flushdb()
        logger.debug("Flushed cache database")

    async def list_keys(self, prefix: str = "") -> Optional[List[str]]:
        """
        Enumerate keys by prefix with SCAN

        Returns:
            Matching keys, or None when no connection is available
        """
        if not self._redis:
            return None

        keys = []
        async for key in self._redis.scan_iter(match=f"{prefix}*", count=settings.CACHE_KEY_SCAN_COUNT):
            keys.append(key)
        return keys


# Global cache instance
cache_service = RedisCacheService()
