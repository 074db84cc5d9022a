"""
Read-Through Cache
Cache-aside reads that treat every cache failure as a miss
"""
import json
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from core.config import settings
from application.repositories.interfaces import ICacheStore


class ReadThroughCache:
    """Serve a value from cache, or load it from the store and cache it"""

    def __init__(self, cache: ICacheStore, ttl: Optional[int] = None):
        self.cache = cache
        self.ttl = ttl if ttl is not None else settings.CACHE_TTL_SECONDS

    async def _read(self, key: str) -> Optional[Any]:
        try:
            raw = await self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for key {key}, treating as miss: {e}")
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            logger.error(f"JSON decode error for key {key}: {e}")
            return None

    async def _write(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self.cache.set(key, json.dumps(value), ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for key {key}: {e}")

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """
        Get a JSON value from cache, falling back to `loader`

        Args:
            key: Cache key
            loader: Coroutine factory reading the store; its errors propagate
            ttl: Override of the service TTL in seconds

        Returns:
            The cached or freshly loaded value
        """
        cached = await self._read(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        value = await loader()
        if value is not None:
            await self._write(key, value, ttl if ttl is not None else self.ttl)
        return value
