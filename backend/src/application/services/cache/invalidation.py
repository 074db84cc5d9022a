"""
Cache Invalidation
Selective invalidation by namespace prefix with a full-clear fallback
"""
from typing import Iterable, List, Optional

from loguru import logger

from application.repositories.interfaces import ICacheStore


class CacheInvalidator:
    """
    Removes cache entries under a namespace prefix.

    When keys cannot be enumerated (unsupported, store error, or nothing
    found) the whole cache is cleared instead, so an invalidation never
    leaves stale entries behind. Extra cache misses are acceptable, stale
    reads are not.
    """

    def __init__(self, cache: ICacheStore):
        self.cache = cache

    async def _enumerate(self, prefix: str) -> List[str]:
        try:
            keys: Optional[List[str]] = await self.cache.list_keys(prefix)
        except Exception as e:
            logger.warning(f"Cache key enumeration failed for prefix '{prefix}': {e}")
            return []

        if keys is None:
            logger.debug("Cache store does not support key enumeration")
            return []
        return [key for key in keys if key.startswith(prefix)]

    async def clear_all(self) -> None:
        """Drop the entire cache"""
        try:
            await self.cache.delete_all()
            logger.info("Cache fully cleared")
        except Exception as e:
            # Nothing left to fall back to; entries age out with their TTL
            logger.error(f"Failed to clear cache: {e}")

    async def invalidate(self, prefix: str, extra_keys: Iterable[str] = ()) -> None:
        """Delete every key under `prefix` plus `extra_keys`"""
        keys = await self._enumerate(prefix)

        if not keys:
            await self.clear_all()
            return

        targets = list(dict.fromkeys([*keys, *extra_keys]))
        try:
            await self.cache.delete_many(targets)
            logger.debug(f"Invalidated {len(targets)} cache keys under '{prefix}'")
        except Exception as e:
            logger.warning(f"Selective invalidation of '{prefix}' failed, clearing cache: {e}")
            await self.clear_all()

    async def invalidate_keys(self, keys: Iterable[str]) -> None:
        """Delete exactly the given keys"""
        targets = list(dict.fromkeys(keys))
        if not targets:
            return

        try:
            await self.cache.delete_many(targets)
            logger.debug(f"Invalidated cache keys: {targets}")
        except Exception as e:
            logger.warning(f"Failed to delete cache keys {targets}, clearing cache: {e}")
            await self.clear_all()
