"""Cache keys, invalidation and read-through helpers"""

from .invalidation import CacheInvalidator
from .keys import (
    APPLICATIONS_NAMESPACE,
    JOB_OFFERS_NAMESPACE,
    ApplicationCacheKeys,
    JobOfferCacheKeys,
    build_cache_key,
    normalize_for_key,
)
from .read_through import ReadThroughCache

__all__ = [
    "APPLICATIONS_NAMESPACE",
    "JOB_OFFERS_NAMESPACE",
    "ApplicationCacheKeys",
    "CacheInvalidator",
    "JobOfferCacheKeys",
    "ReadThroughCache",
    "build_cache_key",
    "normalize_for_key",
]
