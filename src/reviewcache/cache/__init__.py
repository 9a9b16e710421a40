"""TTL-bucketed on-disk cache.

This module manages the review cache: a root directory holding a fixed set of
buckets, each with its own time-to-live.

Key components:
- CacheManager: Clean, clear, stats and invalidation over the buckets
- CacheConfig: Configuration management
- CacheBucket: The closed set of buckets and their TTLs
"""

from reviewcache.cache.buckets import (
    BUCKET_TTLS,
    DEFAULT_TTL,
    CacheBucket,
    get_bucket_ttl,
)
from reviewcache.cache.config import CacheConfig, CacheConfigError
from reviewcache.cache.manager import (
    BucketNotFoundError,
    BucketStats,
    CacheEntry,
    CacheError,
    CacheLockError,
    CacheManager,
    CachePermissionError,
    CacheStats,
    CleanupResult,
    UnknownBucketError,
)

__all__ = [
    "CacheManager",
    "CacheConfig",
    "CacheBucket",
    "BUCKET_TTLS",
    "DEFAULT_TTL",
    "get_bucket_ttl",
    "CacheEntry",
    "BucketStats",
    "CacheStats",
    "CleanupResult",
    "CacheError",
    "CacheConfigError",
    "CachePermissionError",
    "CacheLockError",
    "BucketNotFoundError",
    "UnknownBucketError",
]
