"""reviewcache: TTL cache lifecycle management for code review tooling."""

__version__ = "0.1.0"

from reviewcache.cache import CacheConfig, CacheManager

__all__ = ["CacheManager", "CacheConfig", "__version__"]
