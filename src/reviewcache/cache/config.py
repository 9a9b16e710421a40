"""Cache configuration management."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from reviewcache.cache.buckets import BUCKET_TTLS, DEFAULT_TTL

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = ".reviewcache.json"


class CacheConfigError(ValueError):
    """Raised when a configuration file cannot be parsed."""

    pass


@dataclass
class CacheConfig:
    """Configuration for the cache lifecycle manager.

    Attributes:
        cache_dir: Root directory holding the bucket subdirectories. Relative
            paths resolve against the directory the tool is invoked from.
        bucket_ttls: TTL in seconds per bucket name. Only known buckets are kept.
        default_ttl: TTL for names missing from bucket_ttls (24 hours)
        day_granularity: Compare entry ages in whole days (legacy behaviour)
        lock_timeout: Seconds to wait for an entry lock when writing
    """

    cache_dir: Path = Path("cache")
    bucket_ttls: Dict[str, int] = field(default_factory=lambda: dict(BUCKET_TTLS))
    default_ttl: int = DEFAULT_TTL
    day_granularity: bool = False
    lock_timeout: int = 30

    def __post_init__(self):
        """Ensure cache_dir is a Path object."""
        if self.cache_dir is None:
            self.cache_dir = Path("cache")
        elif not isinstance(self.cache_dir, Path):
            self.cache_dir = Path(self.cache_dir)
        self.cache_dir = self.cache_dir.expanduser()

    def ttl_for(self, bucket_name: str) -> int:
        """TTL in seconds for a bucket, falling back to default_ttl."""
        return self.bucket_ttls.get(bucket_name, self.default_ttl)

    def override_ttls(self, overrides: Dict[str, int]) -> None:
        """Merge TTL overrides for known buckets.

        Names outside the bucket table are ignored; the bucket set is closed.
        """
        for name, ttl in overrides.items():
            if name not in BUCKET_TTLS:
                logger.warning(f"Ignoring TTL override for unknown bucket '{name}'")
                continue
            self.bucket_ttls[name] = int(ttl)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, uses .reviewcache.json
                in the current directory.

        Returns:
            CacheConfig instance (defaults if the file does not exist)

        Raises:
            CacheConfigError: If the file is not valid JSON or has bad values
        """
        if config_path is None:
            config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME
        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CacheConfigError(f"Invalid config file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise CacheConfigError(
                f"Invalid config file {config_path}: expected a JSON object"
            )

        config = cls()
        try:
            if "cache_dir" in data:
                config.cache_dir = Path(data["cache_dir"]).expanduser()
            if "default_ttl" in data:
                config.default_ttl = int(data["default_ttl"])
            if "day_granularity" in data:
                config.day_granularity = bool(data["day_granularity"])
            if "lock_timeout" in data:
                config.lock_timeout = int(data["lock_timeout"])
            config.override_ttls(data.get("bucket_ttls", {}))
        except (TypeError, ValueError, AttributeError) as e:
            raise CacheConfigError(f"Invalid value in {config_path}: {e}") from e

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file.

        Args:
            config_path: Path to config file. If None, uses .reviewcache.json
                in the current directory.
        """
        if config_path is None:
            config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME
        config_path = Path(config_path)

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "cache_dir": str(self.cache_dir),
            "bucket_ttls": self.bucket_ttls,
            "default_ttl": self.default_ttl,
            "day_granularity": self.day_granularity,
            "lock_timeout": self.lock_timeout,
        }

        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    def apply_env(self) -> "CacheConfig":
        """Apply environment variable overrides in place.

        Environment variables:
            REVIEWCACHE_DIR: Cache root directory
            REVIEWCACHE_DAY_GRANULARITY: Whole-day age comparison (true/false)
            REVIEWCACHE_TTL_<BUCKET>: TTL in seconds, e.g. REVIEWCACHE_TTL_PR_ANALYSIS

        Returns:
            self, for chaining
        """
        if os.getenv("REVIEWCACHE_DIR"):
            self.cache_dir = Path(os.getenv("REVIEWCACHE_DIR")).expanduser()

        if os.getenv("REVIEWCACHE_DAY_GRANULARITY"):
            self.day_granularity = (
                os.getenv("REVIEWCACHE_DAY_GRANULARITY", "").lower() == "true"
            )

        for name in BUCKET_TTLS:
            env_name = "REVIEWCACHE_TTL_" + name.upper().replace("-", "_")
            value = os.getenv(env_name)
            if value:
                try:
                    self.bucket_ttls[name] = int(value)
                except ValueError as e:
                    raise CacheConfigError(f"Invalid {env_name}: {value!r}") from e

        return self

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create configuration from environment variables on top of defaults."""
        return cls().apply_env()


# Global cache configuration instance
_global_config: Optional[CacheConfig] = None


def get_global_config() -> CacheConfig:
    """Get global cache configuration.

    Loads .reviewcache.json from the current directory on first use, then
    applies environment overrides.

    Returns:
        Global CacheConfig instance
    """
    global _global_config
    if _global_config is None:
        _global_config = CacheConfig.load().apply_env()
    return _global_config


def set_global_config(config: Optional[CacheConfig]) -> None:
    """Set global cache configuration.

    Args:
        config: CacheConfig instance to use globally (None resets it)
    """
    global _global_config
    _global_config = config
