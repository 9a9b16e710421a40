"""Cache manager for the TTL-bucketed review cache."""

import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from filelock import FileLock, Timeout

from reviewcache.cache.buckets import INVALIDATABLE_BUCKET, CacheBucket, bucket_names
from reviewcache.cache.config import CacheConfig, get_global_config
from reviewcache.cache.validation import get_entry_age, is_expired

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Base exception for cache-related errors."""

    pass


class CachePermissionError(CacheError):
    """Raised when cache directory permissions are insufficient."""

    pass


class CacheLockError(CacheError):
    """Raised when unable to acquire cache lock."""

    pass


class BucketNotFoundError(CacheError):
    """Raised when an operation requires a bucket directory that does not exist."""

    pass


class UnknownBucketError(CacheError):
    """Raised when a bucket name is not one of the known buckets."""

    pass


@dataclass
class CacheEntry:
    """A single cached file and its age relative to the bucket TTL."""

    bucket: str
    key: str
    path: Path
    size_bytes: int
    age_seconds: float
    ttl_seconds: int
    expired: bool


@dataclass
class BucketStats:
    """Statistics for one bucket directory."""

    name: str
    path: Path
    entry_count: int
    size_bytes: int
    ttl_seconds: int
    oldest_age_seconds: Optional[float] = None


@dataclass
class CacheStats:
    """Statistics for the whole cache root."""

    cache_dir: Path
    buckets: List[BucketStats] = field(default_factory=list)
    total_entries: int = 0
    total_size_bytes: int = 0


@dataclass
class CleanupResult:
    """Per-bucket removal counts from clean() or clear()."""

    removed: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.removed.values())


def _wrap_os_error(error: OSError, action: str) -> CacheError:
    if isinstance(error, PermissionError):
        return CachePermissionError(f"Permission denied while {action}: {error}")
    return CacheError(f"Error while {action}: {error}")


class CacheManager:
    """Manages the lifecycle of a bucketed on-disk cache.

    The filesystem is the only state store. Every call rescans the bucket
    directories, so entry age always comes from the file mtime and no index
    can drift out of sync.
    """

    def __init__(self, config: Optional[CacheConfig] = None):
        """Initialize cache manager.

        Args:
            config: Cache configuration (uses global if None)
        """
        self.config = config or get_global_config()
        self.cache_dir = self.config.cache_dir
        self.lock_dir = self.cache_dir / ".locks"

    def bucket_path(self, bucket: str) -> Path:
        """Get the directory for a bucket.

        Raises:
            UnknownBucketError: If bucket is not a known bucket name
        """
        self._check_bucket(bucket)
        return self.cache_dir / bucket

    @staticmethod
    def _check_bucket(bucket: str) -> None:
        if bucket not in bucket_names():
            raise UnknownBucketError(
                f"Unknown bucket '{bucket}' "
                f"(expected one of: {', '.join(bucket_names())})"
            )

    @staticmethod
    def _scan(bucket_dir: Path) -> List[Path]:
        """List the entries of a bucket directory (regular files, non-recursive)."""
        try:
            return sorted(p for p in bucket_dir.iterdir() if p.is_file())
        except OSError as e:
            logger.error(f"Cannot scan {bucket_dir}: {e}")
            raise _wrap_os_error(e, f"scanning {bucket_dir}") from e

    def _lock_path(self, bucket: str, key: str) -> Path:
        return self.lock_dir / f"{bucket}_{key}.lock"

    def _remove_lock(self, bucket: str, key: str) -> None:
        lock_path = self._lock_path(bucket, key)
        try:
            lock_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove lock file {lock_path}: {e}")

    def _delete(self, bucket: str, paths: Iterable[Path]) -> int:
        """Delete files one by one, continuing past failures.

        The write lock of each deleted entry is removed with it.

        Returns:
            Number of files deleted

        Raises:
            CacheError: With the last error encountered, after all paths were tried
        """
        removed = 0
        last_error: Optional[OSError] = None
        failed: Optional[Path] = None

        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                # Removed by someone else since the scan
                continue
            except OSError as e:
                logger.error(f"Failed to delete {path}: {e}")
                last_error = e
                failed = path
                continue
            self._remove_lock(bucket, path.name)
            logger.debug(f"Deleted {path}")
            removed += 1

        if last_error is not None:
            raise _wrap_os_error(last_error, f"deleting {failed}") from last_error

        return removed

    def _age(self, path: Path, now: float) -> float:
        try:
            return get_entry_age(path, now)
        except FileNotFoundError:
            raise
        except OSError as e:
            raise _wrap_os_error(e, f"reading {path}") from e

    def clean(self, now: Optional[float] = None) -> CleanupResult:
        """Remove expired entries from every bucket.

        Buckets whose directory does not exist are skipped.

        Args:
            now: Reference timestamp for ages (defaults to current time)

        Returns:
            CleanupResult with per-bucket counts of removed entries
        """
        if now is None:
            now = time.time()

        result = CleanupResult()
        for bucket in CacheBucket:
            bucket_dir = self.cache_dir / bucket.directory
            if not bucket_dir.is_dir():
                continue

            ttl = self.config.ttl_for(bucket.value)
            expired = []
            for path in self._scan(bucket_dir):
                try:
                    age = self._age(path, now)
                except FileNotFoundError:
                    continue
                if is_expired(age, ttl, day_granularity=self.config.day_granularity):
                    expired.append(path)
            result.removed[bucket.value] = self._delete(bucket.value, expired)
            logger.info(
                f"Cleaned {result.removed[bucket.value]} expired entries "
                f"from {bucket.value}"
            )

        return result

    def clear(self) -> CleanupResult:
        """Remove every entry from every bucket, regardless of age.

        Each bucket directory is left in place, empty, so later writes do not
        need to recreate it. Write locks are removed along with the entries.

        Returns:
            CleanupResult with per-bucket counts of removed entries
        """
        result = CleanupResult()
        for bucket in CacheBucket:
            bucket_dir = self.cache_dir / bucket.directory
            count = 0
            try:
                if bucket_dir.is_dir():
                    count = len(self._scan(bucket_dir))
                    shutil.rmtree(bucket_dir)
                bucket_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Failed to clear {bucket_dir}: {e}")
                raise _wrap_os_error(e, f"clearing {bucket_dir}") from e

            result.removed[bucket.value] = count
            logger.info(f"Cleared {count} entries from {bucket.value}")

        if self.lock_dir.is_dir():
            try:
                shutil.rmtree(self.lock_dir)
            except OSError as e:
                logger.error(f"Failed to remove {self.lock_dir}: {e}")
                raise _wrap_os_error(e, f"clearing {self.lock_dir}") from e

        return result

    def stats(self, now: Optional[float] = None) -> CacheStats:
        """Collect entry counts, sizes and ages for every existing bucket.

        Read-only; nothing is created or removed.

        Args:
            now: Reference timestamp for ages (defaults to current time)

        Returns:
            CacheStats with one BucketStats per existing bucket
        """
        if now is None:
            now = time.time()

        stats = CacheStats(cache_dir=self.cache_dir)
        for bucket in CacheBucket:
            bucket_dir = self.cache_dir / bucket.directory
            if not bucket_dir.is_dir():
                continue

            count = 0
            size = 0
            oldest: Optional[float] = None
            for path in self._scan(bucket_dir):
                try:
                    st = path.stat()
                except FileNotFoundError:
                    continue
                except OSError as e:
                    raise _wrap_os_error(e, f"reading {path}") from e
                count += 1
                size += st.st_size
                age = now - st.st_mtime
                if oldest is None or age > oldest:
                    oldest = age

            stats.buckets.append(
                BucketStats(
                    name=bucket.value,
                    path=bucket_dir,
                    entry_count=count,
                    size_bytes=size,
                    ttl_seconds=self.config.ttl_for(bucket.value),
                    oldest_age_seconds=oldest,
                )
            )
            stats.total_entries += count

        stats.total_size_bytes = self._tree_size(self.cache_dir)
        return stats

    @staticmethod
    def _tree_size(root: Path) -> int:
        """Total size of all files under root (0 if root is missing)."""
        if not root.is_dir():
            return 0
        total = 0
        for dirpath, _, filenames in os.walk(root):
            for name in filenames:
                try:
                    total += os.path.getsize(os.path.join(dirpath, name))
                except FileNotFoundError:
                    continue
        return total

    def invalidate(self, key: str) -> int:
        """Delete every PR analysis whose filename contains key.

        Matching is by substring anywhere in the filename, so one commit SHA
        can match several entries.

        Args:
            key: Substring to match, typically a commit SHA

        Returns:
            Number of entries deleted

        Raises:
            ValueError: If key is empty
            BucketNotFoundError: If the pr-analysis directory does not exist
        """
        if not key:
            raise ValueError("Invalidation key must not be empty")

        bucket_dir = self.cache_dir / INVALIDATABLE_BUCKET.directory
        if not bucket_dir.is_dir():
            raise BucketNotFoundError(
                f"No {INVALIDATABLE_BUCKET.value} cache at {bucket_dir}"
            )

        matches = [path for path in self._scan(bucket_dir) if key in path.name]
        removed = self._delete(INVALIDATABLE_BUCKET.value, matches)
        logger.info(f"Invalidated {removed} entries matching '{key}'")
        return removed

    def list_entries(
        self, bucket: Optional[str] = None, now: Optional[float] = None
    ) -> List[CacheEntry]:
        """List entries with their size, age and expiry state.

        Args:
            bucket: Restrict to one bucket (all buckets if None)
            now: Reference timestamp for ages (defaults to current time)

        Raises:
            UnknownBucketError: If bucket is not a known bucket name
        """
        if now is None:
            now = time.time()

        if bucket is None:
            names = bucket_names()
        else:
            self._check_bucket(bucket)
            names = [bucket]

        entries: List[CacheEntry] = []
        for name in names:
            bucket_dir = self.cache_dir / name
            if not bucket_dir.is_dir():
                continue
            ttl = self.config.ttl_for(name)
            for path in self._scan(bucket_dir):
                try:
                    st = path.stat()
                except FileNotFoundError:
                    continue
                age = now - st.st_mtime
                entries.append(
                    CacheEntry(
                        bucket=name,
                        key=path.name,
                        path=path,
                        size_bytes=st.st_size,
                        age_seconds=age,
                        ttl_seconds=ttl,
                        expired=is_expired(
                            age, ttl, day_granularity=self.config.day_granularity
                        ),
                    )
                )
        return entries

    @staticmethod
    def _check_key(key: str) -> None:
        if not key or key in (".", "..") or "/" in key or os.sep in key:
            raise ValueError(f"Invalid cache key: {key!r}")

    def write(self, bucket: str, key: str, data: bytes) -> Path:
        """Write an entry, creating the cache root and bucket on first use.

        The file is written to a temporary name under the lock directory and
        renamed into the bucket under a per-entry file lock, so a crashed write
        never leaves a partial entry in the bucket.

        Args:
            bucket: Bucket name
            key: Entry filename
            data: Content to store

        Returns:
            Path to the cached entry

        Raises:
            UnknownBucketError: If bucket is not a known bucket name
            ValueError: If key is not a plain filename
            CacheLockError: If unable to acquire lock
            CachePermissionError: If cache directory not writable
        """
        bucket_dir = self.bucket_path(bucket)
        self._check_key(key)

        try:
            bucket_dir.mkdir(parents=True, exist_ok=True)
            self.lock_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise _wrap_os_error(e, f"creating {bucket_dir}") from e

        lock_path = self._lock_path(bucket, key)
        cache_path = bucket_dir / key
        temp_path = self.lock_dir / f"{bucket}_{key}.tmp"

        try:
            with FileLock(lock_path, timeout=self.config.lock_timeout):
                try:
                    temp_path.write_bytes(data)
                    os.replace(temp_path, cache_path)
                except OSError as e:
                    logger.error(f"Error writing cache entry {cache_path}: {e}")
                    if temp_path.exists():
                        temp_path.unlink()
                    raise _wrap_os_error(e, f"writing {cache_path}") from e
        except Timeout as e:
            raise CacheLockError(
                f"Timeout acquiring lock for {bucket}/{key} after "
                f"{self.config.lock_timeout} seconds"
            ) from e

        logger.debug(f"Wrote {len(data)} bytes to {cache_path}")
        return cache_path

    def read(
        self, bucket: str, key: str, now: Optional[float] = None
    ) -> Optional[bytes]:
        """Read an entry if it exists and has not expired.

        Returns:
            Entry content, or None on a miss or an expired entry
        """
        self._check_key(key)
        cache_path = self.bucket_path(bucket) / key
        if not cache_path.is_file():
            return None

        if now is None:
            now = time.time()
        age = self._age(cache_path, now)
        if is_expired(age, self.config.ttl_for(bucket), self.config.day_granularity):
            logger.debug(f"Entry {cache_path} expired ({age:.0f}s old)")
            return None

        return cache_path.read_bytes()
