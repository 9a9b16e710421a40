"""Age and TTL checks for cache entries."""

import time
from pathlib import Path
from typing import Optional

SECONDS_PER_DAY = 86400


def get_entry_age(path: Path, now: Optional[float] = None) -> float:
    """Get the age of a cache entry from its modification time.

    Args:
        path: Path to the entry
        now: Reference timestamp (defaults to current time)

    Returns:
        Age in seconds
    """
    if now is None:
        now = time.time()
    return now - path.stat().st_mtime


def is_expired(
    age_seconds: float,
    ttl_seconds: Optional[int],
    day_granularity: bool = False,
) -> bool:
    """Check if an entry of a given age has outlived its TTL.

    An entry whose age equals the TTL is still valid; only strictly older
    entries expire.

    Args:
        age_seconds: Entry age in seconds
        ttl_seconds: Time-to-live in seconds (None means never expire)
        day_granularity: Compare whole days only, the way ``find -mtime +N``
            does. TTLs under a day then round down to zero days.

    Returns:
        True if the entry is expired
    """
    if ttl_seconds is None:
        return False

    if day_granularity:
        ttl_days = int(ttl_seconds // SECONDS_PER_DAY)
        age_days = int(age_seconds // SECONDS_PER_DAY)
        return age_days > ttl_days

    return age_seconds > ttl_seconds


def get_ttl_remaining(age_seconds: float, ttl_seconds: Optional[int]) -> Optional[int]:
    """Get remaining seconds until TTL expires.

    Args:
        age_seconds: Entry age in seconds
        ttl_seconds: Time-to-live in seconds

    Returns:
        Seconds remaining, or None if never expires
    """
    if ttl_seconds is None:
        return None

    remaining = ttl_seconds - age_seconds
    return max(0, int(remaining))
