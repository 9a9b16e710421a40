"""Cache bucket definitions.

This module defines the closed set of buckets that live under the cache root.
Each bucket maps to a subdirectory and carries its own time-to-live.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional

# Fallback TTL for names outside the bucket table (24 hours)
DEFAULT_TTL = 86400


class CacheBucket(Enum):
    """Buckets for organizing cached review data.

    Categories:
        MODEL_DOCS: Fetched model/provider documentation
        PR_ANALYSIS: Pull request analyses, keyed by commit SHA
        LINK_VALIDATION: Link check results

    Examples:
        >>> CacheBucket.PR_ANALYSIS.directory
        'pr-analysis'
    """

    MODEL_DOCS = "model-docs"
    PR_ANALYSIS = "pr-analysis"
    LINK_VALIDATION = "link-validation"

    @property
    def directory(self) -> str:
        """Get the directory name for this bucket."""
        return self.value


# Single source of truth for bucket retention, in seconds
BUCKET_TTLS: Dict[str, int] = {
    CacheBucket.MODEL_DOCS.value: 24 * 60 * 60,
    CacheBucket.PR_ANALYSIS.value: 7 * 24 * 60 * 60,
    CacheBucket.LINK_VALIDATION.value: 60 * 60,
}

# Only PR analyses embed a commit id in their filenames
INVALIDATABLE_BUCKET = CacheBucket.PR_ANALYSIS


def get_bucket_ttl(name: str, ttl_table: Optional[Mapping[str, int]] = None) -> int:
    """Get the TTL for a bucket name.

    Args:
        name: Bucket name (e.g., 'pr-analysis')
        ttl_table: Table to resolve against. Defaults to BUCKET_TTLS.

    Returns:
        TTL in seconds. Names not in the table resolve to DEFAULT_TTL.

    Examples:
        >>> get_bucket_ttl('link-validation')
        3600
        >>> get_bucket_ttl('something-else')
        86400
    """
    table = BUCKET_TTLS if ttl_table is None else ttl_table
    return table.get(name, DEFAULT_TTL)


def bucket_names() -> List[str]:
    """Names of all known buckets, in declaration order."""
    return [bucket.value for bucket in CacheBucket]
