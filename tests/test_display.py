"""Tests for report formatting."""

from pathlib import Path

import pytest
from rich.console import Console

from reviewcache.cache.manager import (
    BucketStats,
    CacheEntry,
    CacheStats,
    CleanupResult,
)
from reviewcache.display import (
    format_duration,
    format_filesize,
    render_cleanup,
    render_entries,
    render_stats,
)


class TestFormatFilesize:
    """Test human-readable sizes."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 B"),
            (60, "60 B"),
            (1024, "1.0 KB"),
            (1536000, "1.5 MB"),
            (5 * 1024**4, "5.0 TB"),
        ],
    )
    def test_format(self, size, expected):
        assert format_filesize(size) == expected


class TestFormatDuration:
    """Test compact durations."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (None, "-"),
            (0, "0s"),
            (45, "45s"),
            (3600, "1h"),
            (7 * 86400, "7d"),
            (2 * 86400 + 3 * 3600 + 59, "2d 3h"),
            (90, "1m 30s"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestRenderers:
    """Test report builders."""

    def test_render_cleanup(self):
        result = CleanupResult(removed={"model-docs": 1, "pr-analysis": 2})

        lines = render_cleanup(result, "Removed")

        assert lines[0] == "  model-docs: removed 1 entry"
        assert lines[1] == "  pr-analysis: removed 2 entries"
        assert "Removed 3 entries total" in lines[-1]

    def test_render_cleanup_single_total(self):
        result = CleanupResult(removed={"model-docs": 1, "pr-analysis": 0})

        lines = render_cleanup(result, "Removed")

        assert "Removed 1 entry total" in lines[-1]
        assert "entries" not in lines[-1]

    def test_render_stats(self):
        stats = CacheStats(
            cache_dir=Path("cache"),
            buckets=[
                BucketStats(
                    name="pr-analysis",
                    path=Path("cache/pr-analysis"),
                    entry_count=2,
                    size_bytes=2048,
                    ttl_seconds=7 * 86400,
                    oldest_age_seconds=3600,
                )
            ],
            total_entries=2,
            total_size_bytes=2048,
        )

        console = Console(width=120, record=True)
        console.print(render_stats(stats))
        text = console.export_text()

        assert "pr-analysis" in text
        assert "2.0 KB" in text
        assert "7d" in text
        assert "1h" in text

    def test_render_entries_shows_time_left(self):
        entries = [
            CacheEntry(
                bucket="link-validation",
                key="links.json",
                path=Path("cache/link-validation/links.json"),
                size_bytes=12,
                age_seconds=600,
                ttl_seconds=3600,
                expired=False,
            ),
            CacheEntry(
                bucket="model-docs",
                key="old.md",
                path=Path("cache/model-docs/old.md"),
                size_bytes=12,
                age_seconds=2 * 86400,
                ttl_seconds=86400,
                expired=True,
            ),
        ]

        console = Console(width=120, record=True)
        console.print(render_entries(entries))
        text = console.export_text()

        assert "Expires in" in text
        assert "50m" in text
        assert "0s" in text
        assert "expired" in text
