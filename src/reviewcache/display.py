"""Display formatting for cache reports.

This module turns cache statistics and cleanup results into human-readable
sizes, durations and Rich tables for the command line.
"""

from typing import List, Optional

from rich.table import Table

from reviewcache.cache.manager import CacheEntry, CacheStats, CleanupResult
from reviewcache.cache.validation import get_ttl_remaining


def format_filesize(size_bytes: int) -> str:
    """Format file size in bytes to human-readable string.

    Args:
        size_bytes: File size in bytes

    Returns:
        Human-readable file size string (e.g., "1.5 MB", "23.4 KB")

    Examples:
        >>> format_filesize(1024)
        '1.0 KB'
        >>> format_filesize(1536000)
        '1.5 MB'
    """
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(size_bytes)
    unit_index = 0

    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    else:
        return f"{size:.1f} {units[unit_index]}"


def format_duration(seconds: Optional[float]) -> str:
    """Format a duration as the two largest non-zero units.

    Examples:
        >>> format_duration(3600)
        '1h'
        >>> format_duration(183600)
        '2d 3h'
        >>> format_duration(45)
        '45s'
    """
    if seconds is None:
        return "-"

    remaining = max(0, int(seconds))
    parts = []
    for unit, span in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        value, remaining = divmod(remaining, span)
        if value:
            parts.append(f"{value}{unit}")

    if not parts:
        return "0s"
    return " ".join(parts[:2])


def render_stats(stats: CacheStats) -> Table:
    """Build a table of per-bucket statistics with a totals row."""
    table = Table(title=f"Cache: {stats.cache_dir}")
    table.add_column("Bucket", style="cyan", no_wrap=True)
    table.add_column("Entries", justify="right", style="green")
    table.add_column("Size", justify="right")
    table.add_column("TTL", justify="right", style="blue")
    table.add_column("Oldest", justify="right", style="magenta")

    for bucket in stats.buckets:
        table.add_row(
            bucket.name,
            str(bucket.entry_count),
            format_filesize(bucket.size_bytes),
            format_duration(bucket.ttl_seconds),
            format_duration(bucket.oldest_age_seconds),
        )

    table.add_section()
    table.add_row(
        "[bold]Total[/bold]",
        f"[bold]{stats.total_entries}[/bold]",
        f"[bold]{format_filesize(stats.total_size_bytes)}[/bold]",
        "",
        "",
    )
    return table


def render_cleanup(result: CleanupResult, verb: str) -> List[str]:
    """Build report lines for a clean or clear run.

    Args:
        result: Counts returned by the manager
        verb: Past-tense verb for the report (e.g., "Removed")
    """
    lines = [
        f"  {name}: {verb.lower()} {count} entr{'y' if count == 1 else 'ies'}"
        for name, count in result.removed.items()
    ]
    total = result.total
    lines.append(
        f"[green]✓[/green] {verb} {total} entr{'y' if total == 1 else 'ies'} total"
    )
    return lines


def render_entries(entries: List[CacheEntry]) -> Table:
    """Build a table listing cache entries."""
    table = Table(title=f"Entries ({len(entries)})")
    table.add_column("Bucket", style="cyan", no_wrap=True)
    table.add_column("Key", style="white")
    table.add_column("Size", justify="right")
    table.add_column("Age", justify="right", style="blue")
    table.add_column("Expires in", justify="right", style="magenta")
    table.add_column("Status")

    for entry in entries:
        table.add_row(
            entry.bucket,
            entry.key,
            format_filesize(entry.size_bytes),
            format_duration(entry.age_seconds),
            format_duration(get_ttl_remaining(entry.age_seconds, entry.ttl_seconds)),
            "[red]expired[/red]" if entry.expired else "[green]fresh[/green]",
        )
    return table
