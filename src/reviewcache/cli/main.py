"""Main CLI entry point for reviewcache.

Provides command-line administration of the review cache buckets.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewcache.cache import (
    BucketNotFoundError,
    CacheConfig,
    CacheConfigError,
    CacheManager,
    UnknownBucketError,
)
from reviewcache.display import render_cleanup, render_entries, render_stats

# Global console for Rich output
console = Console()
err_console = Console(stderr=True)


class CacheGroup(click.Group):
    """Command group that exits with status 1 on a missing or unknown command."""

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if (
            cmd_name is not None
            and not ctx.resilient_parsing
            and self.get_command(ctx, cmd_name) is None
        ):
            click.echo(f"Error: No such command '{cmd_name}'.\n", err=True)
            click.echo(ctx.get_help())
            ctx.exit(1)
        return super().resolve_command(ctx, args)


def load_config(
    cache_dir: Optional[str] = None, config_path: Optional[str] = None
) -> CacheConfig:
    """Build configuration from multiple sources.

    Priority:
    1. Explicit --cache-dir/-C flag
    2. REVIEWCACHE_DIR environment variable (via config env overrides)
    3. Config file (--config, or .reviewcache.json in the current directory)

    Raises:
        click.ClickException: If the config file is invalid
    """
    try:
        config = CacheConfig.load(Path(config_path) if config_path else None)
        config.apply_env()
    except CacheConfigError as e:
        raise click.ClickException(str(e)) from e

    if cache_dir:
        config.cache_dir = Path(cache_dir).expanduser()
    return config


def setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@click.group(cls=CacheGroup, invoke_without_command=True)
@click.option(
    "--cache-dir",
    "-C",
    type=click.Path(file_okay=False),
    help="Cache root directory (default: ./cache or REVIEWCACHE_DIR env var)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Path to a JSON config file (default: ./.reviewcache.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log each file operation")
@click.pass_context
def cli(ctx, cache_dir, config_path, verbose):
    """reviewcache - Manage the TTL-bucketed review cache.

    Buckets: model-docs (24h), pr-analysis (7d), link-validation (1h).
    """
    ctx.ensure_object(dict)
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["config_path"] = config_path
    setup_logging(verbose)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(1)


def get_manager(ctx) -> CacheManager:
    config = load_config(ctx.obj.get("cache_dir"), ctx.obj.get("config_path"))
    return CacheManager(config)


@cli.command("clean")
@click.pass_context
def clean(ctx):
    """Remove expired entries from every bucket.

    Example:
        reviewcache clean
    """
    try:
        manager = get_manager(ctx)
        result = manager.clean()

        console.print(f"[bold]Cleaning expired entries in {manager.cache_dir}[/bold]")
        for line in render_cleanup(result, "Removed"):
            console.print(line)

    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("clear")
@click.pass_context
def clear(ctx):
    """Remove ALL entries from every bucket, regardless of age.

    Example:
        reviewcache clear
    """
    try:
        manager = get_manager(ctx)
        result = manager.clear()

        console.print(f"[bold]Clearing all entries in {manager.cache_dir}[/bold]")
        for line in render_cleanup(result, "Cleared"):
            console.print(line)

    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("stats")
@click.pass_context
def stats(ctx):
    """Show entry counts, sizes, TTLs and oldest entry per bucket.

    Example:
        reviewcache stats
    """
    try:
        manager = get_manager(ctx)
        cache_stats = manager.stats()

        if not cache_stats.buckets:
            console.print(
                f"[yellow]No cache buckets found in {manager.cache_dir}[/yellow]"
            )
            return

        console.print(render_stats(cache_stats))
        console.print(f"Total entries: {cache_stats.total_entries}")

    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("invalidate")
@click.argument("key", required=False)
@click.pass_context
def invalidate(ctx, key):
    """Remove PR analyses whose filename contains KEY (e.g., a commit SHA).

    Example:
        reviewcache invalidate 3f2a9c1
    """
    if not key:
        console.print("[red]✗[/red] Error: invalidate requires a KEY", style="red")
        console.print("Usage: reviewcache invalidate KEY")
        sys.exit(1)

    try:
        manager = get_manager(ctx)
        removed = manager.invalidate(key)

        console.print(
            f"[green]✓[/green] Invalidated {removed} pr-analysis "
            f"entr{'y' if removed == 1 else 'ies'} matching '{key}'"
        )

    except BucketNotFoundError as e:
        console.print(f"[red]✗[/red] {e}", style="red")
        sys.exit(1)
    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("list")
@click.argument("bucket", required=False)
@click.pass_context
def list_entries(ctx, bucket):
    """List cache entries with their age and expiry status.

    Example:
        reviewcache list
        reviewcache list pr-analysis
    """
    try:
        manager = get_manager(ctx)
        entries = manager.list_entries(bucket)

        if not entries:
            console.print("[yellow]No cache entries found[/yellow]")
            return

        console.print(render_entries(entries))

    except UnknownBucketError as e:
        console.print(f"[red]✗[/red] {e}", style="red")
        sys.exit(1)
    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


if __name__ == "__main__":
    cli()
