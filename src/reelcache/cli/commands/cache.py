"""
CLI commands for managing the local media cache.

Provides ``reelcache cache`` subcommands to preload critical videos,
reconcile the cache with the content catalog, inspect coverage and clear
cached files, with Rich summaries and graceful interrupt handling.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from reelcache.config.settings import get_settings
from reelcache.exceptions import (
    EXIT_CODE_GENERAL_ERROR,
    EXIT_CODE_INTERRUPTED,
    EXIT_CODE_INVALID_ARGS,
    CacheMiss,
    CatalogUnavailable,
    InvalidFilename,
    RemoteNotFound,
)
from reelcache.models.enums import AssetKind
from reelcache.services.factory import build_media_cache
from reelcache.services.media_cache import (
    CacheStats,
    ClearReport,
    EntryStatus,
    MediaCacheManager,
    PreloadResult,
)
from reelcache.utils.formatting import format_size

console = Console()

app = typer.Typer(
    name="cache",
    help="Manage the local media cache.",
    no_args_is_help=True,
)


def _build_cache_service() -> MediaCacheManager:
    """Build a MediaCacheManager from application settings.

    Returns
    -------
    MediaCacheManager
        Configured media cache manager.
    """
    return build_media_cache(get_settings())


def _require_enabled(manager: MediaCacheManager) -> None:
    if not manager.enabled:
        console.print(
            f"[red]Error: cache directory {manager.config.cache_dir} is unavailable[/red]"
        )
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)


def _spinner() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


# ---------------------------------------------------------------------------
# preload
# ---------------------------------------------------------------------------


@app.command(name="preload")
def preload() -> None:
    """
    Download critical videos that are not cached yet.

    Examples:
        reelcache cache preload
    """
    try:
        asyncio.run(_preload_async())
    except KeyboardInterrupt:
        console.print("\n[yellow]Preload interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _preload_async() -> None:
    """Async implementation of the cache preload command."""
    service = _build_cache_service()
    try:
        _require_enabled(service)
        with _spinner() as progress:
            progress.add_task("Preloading critical videos...", total=None)
            result = await service.preload()
    except CatalogUnavailable as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)
    finally:
        await service.aclose()

    _display_preload(result)
    if result.failed:
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)


def _display_preload(result: PreloadResult, title: str = "Preload Summary") -> None:
    """Display a summary table of preload results."""
    table = Table(title=title)
    table.add_column("Downloaded", style="green", justify="right")
    table.add_column("Already Cached", style="blue", justify="right")
    table.add_column("Failed", style="red", justify="right")
    table.add_column("Total", style="bold", justify="right")
    table.add_row(
        str(len(result.cached)),
        str(len(result.skipped)),
        str(len(result.failed)),
        str(result.total),
    )

    console.print()
    console.print(table)
    for filename, reason in result.failed.items():
        console.print(f"  [red]✗[/red] {filename}: {reason}")


# ---------------------------------------------------------------------------
# refresh
# ---------------------------------------------------------------------------


@app.command(name="refresh")
def refresh() -> None:
    """
    Reconcile the cache with the content catalog.

    Deletes cached files no active record references (critical videos are
    kept) and downloads newly referenced ones. Safe to run repeatedly.

    Examples:
        reelcache cache refresh
    """
    try:
        asyncio.run(_refresh_async())
    except KeyboardInterrupt:
        console.print("\n[yellow]Refresh interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _refresh_async() -> None:
    """Async implementation of the cache refresh command."""
    service = _build_cache_service()
    try:
        _require_enabled(service)
        with _spinner() as progress:
            progress.add_task("Reconciling cache with catalog...", total=None)
            result = await service.refresh()
    except CatalogUnavailable as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        console.print("[yellow]Nothing was deleted.[/yellow]")
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)
    finally:
        await service.aclose()

    table = Table(title="Cache Refresh Summary")
    table.add_column("Removed", style="yellow", justify="right")
    table.add_column("Downloaded", style="green", justify="right")
    table.add_column("Failed", style="red", justify="right")
    table.add_row(
        str(len(result.removed)),
        str(len(result.cached)),
        str(len(result.failed) + len(result.removal_failed)),
    )
    console.print()
    console.print(table)

    for filename in result.removed:
        console.print(f"  [yellow]-[/yellow] {filename}")
    for filename in result.cached:
        console.print(f"  [green]+[/green] {filename}")
    for filename, reason in result.failed.items():
        console.print(f"  [red]✗[/red] {filename}: {reason}")
    for filename in result.removal_failed:
        console.print(f"  [red]✗[/red] {filename}: could not be removed")

    if result.failed or result.removal_failed:
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@app.command(name="status")
def status(
    filenames: Optional[List[str]] = typer.Argument(
        None,
        help="Filenames to check; omit for overall statistics",
    ),
    kind: Optional[AssetKind] = typer.Option(
        None,
        "--kind",
        "-k",
        case_sensitive=False,
        help="Restrict the lookup to videos or images",
    ),
) -> None:
    """
    Display cache statistics or per-file coverage.

    Examples:
        reelcache cache status
        reelcache cache status hero1.mp4 gallery7.mp4
        reelcache cache status thumb.jpg --kind image
    """
    try:
        asyncio.run(_status_async(filenames or [], kind))
    except KeyboardInterrupt:
        console.print("\n[yellow]Status check interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _status_async(filenames: List[str], kind: Optional[AssetKind]) -> None:
    """Async implementation of the cache status command."""
    service = _build_cache_service()
    try:
        if filenames:
            statuses = await service.status_for(filenames, kind)
        else:
            stats = await service.stats()
    finally:
        await service.aclose()

    if filenames:
        _display_statuses(statuses)
    else:
        _display_stats(stats, service)


def _display_stats(stats: CacheStats, service: MediaCacheManager) -> None:
    """Display overall cache statistics."""
    table = Table(title="Media Cache Status")
    table.add_column("Type", style="cyan")
    table.add_column("Cached", style="green", justify="right")
    table.add_column("Size", style="blue", justify="right")
    table.add_column("Usage", justify="right")
    table.add_column("Oldest", justify="right")
    table.add_column("Newest", justify="right")

    for name, kind_stats in stats.by_kind.items():
        table.add_row(
            f"{name.capitalize()}s",
            f"{kind_stats.item_count:,}",
            kind_stats.total_human,
            f"{kind_stats.usage_percent:.1f}%",
            kind_stats.oldest.strftime("%Y-%m-%d %H:%M") if kind_stats.oldest else "-",
            kind_stats.newest.strftime("%Y-%m-%d %H:%M") if kind_stats.newest else "-",
        )
    table.add_row(
        "[bold]Total[/bold]",
        f"[bold]{stats.item_count:,}[/bold]",
        f"[bold]{stats.total_human}[/bold]",
        "",
        "",
        "",
    )

    console.print()
    console.print(table)
    console.print()
    console.print(f"  Cache directory: {service.config.cache_dir}")
    console.print(
        f"  Size limit:      {format_size(stats.limit_bytes)} per directory "
        f"(fullest at {stats.usage_percent:.1f}%)"
    )
    if not stats.enabled:
        console.print("  [red]Cache disabled: serving from the remote store[/red]")
    for filename, reason in stats.recent_failures.items():
        console.print(f"  [red]Last failure[/red] {filename}: {reason}")
    console.print()


def _display_statuses(statuses: dict[str, EntryStatus]) -> None:
    """Display per-file cache coverage."""
    table = Table(title="Cache Coverage")
    table.add_column("Filename", style="cyan")
    table.add_column("Kind")
    table.add_column("Cached", justify="center")
    table.add_column("Size", style="blue", justify="right")
    table.add_column("Modified", justify="right")
    table.add_column("Note", style="yellow")

    for filename, entry in statuses.items():
        note = ""
        if entry.downloading:
            note = "downloading"
        elif entry.last_error:
            note = entry.last_error
        table.add_row(
            filename,
            entry.kind.value if entry.kind else "-",
            "[green]✓[/green]" if entry.cached else "[red]✗[/red]",
            format_size(entry.size_bytes) if entry.size_bytes is not None else "-",
            entry.modified_at.strftime("%Y-%m-%d %H:%M") if entry.modified_at else "-",
            note,
        )

    cached = sum(1 for entry in statuses.values() if entry.cached)
    console.print()
    console.print(table)
    console.print(f"\n  {cached} of {len(statuses)} cached\n")


# ---------------------------------------------------------------------------
# clear / purge
# ---------------------------------------------------------------------------


@app.command(name="clear")
def clear(
    no_preload: bool = typer.Option(
        False,
        "--no-preload",
        help="Leave the cache cold instead of re-downloading critical videos",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Skip confirmation prompt",
    ),
) -> None:
    """
    Delete every cached file, then re-download critical videos.

    Examples:
        reelcache cache clear
        reelcache cache clear --no-preload --force
    """
    if not force:
        confirmation = typer.confirm(
            "Are you sure you want to delete all cached media?",
            default=False,
        )
        if not confirmation:
            console.print("[yellow]Clear cancelled by user[/yellow]")
            raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)

    try:
        asyncio.run(_clear_async(preload_after=not no_preload))
    except KeyboardInterrupt:
        console.print("\n[yellow]Clear interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _clear_async(*, preload_after: bool) -> None:
    """Async implementation of the cache clear command."""
    service = _build_cache_service()
    try:
        _require_enabled(service)
        report = await service.clear(preload_after=preload_after)
    except CatalogUnavailable as exc:
        console.print("[green]Cache cleared.[/green]")
        console.print(f"[red]Preload skipped: {exc.message}[/red]")
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)
    finally:
        await service.aclose()

    _display_clear(report)
    if report.preload is not None:
        _display_preload(report.preload, title="Re-preload Summary")
        if report.preload.failed:
            raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)


@app.command(name="purge")
def purge(
    force: bool = typer.Option(
        False,
        "--force",
        help="Skip confirmation prompt",
    ),
) -> None:
    """
    Delete every cached file and report what was removed.

    Unlike ``clear`` the cache is left cold.

    Examples:
        reelcache cache purge
        reelcache cache purge --force
    """
    if not force:
        confirmation = typer.confirm(
            "Are you sure you want to purge all cached media?",
            default=False,
        )
        if not confirmation:
            console.print("[yellow]Purge cancelled by user[/yellow]")
            raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)

    try:
        asyncio.run(_purge_async())
    except KeyboardInterrupt:
        console.print("\n[yellow]Purge interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _purge_async() -> None:
    """Async implementation of the cache purge command."""
    service = _build_cache_service()
    try:
        _require_enabled(service)
        report = await service.clear_and_report()
    finally:
        await service.aclose()

    _display_clear(report)


def _display_clear(report: ClearReport) -> None:
    console.print()
    console.print(
        f"[green]Removed {report.videos_removed} video(s) and "
        f"{report.images_removed} image(s)[/green]"
    )


# ---------------------------------------------------------------------------
# force
# ---------------------------------------------------------------------------


@app.command(name="force")
def force(
    filename: str = typer.Argument(..., help="Asset filename to download"),
    kind: AssetKind = typer.Option(
        AssetKind.VIDEO,
        "--kind",
        "-k",
        case_sensitive=False,
        help="Asset kind",
    ),
) -> None:
    """
    Re-download one asset even if it is already cached.

    Examples:
        reelcache cache force hero1.mp4
        reelcache cache force thumb.jpg --kind image
    """
    try:
        asyncio.run(_force_async(filename, kind))
    except KeyboardInterrupt:
        console.print("\n[yellow]Download interrupted by user[/yellow]")
        raise typer.Exit(code=EXIT_CODE_INTERRUPTED)


async def _force_async(filename: str, kind: AssetKind) -> None:
    """Async implementation of the cache force command."""
    service = _build_cache_service()
    try:
        _require_enabled(service)
        with _spinner() as progress:
            progress.add_task(f"Downloading {filename}...", total=None)
            entry = await service.force(filename, kind)
    except InvalidFilename as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(code=EXIT_CODE_INVALID_ARGS)
    except RemoteNotFound:
        console.print(f"[red]Error: {filename} not found in the remote store[/red]")
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)
    except CacheMiss as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(code=EXIT_CODE_GENERAL_ERROR)
    finally:
        await service.aclose()

    console.print(
        f"[green]Cached {entry.kind.value} {entry.filename} "
        f"({format_size(entry.size_bytes)})[/green]"
    )
