"""
Local media cache for the site's videos and images.

Keeps hero videos and gallery media from the remote asset store on local
disk so the media proxy can serve them with low, predictable latency. The
manager decides what to cache (critical preload, on-demand fetch,
reconciliation against the content catalog), when to evict, and guarantees
at most one concurrent download per filename.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel, Field

from reelcache.exceptions import (
    CacheDisabled,
    CacheMiss,
    DirectoryUnavailable,
    InvalidFilename,
    ReelcacheError,
    RemoteFetchFailed,
    StaleEntryRemovalFailed,
)
from reelcache.models.enums import AssetKind
from reelcache.services.cache_store import CacheEntry, CacheStore
from reelcache.services.interfaces import ContentCatalogInterface
from reelcache.services.remote_store import CHUNK_SIZE, RemoteAssetStore
from reelcache.utils.formatting import format_size

if TYPE_CHECKING:
    from reelcache.config.settings import Settings

logger = logging.getLogger(__name__)

_DownloadKey = Tuple[AssetKind, str]

SERVE_GRACE_SECONDS = 30.0
"""How long a resolved file is exempt from eviction so its response can open it."""


# ╔══════════════════════════════════════════════════════════════════════╗
# ║  Pydantic V2 models                                                ║
# ╚══════════════════════════════════════════════════════════════════════╝


class MediaCacheConfig(BaseModel):
    """Configuration for the media cache.

    Attributes
    ----------
    cache_dir : Path
        Root cache directory (e.g. ``./cache``).
    videos_dir : Path
        Directory for cached videos.
    images_dir : Path
        Directory for cached images.
    max_bytes : int
        Total-size ceiling per directory; exceeding it triggers eviction.
    max_items : int
        Item-count ceiling per directory; exceeding it triggers eviction.
    target_items : int
        Item count eviction brings a directory back down to.
    max_concurrent_fetches : int
        Maximum concurrent remote downloads (semaphore limit).
    """

    cache_dir: Path
    videos_dir: Path
    images_dir: Path
    max_bytes: int = Field(default=500 * 1024 * 1024, gt=0)
    max_items: int = Field(default=20, gt=0)
    target_items: int = Field(default=15, ge=0)
    max_concurrent_fetches: int = Field(default=4, gt=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> MediaCacheConfig:
        """Build the cache configuration from application settings."""
        return cls(
            cache_dir=settings.cache_dir,
            videos_dir=settings.videos_dir,
            images_dir=settings.images_dir,
            max_bytes=settings.cache_max_bytes,
            max_items=settings.cache_max_items,
            target_items=settings.cache_target_items,
            max_concurrent_fetches=settings.max_concurrent_fetches,
        )


class KindStats(BaseModel):
    """Statistics for one cache directory.

    ``usage_percent`` is ``total_bytes`` against the per-directory size
    ceiling that eviction enforces.
    """

    item_count: int
    total_bytes: int
    total_human: str
    usage_percent: float = 0.0
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None


class CacheStats(BaseModel):
    """Statistics about the media cache contents.

    Attributes
    ----------
    enabled : bool
        ``False`` when the cache fell back to passthrough mode.
    item_count : int
        Cached files across both directories.
    total_bytes : int
        Disk usage across both directories.
    total_human : str
        ``total_bytes`` formatted for display.
    limit_bytes : int
        Configured size ceiling, enforced per directory.
    usage_percent : float
        Usage of the fullest directory as a percentage of ``limit_bytes``;
        eviction starts when it passes 100.
    by_kind : dict[str, KindStats]
        Per-directory breakdown keyed by ``"video"`` / ``"image"``.
    in_flight : list[str]
        Filenames currently being downloaded.
    recent_failures : dict[str, str]
        Last failure reason per filename, cleared on success.
    """

    enabled: bool
    item_count: int
    total_bytes: int
    total_human: str
    limit_bytes: int
    usage_percent: float
    by_kind: Dict[str, KindStats]
    in_flight: List[str] = Field(default_factory=list)
    recent_failures: Dict[str, str] = Field(default_factory=dict)


class EntryStatus(BaseModel):
    """Cache coverage of a single filename."""

    cached: bool
    kind: Optional[AssetKind] = None
    size_bytes: Optional[int] = None
    modified_at: Optional[datetime] = None
    downloading: bool = False
    last_error: Optional[str] = None


class PreloadResult(BaseModel):
    """Result of a critical-asset preload.

    Attributes
    ----------
    cached : list[str]
        Filenames downloaded by this run.
    skipped : list[str]
        Filenames already present.
    failed : dict[str, str]
        Failure reason per filename.
    """

    cached: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.cached) + len(self.skipped) + len(self.failed)


class RefreshResult(BaseModel):
    """Result of reconciling the cache against the content catalog.

    Attributes
    ----------
    removed : list[str]
        Stale filenames deleted (no longer referenced, not critical).
    cached : list[str]
        Newly referenced filenames downloaded.
    failed : dict[str, str]
        Download failure reason per filename.
    removal_failed : list[str]
        Stale filenames that could not be deleted.
    """

    removed: List[str] = Field(default_factory=list)
    cached: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)
    removal_failed: List[str] = Field(default_factory=list)


class ClearReport(BaseModel):
    """Counts removed by a cache clear, plus the optional re-preload."""

    videos_removed: int = 0
    images_removed: int = 0
    preload: Optional[PreloadResult] = None


# ╔══════════════════════════════════════════════════════════════════════╗
# ║  MediaCacheManager                                                  ║
# ╚══════════════════════════════════════════════════════════════════════╝


class MediaCacheManager:
    """Decides what to cache and when, using two ``CacheStore``s as state.

    Parameters
    ----------
    config : MediaCacheConfig
        Directories and eviction bounds.
    catalog : ContentCatalogInterface
        Source of critical and currently referenced filenames.
    remote : RemoteAssetStore
        Client for the remote asset store.
    """

    def __init__(
        self,
        config: MediaCacheConfig,
        catalog: ContentCatalogInterface,
        remote: RemoteAssetStore,
    ) -> None:
        self._config = config
        self._catalog = catalog
        self._remote = remote
        self._stores: Dict[AssetKind, CacheStore] = {
            AssetKind.VIDEO: CacheStore(config.videos_dir, AssetKind.VIDEO),
            AssetKind.IMAGE: CacheStore(config.images_dir, AssetKind.IMAGE),
        }
        self._semaphore = asyncio.Semaphore(config.max_concurrent_fetches)
        self._in_flight: Dict[_DownloadKey, asyncio.Task[CacheEntry]] = {}
        self._failures: Dict[_DownloadKey, str] = {}
        self._served_at: Dict[_DownloadKey, float] = {}
        self._admin_lock = asyncio.Lock()
        self._passthrough = False
        self.ensure_directories()

    @property
    def config(self) -> MediaCacheConfig:
        return self._config

    @property
    def remote(self) -> RemoteAssetStore:
        return self._remote

    @property
    def enabled(self) -> bool:
        """``False`` while in passthrough mode."""
        return not self._passthrough

    def store(self, kind: AssetKind) -> CacheStore:
        """Return the store for an asset kind."""
        return self._stores[kind]

    # ------------------------------------------------------------------
    # Directory management
    # ------------------------------------------------------------------

    def ensure_directories(self) -> None:
        """Create cache directories if they do not exist.

        If directory creation fails, the manager falls back to passthrough
        mode where every ``resolve()`` raises ``CacheDisabled`` and the proxy
        serves straight from the remote store.
        """
        try:
            for store in self._stores.values():
                store.ensure_directory()
        except DirectoryUnavailable as exc:
            logger.error(
                "%s; falling back to passthrough mode",
                exc.message,
                exc_info=True,
            )
            self._passthrough = True
            return

        self._passthrough = False
        logger.debug(
            "Media cache directories ready: videos=%s, images=%s",
            self._config.videos_dir,
            self._config.images_dir,
        )

    # ------------------------------------------------------------------
    # Fetch-or-serve
    # ------------------------------------------------------------------

    async def resolve(self, filename: str, kind: AssetKind) -> Path:
        """Return the local path of *filename*, downloading it on a miss.

        Concurrent calls for the same uncached filename share one download.

        Parameters
        ----------
        filename : str
            Original asset filename.
        kind : AssetKind
            Asset kind; selects the directory and remote bucket.

        Returns
        -------
        Path
            Path of the cached file.

        Raises
        ------
        InvalidFilename
            If *filename* cannot be a cache key.
        CacheMiss
            ``CacheDisabled``, ``RemoteNotFound``, ``RemoteFetchFailed`` or
            ``WriteFailed`` when no local copy could be produced.
        """
        store = self.store(kind)
        path = store.path(filename)

        if self._passthrough:
            raise CacheDisabled(filename)

        key = (kind, filename)
        if await store.exists(filename):
            logger.debug("Cache HIT for %s: %s", kind.value, filename)
            self._served_at[key] = time.monotonic()
            return path

        logger.debug("Cache MISS for %s: %s", kind.value, filename)
        await self._download(filename, kind)
        self._served_at[key] = time.monotonic()
        return path

    async def force(self, filename: str, kind: AssetKind) -> CacheEntry:
        """Re-download *filename* even if cached (delete then rewrite).

        Joins a download already in flight for the same name instead of
        starting a second one.
        """
        self.store(kind).path(filename)
        if self._passthrough:
            raise CacheDisabled(filename)
        return await self._download(filename, kind, replace=True)

    def is_downloading(self, filename: str, kind: AssetKind) -> bool:
        return (kind, filename) in self._in_flight

    def _busy_filenames(self, kind: AssetKind) -> set[str]:
        """Names being downloaded or handed to a response in the grace window."""
        cutoff = time.monotonic() - SERVE_GRACE_SECONDS
        for key, served_at in list(self._served_at.items()):
            if served_at < cutoff:
                del self._served_at[key]
        busy = {name for (owner, name) in self._served_at if owner == kind}
        busy.update(name for (owner, name) in self._in_flight if owner == kind)
        return busy

    async def _download(
        self,
        filename: str,
        kind: AssetKind,
        *,
        replace: bool = False,
    ) -> CacheEntry:
        """Start or join the single in-flight download for a filename.

        The download runs in its own task and is shielded, so a requester
        that goes away (client disconnect) never cancels it.
        """
        key = (kind, filename)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(
                self._fetch_into_store(filename, kind, replace=replace),
                name=f"reelcache-download:{kind.value}/{filename}",
            )
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._download_finished(key, done))
        else:
            logger.debug(
                "Joining in-flight download for %s: %s", kind.value, filename
            )
        return await asyncio.shield(task)

    def _download_finished(
        self, key: _DownloadKey, task: asyncio.Task[CacheEntry]
    ) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the exception retrieved; awaiters (if any) still receive it.
        if not task.cancelled():
            task.exception()

    async def _fetch_into_store(
        self,
        filename: str,
        kind: AssetKind,
        *,
        replace: bool,
    ) -> CacheEntry:
        store = self.store(kind)
        key = (kind, filename)

        if not replace:
            existing = await store.entry(filename)
            if existing is not None:
                return existing

        await self.evict_if_needed(kind, protect=(filename,))

        async with self._semaphore:
            started = time.perf_counter()
            try:
                async with self._remote.open(filename, kind) as response:
                    if replace and await store.delete(filename):
                        logger.info(
                            "Removed cached %s for refresh: %s", kind.value, filename
                        )
                    entry = await store.write(
                        filename, response.aiter_bytes(CHUNK_SIZE)
                    )
            except CacheMiss as exc:
                self._record_failure(key, exc)
                raise
            except httpx.TimeoutException as exc:
                error = RemoteFetchFailed(filename, "timeout", original_error=exc)
                self._record_failure(key, error)
                logger.warning("Timeout streaming %s: %s", kind.value, filename)
                raise error from exc
            except httpx.HTTPError as exc:
                error = RemoteFetchFailed(
                    filename, f"stream_error: {exc}", original_error=exc
                )
                self._record_failure(key, error)
                logger.warning(
                    "Stream error downloading %s %s: %s", kind.value, filename, exc
                )
                raise error from exc

        self._failures.pop(key, None)
        logger.info(
            "Cached %s: %s (%s in %.2fs)",
            kind.value,
            filename,
            format_size(entry.size_bytes),
            time.perf_counter() - started,
        )
        return entry

    def _record_failure(self, key: _DownloadKey, exc: ReelcacheError) -> None:
        self._failures[key] = getattr(exc, "reason", None) or exc.message

    # ------------------------------------------------------------------
    # Startup preload
    # ------------------------------------------------------------------

    async def preload(self) -> PreloadResult:
        """Download every critical video that is not cached yet.

        Items are fetched sequentially; a failure is logged and recorded and
        never aborts the remaining items. Catalog assets are not preloaded,
        they are cached on first request.

        Returns
        -------
        PreloadResult
            Cached, skipped and failed filenames.
        """
        async with self._admin_lock:
            return await self._preload_unlocked()

    async def _preload_unlocked(self) -> PreloadResult:
        result = PreloadResult()
        if self._passthrough:
            logger.warning("Media cache disabled; skipping preload")
            return result

        critical = await self._catalog.critical_filenames()
        logger.info("Preloading %d critical video(s)", len(critical))
        store = self.store(AssetKind.VIDEO)

        for filename in critical:
            try:
                if await store.exists(filename):
                    result.skipped.append(filename)
                    continue
                await self._download(filename, AssetKind.VIDEO)
            except ReelcacheError as exc:
                result.failed[filename] = exc.message
                logger.warning("Preload failed for %s: %s", filename, exc.message)
                continue
            result.cached.append(filename)
            logger.info("Preloaded critical video: %s", filename)

        logger.info(
            "Preload complete: %d cached, %d already present, %d failed",
            len(result.cached),
            len(result.skipped),
            len(result.failed),
        )
        return result

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def refresh(self) -> RefreshResult:
        """Reconcile the cache with the live content catalog.

        1. Query the catalog (videos and images).
        2. Delete every cached file whose name is neither referenced in its
           kind's catalog set nor critical.
        3. Download every referenced filename not cached yet.

        Each item is best effort: failures are logged and reported, never
        abort the pass.

        Returns
        -------
        RefreshResult
            Removed, newly cached and failed filenames.

        Raises
        ------
        CatalogUnavailable
            If the catalog cannot be read; nothing is deleted in that case.
        """
        async with self._admin_lock:
            result = RefreshResult()
            if self._passthrough:
                logger.warning("Media cache disabled; skipping refresh")
                return result

            critical = set(await self._catalog.critical_filenames())
            assets = await self._catalog.catalog_assets()
            referenced: Dict[AssetKind, set[str]] = {kind: set() for kind in AssetKind}
            for asset in assets:
                referenced[asset.kind].add(asset.filename)

            for kind, store in self._stores.items():
                for entry in await store.list(fresh=True):
                    name = entry.filename
                    if name in referenced[kind] or name in critical:
                        continue
                    try:
                        await store.delete(name)
                    except OSError as exc:
                        error = StaleEntryRemovalFailed(name, exc)
                        logger.warning("%s: %s", error.message, exc)
                        result.removal_failed.append(name)
                        continue
                    result.removed.append(name)
                    logger.info(
                        "Removed stale %s (no longer referenced): %s",
                        kind.value,
                        name,
                    )

            for asset in assets:
                store = self.store(asset.kind)
                try:
                    if await store.exists(asset.filename):
                        continue
                    await self._download(asset.filename, asset.kind)
                except ReelcacheError as exc:
                    result.failed[asset.filename] = exc.message
                    logger.warning(
                        "Refresh could not cache %s %s: %s",
                        asset.kind.value,
                        asset.filename,
                        exc.message,
                    )
                    continue
                result.cached.append(asset.filename)

            logger.info(
                "Refresh complete: %d removed, %d cached, %d failed",
                len(result.removed),
                len(result.cached),
                len(result.failed),
            )
            return result

    # ------------------------------------------------------------------
    # Capacity eviction
    # ------------------------------------------------------------------

    async def evict_if_needed(
        self,
        kind: AssetKind,
        *,
        protect: Iterable[str] = (),
    ) -> List[str]:
        """Relieve pressure on one directory, oldest modification time first.

        Triggers when the item count exceeds ``max_items`` or the total size
        exceeds ``max_bytes``. A count trigger deletes down to
        ``target_items``; a size trigger deletes until the total fits under
        ``max_bytes``.

        Files with a download in flight, and files ``resolve()`` returned
        within the last ``SERVE_GRACE_SECONDS``, are skipped so a response
        never loses its file between resolution and opening it.

        Parameters
        ----------
        kind : AssetKind
            Directory to check.
        protect : Iterable[str]
            Additional filenames never evicted by this call.

        Returns
        -------
        list[str]
            Evicted filenames, oldest first.
        """
        store = self.store(kind)
        entries = await store.list()
        count = len(entries)
        total = sum(entry.size_bytes for entry in entries)

        over_count = count > self._config.max_items
        over_size = total > self._config.max_bytes
        if not (over_count or over_size):
            return []

        def satisfied() -> bool:
            if over_count and count > self._config.target_items:
                return False
            return total <= self._config.max_bytes

        protected = set(protect) | self._busy_filenames(kind)
        candidates = sorted(
            (entry for entry in entries if entry.filename not in protected),
            key=lambda entry: (entry.modified_at, entry.filename),
        )

        evicted: List[str] = []
        for entry in candidates:
            if satisfied():
                break
            try:
                deleted = await store.delete(entry.filename)
            except OSError:
                logger.warning(
                    "Failed to evict cached %s: %s",
                    kind.value,
                    entry.filename,
                    exc_info=True,
                )
                continue
            count -= 1
            total -= entry.size_bytes
            if deleted:
                evicted.append(entry.filename)

        if evicted:
            logger.info(
                "Evicted %d %s(s) to relieve cache pressure: %s",
                len(evicted),
                kind.value,
                ", ".join(evicted),
            )
        return evicted

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    async def clear(self, *, preload_after: bool = True) -> ClearReport:
        """Delete every cached file, then optionally re-run the preload.

        Parameters
        ----------
        preload_after : bool
            Re-warm the critical set immediately so the site stays
            responsive (default ``True``).
        """
        async with self._admin_lock:
            report = ClearReport(
                videos_removed=await self.store(AssetKind.VIDEO).clear(),
                images_removed=await self.store(AssetKind.IMAGE).clear(),
            )
            logger.info(
                "Cleared media cache: %d video(s), %d image(s) removed",
                report.videos_removed,
                report.images_removed,
            )
            if preload_after:
                report.preload = await self._preload_unlocked()
            return report

    async def clear_and_report(self) -> ClearReport:
        """Clear completely and leave the cache cold (diagnostics)."""
        return await self.clear(preload_after=False)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def stats(self) -> CacheStats:
        """Compute statistics about the cache contents.

        Returns
        -------
        CacheStats
            Counts, sizes, usage against the size ceiling, per-kind
            breakdown, in-flight downloads and recent failures.
        """
        by_kind: Dict[str, KindStats] = {}
        item_count = 0
        total_bytes = 0

        for kind, store in self._stores.items():
            entries = await store.list(fresh=True) if not self._passthrough else []
            kind_bytes = sum(entry.size_bytes for entry in entries)
            mtimes = [entry.modified_at for entry in entries]
            by_kind[kind.value] = KindStats(
                item_count=len(entries),
                total_bytes=kind_bytes,
                total_human=format_size(kind_bytes),
                usage_percent=round(kind_bytes / self._config.max_bytes * 100, 1),
                oldest=min(mtimes) if mtimes else None,
                newest=max(mtimes) if mtimes else None,
            )
            item_count += len(entries)
            total_bytes += kind_bytes

        return CacheStats(
            enabled=not self._passthrough,
            item_count=item_count,
            total_bytes=total_bytes,
            total_human=format_size(total_bytes),
            limit_bytes=self._config.max_bytes,
            usage_percent=max(
                kind_stats.usage_percent for kind_stats in by_kind.values()
            ),
            by_kind=by_kind,
            in_flight=sorted(name for _, name in self._in_flight),
            recent_failures={name: reason for (_, name), reason in self._failures.items()},
        )

    async def status_for(
        self,
        filenames: Sequence[str],
        kind: Optional[AssetKind] = None,
    ) -> Dict[str, EntryStatus]:
        """Report cache coverage for specific filenames.

        Parameters
        ----------
        filenames : Sequence[str]
            Filenames to look up (typically the current catalog).
        kind : AssetKind | None
            Restrict the lookup to one directory; ``None`` checks videos
            then images.

        Returns
        -------
        dict[str, EntryStatus]
            Status per requested filename.
        """
        kinds = [kind] if kind is not None else [AssetKind.VIDEO, AssetKind.IMAGE]
        statuses: Dict[str, EntryStatus] = {}

        for filename in filenames:
            status: Optional[EntryStatus] = None
            for candidate in kinds:
                try:
                    entry = await self.store(candidate).entry(filename)
                except InvalidFilename:
                    entry = None
                if entry is not None:
                    status = EntryStatus(
                        cached=True,
                        kind=candidate,
                        size_bytes=entry.size_bytes,
                        modified_at=entry.modified_at,
                        downloading=self.is_downloading(filename, candidate),
                    )
                    break

            if status is None:
                last_error = next(
                    (
                        self._failures[(candidate, filename)]
                        for candidate in kinds
                        if (candidate, filename) in self._failures
                    ),
                    None,
                )
                status = EntryStatus(
                    cached=False,
                    kind=kind,
                    downloading=any(
                        self.is_downloading(filename, candidate) for candidate in kinds
                    ),
                    last_error=last_error,
                )
            statuses[filename] = status

        return statuses

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Let in-flight downloads finish, then close the remote client and
        the catalog."""
        pending = list(self._in_flight.values())
        if pending:
            logger.info("Waiting for %d in-flight download(s)", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)
        await self._remote.aclose()
        await self._catalog.aclose()
