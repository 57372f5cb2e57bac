"""Cache administration endpoints.

- GET  /cache/stats         - Unified cache statistics
- POST /cache/status        - Coverage of specific filenames
- POST /cache/refresh       - Reconcile the cache with the content catalog
- POST /cache/clear         - Delete everything, optionally re-preload
- POST /cache/clear-report  - Delete everything and report counts
- POST /cache/preload       - Download missing critical videos
- POST /cache/force         - (Re)download one asset
"""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import APIRouter, Depends, Query

from reelcache.api.deps import get_media_cache
from reelcache.api.schemas.cache import CacheStatusRequest, ForceCacheRequest
from reelcache.api.schemas.responses import ApiResponse
from reelcache.exceptions import ServiceUnavailableError
from reelcache.services.cache_store import CacheEntry
from reelcache.services.media_cache import (
    CacheStats,
    ClearReport,
    EntryStatus,
    MediaCacheManager,
    PreloadResult,
    RefreshResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["cache"])


def _require_enabled(manager: MediaCacheManager) -> None:
    if not manager.enabled:
        raise ServiceUnavailableError(
            "Media cache is running in passthrough mode (cache directory unavailable)"
        )


@router.get("/stats", response_model=ApiResponse[CacheStats])
async def get_cache_stats(
    manager: MediaCacheManager = Depends(get_media_cache),
) -> ApiResponse[CacheStats]:
    """Return item counts, sizes and usage against the configured ceiling."""
    return ApiResponse[CacheStats](data=await manager.stats())


@router.post("/status", response_model=ApiResponse[Dict[str, EntryStatus]])
async def get_cache_status(
    body: CacheStatusRequest,
    manager: MediaCacheManager = Depends(get_media_cache),
) -> ApiResponse[Dict[str, EntryStatus]]:
    """Report per-filename cache coverage.

    Invalid filenames are reported as not cached instead of failing the
    whole request.
    """
    statuses = await manager.status_for(body.filenames, body.kind)
    return ApiResponse[Dict[str, EntryStatus]](data=statuses)


@router.post("/refresh", response_model=ApiResponse[RefreshResult])
async def refresh_cache(
    manager: MediaCacheManager = Depends(get_media_cache),
) -> ApiResponse[RefreshResult]:
    """Delete unreferenced files and cache newly referenced ones.

    Call after editing content so the cache follows the catalog.
    """
    _require_enabled(manager)
    result = await manager.refresh()
    return ApiResponse[RefreshResult](data=result)


@router.post("/clear", response_model=ApiResponse[ClearReport])
async def clear_cache(
    preload: bool = Query(
        default=True,
        description="Re-download critical videos after clearing",
    ),
    manager: MediaCacheManager = Depends(get_media_cache),
) -> ApiResponse[ClearReport]:
    """Delete every cached file."""
    _require_enabled(manager)
    logger.warning("Clearing media cache (preload=%s)", preload)
    report = await manager.clear(preload_after=preload)
    return ApiResponse[ClearReport](data=report)


@router.post("/clear-report", response_model=ApiResponse[ClearReport])
async def clear_cache_and_report(
    manager: MediaCacheManager = Depends(get_media_cache),
) -> ApiResponse[ClearReport]:
    """Delete every cached file without re-preloading and report counts."""
    _require_enabled(manager)
    report = await manager.clear_and_report()
    return ApiResponse[ClearReport](data=report)


@router.post("/preload", response_model=ApiResponse[PreloadResult])
async def preload_cache(
    manager: MediaCacheManager = Depends(get_media_cache),
) -> ApiResponse[PreloadResult]:
    """Download critical videos that are not cached yet."""
    _require_enabled(manager)
    result = await manager.preload()
    return ApiResponse[PreloadResult](data=result)


@router.post("/force", response_model=ApiResponse[CacheEntry])
async def force_cache(
    body: ForceCacheRequest,
    manager: MediaCacheManager = Depends(get_media_cache),
) -> ApiResponse[CacheEntry]:
    """Re-download one asset even if it is already cached."""
    _require_enabled(manager)
    entry = await manager.force(body.filename, body.kind)
    return ApiResponse[CacheEntry](data=entry)
