"""
Services module for reelcache.

Contains the media cache manager, its filesystem store, the remote asset
store client and the content catalog adapters.
"""

from __future__ import annotations

from reelcache.services.cache_store import CacheEntry, CacheStore
from reelcache.services.factory import build_media_cache
from reelcache.services.media_cache import (
    CacheStats,
    ClearReport,
    EntryStatus,
    MediaCacheConfig,
    MediaCacheManager,
    PreloadResult,
    RefreshResult,
)
from reelcache.services.remote_store import RemoteAssetStore

__all__: list[str] = [
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "ClearReport",
    "EntryStatus",
    "MediaCacheConfig",
    "MediaCacheManager",
    "PreloadResult",
    "RefreshResult",
    "RemoteAssetStore",
    "build_media_cache",
]
