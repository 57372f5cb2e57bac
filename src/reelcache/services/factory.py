"""
Wiring for the media cache.

Builds the content catalog, remote client and cache manager from settings.
Used by the API lifespan and the CLI commands so both run the same
configuration.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from reelcache.config.database import DatabaseManager
from reelcache.config.settings import Settings
from reelcache.models.enums import AssetKind
from reelcache.services.content_catalog import (
    DatabaseContentCatalog,
    JsonContentCatalog,
)
from reelcache.services.interfaces import ContentCatalogInterface
from reelcache.services.media_cache import MediaCacheConfig, MediaCacheManager
from reelcache.services.remote_store import RemoteAssetStore

logger = logging.getLogger(__name__)


def build_content_catalog(settings: Settings) -> ContentCatalogInterface:
    """Create the catalog selected by ``settings.catalog_source``."""
    if settings.catalog_source == "database":
        logger.debug("Using database content catalog: %s", settings.database_url)
        db_manager = DatabaseManager(
            settings.database_url, echo=settings.db_log_queries
        )
        return DatabaseContentCatalog(db_manager, settings.critical_videos)

    logger.debug("Using JSON content catalog: %s", settings.catalog_dir)
    return JsonContentCatalog(settings.catalog_dir, settings.critical_videos)


def build_remote_store(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RemoteAssetStore:
    """Create the remote asset store client."""
    return RemoteAssetStore(
        settings.remote_base_url,
        {
            AssetKind.VIDEO: settings.video_bucket,
            AssetKind.IMAGE: settings.image_bucket,
        },
        timeout=settings.remote_timeout,
        user_agent=settings.user_agent,
        transport=transport,
    )


def build_media_cache(
    settings: Settings,
    *,
    catalog: Optional[ContentCatalogInterface] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> MediaCacheManager:
    """Create a fully wired ``MediaCacheManager``.

    Parameters
    ----------
    settings : Settings
        Application settings.
    catalog : ContentCatalogInterface | None
        Catalog override; defaults to the configured source.
    transport : httpx.AsyncBaseTransport | None
        HTTP transport override for the remote store.

    Returns
    -------
    MediaCacheManager
        Manager with directories prepared (or in passthrough mode).
    """
    return MediaCacheManager(
        MediaCacheConfig.from_settings(settings),
        catalog if catalog is not None else build_content_catalog(settings),
        build_remote_store(settings, transport),
    )
