"""
Content catalog adapters.

Project the site's content records (hero videos and gallery items) onto the
two queries the media cache needs: the critical filenames and the
``(filename, kind)`` pairs referenced by active records. Three sources are
provided:

- ``JsonContentCatalog`` reads the JSON snapshots the CMS writes
  (``hero-videos.json`` and ``gallery-items.json``).
- ``DatabaseContentCatalog`` reads the same records through SQLAlchemy.
- ``StaticContentCatalog`` serves fixed lists (tests and diagnostics).
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from reelcache.config.database import DatabaseManager
from reelcache.db.models import GalleryItem, HeroVideo
from reelcache.exceptions import CatalogUnavailable
from reelcache.models.catalog import CatalogAsset, asset_filename
from reelcache.models.enums import AssetKind
from reelcache.services.interfaces import ContentCatalogInterface

logger = logging.getLogger(__name__)

HERO_VIDEOS_FILE = "hero-videos.json"
GALLERY_ITEMS_FILE = "gallery-items.json"

# Record fields holding media references, per asset kind
HERO_VIDEO_FIELDS = ("url_en", "url_fr")
GALLERY_VIDEO_FIELDS = ("video_filename", "video_url_en", "video_url_fr")
GALLERY_IMAGE_FIELDS = (
    "image_url_en",
    "image_url_fr",
    "static_image_url",
    "static_image_url_en",
    "static_image_url_fr",
)


def _dedupe(names: Iterable[str]) -> List[str]:
    """Drop duplicates while keeping first-seen order."""
    seen: set[str] = set()
    result: List[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


def collect_assets(
    hero_videos: Iterable[Mapping[str, Any]],
    gallery_items: Iterable[Mapping[str, Any]],
) -> List[CatalogAsset]:
    """Build the catalog asset list from active content records.

    Parameters
    ----------
    hero_videos : Iterable[Mapping[str, Any]]
        Hero video records (dict-like).
    gallery_items : Iterable[Mapping[str, Any]]
        Gallery item records (dict-like).

    Returns
    -------
    List[CatalogAsset]
        Deduplicated per kind, videos first, in record order.
    """
    videos: List[str] = []
    images: List[str] = []

    def _add(record: Mapping[str, Any], fields: tuple[str, ...], into: List[str]) -> None:
        for field in fields:
            name = asset_filename(record.get(field))
            if name:
                into.append(name)

    for record in hero_videos:
        if record.get("is_active", True):
            _add(record, HERO_VIDEO_FIELDS, videos)

    for record in gallery_items:
        if record.get("is_active", True):
            _add(record, GALLERY_VIDEO_FIELDS, videos)
            _add(record, GALLERY_IMAGE_FIELDS, images)

    return [
        CatalogAsset(filename=name, kind=AssetKind.VIDEO) for name in _dedupe(videos)
    ] + [CatalogAsset(filename=name, kind=AssetKind.IMAGE) for name in _dedupe(images)]


class _ConfiguredCriticalMixin:
    """Critical filenames come from configuration, not from content records."""

    _critical: List[str]

    async def critical_filenames(self) -> List[str]:
        return list(self._critical)


class StaticContentCatalog(_ConfiguredCriticalMixin, ContentCatalogInterface):
    """Catalog backed by fixed in-memory lists.

    Parameters
    ----------
    critical : Iterable[str]
        Critical video filenames.
    assets : Iterable[CatalogAsset]
        Referenced catalog assets.
    """

    def __init__(
        self,
        critical: Iterable[str] = (),
        assets: Iterable[CatalogAsset] = (),
    ) -> None:
        self._critical = _dedupe(critical)
        self._assets = list(assets)

    def set_assets(self, assets: Iterable[CatalogAsset]) -> None:
        """Replace the referenced assets (simulates an admin edit)."""
        self._assets = list(assets)

    async def catalog_assets(self) -> List[CatalogAsset]:
        return list(self._assets)


class JsonContentCatalog(_ConfiguredCriticalMixin, ContentCatalogInterface):
    """Catalog read from the CMS JSON snapshots.

    A missing snapshot file means the site has no records of that type. A
    snapshot that exists but cannot be parsed raises ``CatalogUnavailable``
    so reconciliation never mistakes a broken file for an empty catalog.

    Parameters
    ----------
    data_dir : Path
        Directory holding ``hero-videos.json`` and ``gallery-items.json``.
    critical : Iterable[str]
        Critical video filenames from configuration.
    """

    def __init__(self, data_dir: Path, critical: Iterable[str] = ()) -> None:
        self._data_dir = data_dir
        self._critical = _dedupe(critical)

    @staticmethod
    def _load(path: Path) -> List[dict[str, Any]]:
        if not path.is_file():
            logger.debug("Catalog snapshot not found, treating as empty: %s", path)
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CatalogUnavailable(str(path), exc) from exc
        if not isinstance(data, list):
            raise CatalogUnavailable(
                str(path), ValueError("snapshot must be a JSON array")
            )
        return [record for record in data if isinstance(record, dict)]

    async def catalog_assets(self) -> List[CatalogAsset]:
        hero_videos = await asyncio.to_thread(
            self._load, self._data_dir / HERO_VIDEOS_FILE
        )
        gallery_items = await asyncio.to_thread(
            self._load, self._data_dir / GALLERY_ITEMS_FILE
        )
        assets = collect_assets(hero_videos, gallery_items)
        logger.debug(
            "Loaded %d catalog assets from JSON snapshots in %s",
            len(assets),
            self._data_dir,
        )
        return assets


class DatabaseContentCatalog(_ConfiguredCriticalMixin, ContentCatalogInterface):
    """Catalog read from the relational store.

    Parameters
    ----------
    db_manager : DatabaseManager
        Database manager providing async sessions.
    critical : Iterable[str]
        Critical video filenames from configuration.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        critical: Iterable[str] = (),
    ) -> None:
        self._db_manager = db_manager
        self._critical = _dedupe(critical)

    @staticmethod
    def _row_dict(row: Any, fields: tuple[str, ...]) -> dict[str, Optional[str]]:
        return {field: getattr(row, field, None) for field in fields}

    async def catalog_assets(self) -> List[CatalogAsset]:
        try:
            async for session in self._db_manager.get_session():
                hero_rows = (
                    await session.execute(
                        select(HeroVideo)
                        .where(HeroVideo.is_active.is_(True))
                        .order_by(HeroVideo.order_index, HeroVideo.id)
                    )
                ).scalars().all()
                gallery_rows = (
                    await session.execute(
                        select(GalleryItem)
                        .where(GalleryItem.is_active.is_(True))
                        .order_by(GalleryItem.order_index, GalleryItem.id)
                    )
                ).scalars().all()
        except SQLAlchemyError as exc:
            raise CatalogUnavailable(self._db_manager.database_url, exc) from exc

        hero_videos = [self._row_dict(row, HERO_VIDEO_FIELDS) for row in hero_rows]
        gallery_items = [
            self._row_dict(row, GALLERY_VIDEO_FIELDS + GALLERY_IMAGE_FIELDS)
            for row in gallery_rows
        ]
        return collect_assets(hero_videos, gallery_items)

    async def aclose(self) -> None:
        """Dispose the database engine."""
        await self._db_manager.close()
