"""
Unit tests for the content catalog adapters.

Covers media reference parsing, the JSON snapshot reader and the
SQLAlchemy-backed reader (aiosqlite file database).
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from reelcache.config.database import DatabaseManager
from reelcache.db.models import GalleryItem, HeroVideo
from reelcache.exceptions import CatalogUnavailable
from reelcache.models.catalog import CatalogAsset, asset_filename
from reelcache.models.enums import AssetKind
from reelcache.services.content_catalog import (
    GALLERY_ITEMS_FILE,
    HERO_VIDEOS_FILE,
    DatabaseContentCatalog,
    JsonContentCatalog,
    StaticContentCatalog,
    collect_assets,
)

pytestmark = pytest.mark.asyncio

STORAGE = "https://storage.test/storage/v1/object/public"

HERO_VIDEOS = [
    {"id": 1, "url_en": "hero1.mp4", "url_fr": "hero1-fr.mp4", "is_active": True},
    {"id": 2, "url_en": "retired.mp4", "url_fr": None, "is_active": False},
]

GALLERY_ITEMS = [
    {
        "id": 7,
        "video_url_en": f"{STORAGE}/media-videos/gallery7.mp4",
        "video_url_fr": f"{STORAGE}/media-videos/gallery7.mp4",
        "image_url_en": f"{STORAGE}/media-images/gallery7%20thumb.jpg?t=123",
        "image_url_fr": None,
        "is_active": True,
    },
    {
        "id": 8,
        "video_filename": "gallery8.mp4",
        "static_image_url": "gallery8.jpg",
    },
]


def _names(assets: list[CatalogAsset], kind: AssetKind) -> list[str]:
    return [asset.filename for asset in assets if asset.kind == kind]


# ═══════════════════════════════════════════════════════════════════════════
# Reference parsing
# ═══════════════════════════════════════════════════════════════════════════


class TestAssetFilename:
    """Tests for asset_filename()."""

    @pytest.mark.parametrize(
        ("reference", "expected"),
        [
            ("hero1.mp4", "hero1.mp4"),
            (f"{STORAGE}/media-videos/hero1.mp4", "hero1.mp4"),
            (f"{STORAGE}/media-images/My%20Clip.jpg?v=3", "My Clip.jpg"),
            ("  padded.mp4  ", "padded.mp4"),
            ("", None),
            ("   ", None),
            (None, None),
            (f"{STORAGE}/media-videos/", None),
        ],
    )
    def test_extracts_last_segment(self, reference, expected) -> None:  # type: ignore[no-untyped-def]
        assert asset_filename(reference) == expected

    def test_catalog_asset_strips_query_string(self) -> None:
        asset = CatalogAsset(filename="hero1.mp4?download=1", kind=AssetKind.VIDEO)

        assert asset.filename == "hero1.mp4"


class TestCollectAssets:
    """Tests for projecting content records onto catalog assets."""

    def test_projects_active_records(self) -> None:
        assets = collect_assets(HERO_VIDEOS, GALLERY_ITEMS)

        assert _names(assets, AssetKind.VIDEO) == [
            "hero1.mp4",
            "hero1-fr.mp4",
            "gallery7.mp4",
            "gallery8.mp4",
        ]
        assert _names(assets, AssetKind.IMAGE) == ["gallery7 thumb.jpg", "gallery8.jpg"]

    def test_skips_inactive_records(self) -> None:
        assets = collect_assets(HERO_VIDEOS, [])

        assert "retired.mp4" not in _names(assets, AssetKind.VIDEO)

    def test_videos_listed_before_images(self) -> None:
        assets = collect_assets([], GALLERY_ITEMS)

        kinds = [asset.kind for asset in assets]
        assert kinds == sorted(kinds, key=lambda kind: kind != AssetKind.VIDEO)


# ═══════════════════════════════════════════════════════════════════════════
# Static catalog
# ═══════════════════════════════════════════════════════════════════════════


class TestStaticContentCatalog:
    """Tests for the in-memory catalog."""

    async def test_critical_filenames_are_deduplicated(self) -> None:
        catalog = StaticContentCatalog(critical=["hero1.mp4", "hero2.mp4", "hero1.mp4"])

        assert await catalog.critical_filenames() == ["hero1.mp4", "hero2.mp4"]

    async def test_set_assets_replaces_list(self) -> None:
        catalog = StaticContentCatalog(
            assets=[CatalogAsset(filename="a.mp4", kind=AssetKind.VIDEO)]
        )
        catalog.set_assets([])

        assert await catalog.catalog_assets() == []


# ═══════════════════════════════════════════════════════════════════════════
# JSON snapshots
# ═══════════════════════════════════════════════════════════════════════════


class TestJsonContentCatalog:
    """Tests for the JSON snapshot reader."""

    async def test_reads_both_snapshots(self, tmp_path: Path) -> None:
        (tmp_path / HERO_VIDEOS_FILE).write_text(json.dumps(HERO_VIDEOS))
        (tmp_path / GALLERY_ITEMS_FILE).write_text(json.dumps(GALLERY_ITEMS))
        catalog = JsonContentCatalog(tmp_path, critical=["hero1.mp4"])

        assets = await catalog.catalog_assets()

        assert "gallery7.mp4" in _names(assets, AssetKind.VIDEO)
        assert "gallery8.jpg" in _names(assets, AssetKind.IMAGE)
        assert await catalog.critical_filenames() == ["hero1.mp4"]

    async def test_missing_snapshots_mean_empty_catalog(self, tmp_path: Path) -> None:
        catalog = JsonContentCatalog(tmp_path)

        assert await catalog.catalog_assets() == []

    async def test_invalid_json_raises(self, tmp_path: Path) -> None:
        (tmp_path / HERO_VIDEOS_FILE).write_text("{not json")
        catalog = JsonContentCatalog(tmp_path)

        with pytest.raises(CatalogUnavailable) as exc_info:
            await catalog.catalog_assets()

        assert HERO_VIDEOS_FILE in exc_info.value.message

    async def test_non_array_snapshot_raises(self, tmp_path: Path) -> None:
        (tmp_path / GALLERY_ITEMS_FILE).write_text(json.dumps({"items": []}))
        catalog = JsonContentCatalog(tmp_path)

        with pytest.raises(CatalogUnavailable):
            await catalog.catalog_assets()


# ═══════════════════════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════════════════════


class TestDatabaseContentCatalog:
    """Tests for the SQLAlchemy reader."""

    async def test_reads_active_rows(self, tmp_path: Path) -> None:
        db_manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
        await db_manager.create_tables()
        async for session in db_manager.get_session():
            session.add_all(
                [
                    HeroVideo(id=1, title_en="Hero", url_en="hero1.mp4", order_index=1),
                    HeroVideo(
                        id=2, title_en="Old", url_en="retired.mp4", is_active=False
                    ),
                    GalleryItem(
                        id=7,
                        title_en="Gallery",
                        video_url_en=f"{STORAGE}/media-videos/gallery7.mp4",
                        image_url_en="gallery7.jpg",
                    ),
                ]
            )

        catalog = DatabaseContentCatalog(db_manager, critical=["hero1.mp4"])
        try:
            assets = await catalog.catalog_assets()
        finally:
            await catalog.aclose()

        assert _names(assets, AssetKind.VIDEO) == ["hero1.mp4", "gallery7.mp4"]
        assert _names(assets, AssetKind.IMAGE) == ["gallery7.jpg"]

    async def test_database_error_raises_catalog_unavailable(
        self, tmp_path: Path
    ) -> None:
        db_manager = DatabaseManager(
            f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'catalog.db'}"
        )
        catalog = DatabaseContentCatalog(db_manager)

        try:
            with pytest.raises(CatalogUnavailable):
                await catalog.catalog_assets()
        finally:
            await catalog.aclose()
