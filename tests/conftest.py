"""
Pytest configuration and fixtures for reelcache tests.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

from reelcache.config.settings import Settings
from reelcache.models.catalog import CatalogAsset
from reelcache.models.enums import AssetKind
from reelcache.services.content_catalog import StaticContentCatalog
from reelcache.services.factory import build_remote_store
from reelcache.services.media_cache import MediaCacheConfig, MediaCacheManager

REMOTE_BASE_URL = "https://storage.test/storage/v1/object/public"


class _BrokenStream(httpx.AsyncByteStream):
    """Body stream that dies after the first chunk."""

    def __init__(self, first_chunk: bytes) -> None:
        self._first_chunk = first_chunk

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self._first_chunk
        raise httpx.ReadError("connection reset mid-transfer")


class FakeRemote:
    """In-memory stand-in for the remote asset store.

    Serves files per ``(bucket, filename)`` through ``httpx.MockTransport``,
    counts requests, and can hold requests behind a gate, answer with a
    fixed status or break the body stream mid-transfer.
    """

    def __init__(self) -> None:
        self.files: Dict[Tuple[str, str], bytes] = {}
        self.statuses: Dict[str, int] = {}
        self.broken: set[str] = set()
        self.requests: List[httpx.Request] = []
        self.gate: Optional[asyncio.Event] = None

    def add(self, bucket: str, filename: str, content: bytes) -> None:
        self.files[(bucket, filename)] = content

    def count(self, filename: str) -> int:
        return sum(
            1 for request in self.requests if self._split(request)[1] == filename
        )

    @staticmethod
    def _split(request: httpx.Request) -> Tuple[str, str]:
        bucket, filename = request.url.path.rsplit("/", 2)[-2:]
        return bucket, filename

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()

        bucket, filename = self._split(request)
        if filename in self.statuses:
            return httpx.Response(self.statuses[filename])

        content = self.files.get((bucket, filename))
        if content is None:
            return httpx.Response(404)

        if filename in self.broken:
            return httpx.Response(200, stream=_BrokenStream(content[:4]))

        headers = {"content-type": "application/octet-stream"}
        range_header = request.headers.get("range")
        if range_header and range_header.startswith("bytes="):
            start_text, _, end_text = range_header[6:].partition("-")
            start = int(start_text)
            end = int(end_text) if end_text else len(content) - 1
            headers["content-range"] = f"bytes {start}-{end}/{len(content)}"
            return httpx.Response(206, content=content[start : end + 1], headers=headers)

        return httpx.Response(200, content=content, headers=headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at temporary directories."""
    return Settings(
        _env_file=None,
        cache_dir=tmp_path / "cache",
        catalog_dir=tmp_path / "data",
        remote_base_url=REMOTE_BASE_URL,
        video_bucket="videos",
        image_bucket="images",
        cache_max_items=20,
        cache_target_items=15,
        critical_videos=["hero1.mp4"],
        preload_on_startup=False,
    )


@pytest.fixture
def fake_remote() -> FakeRemote:
    """Remote store holding one critical video, one gallery video and an image."""
    remote = FakeRemote()
    remote.add("videos", "hero1.mp4", b"hero-video-bytes" * 64)
    remote.add("videos", "gallery7.mp4", b"gallery-video-bytes" * 64)
    remote.add("images", "thumb.jpg", b"\xff\xd8\xff\xe0" + b"\x00" * 512)
    return remote


@pytest.fixture
def catalog() -> StaticContentCatalog:
    """Catalog with ``hero1.mp4`` critical and referenced, ``gallery7.mp4`` referenced."""
    return StaticContentCatalog(
        critical=["hero1.mp4"],
        assets=[
            CatalogAsset(filename="hero1.mp4", kind=AssetKind.VIDEO),
            CatalogAsset(filename="gallery7.mp4", kind=AssetKind.VIDEO),
        ],
    )


@pytest.fixture
async def manager(
    settings: Settings,
    fake_remote: FakeRemote,
    catalog: StaticContentCatalog,
) -> AsyncGenerator[MediaCacheManager, None]:
    """Media cache manager wired to the fake remote store."""
    media_cache = MediaCacheManager(
        MediaCacheConfig.from_settings(settings),
        catalog,
        build_remote_store(settings, fake_remote.transport),
    )
    try:
        yield media_cache
    finally:
        await media_cache.aclose()
