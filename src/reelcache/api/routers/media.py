"""Media proxy endpoints.

Serves site videos and images from the local cache:

- GET /media/videos/{filename} - Serve a video (Range requests supported)
- GET /media/images/{filename} - Serve an image

A cached file is served from disk (``X-Cache: HIT``); an uncached file is
downloaded into the cache first (``X-Cache: MISS``). When the cache cannot
produce a local copy, the remote asset is streamed through unchanged
(``X-Cache: BYPASS``) or, if stream-through is disabled, a 502 is returned.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from starlette.background import BackgroundTask
from starlette.responses import FileResponse, Response, StreamingResponse

from reelcache.api.deps import get_app_settings, get_media_cache
from reelcache.config.settings import Settings
from reelcache.exceptions import CacheMiss, RemoteNotFound
from reelcache.models.enums import AssetKind
from reelcache.services.media_cache import MediaCacheManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"])

CACHE_CONTROL = "public, max-age=86400"

# Remote response headers forwarded on stream-through
_FORWARDED_HEADERS = (
    "content-type",
    "content-range",
    "accept-ranges",
    "etag",
    "last-modified",
)

_MEDIA_RESPONSES: dict[int | str, dict[str, object]] = {
    200: {"description": "Media bytes"},
    206: {"description": "Partial content for Range requests"},
    400: {"description": "Filename cannot be served"},
    404: {"description": "Asset not found in the remote store"},
    502: {"description": "Asset temporarily unavailable"},
}


async def _stream_from_remote(
    manager: MediaCacheManager,
    filename: str,
    kind: AssetKind,
    request: Request,
) -> StreamingResponse:
    """Proxy the remote asset without caching it."""
    upstream = await manager.remote.open_stream(
        filename, kind, range_header=request.headers.get("range")
    )
    headers = {
        name: upstream.headers[name]
        for name in _FORWARDED_HEADERS
        if name in upstream.headers
    }
    if "content-length" in upstream.headers and "content-encoding" not in upstream.headers:
        headers["content-length"] = upstream.headers["content-length"]
    headers["X-Cache"] = "BYPASS"

    return StreamingResponse(
        upstream.aiter_bytes(),
        status_code=upstream.status_code,
        headers=headers,
        background=BackgroundTask(upstream.aclose),
    )


async def serve_media(
    manager: MediaCacheManager,
    settings: Settings,
    filename: str,
    kind: AssetKind,
    request: Request,
) -> Response:
    """Serve *filename* from the cache, falling back to the remote store.

    Parameters
    ----------
    manager : MediaCacheManager
        The cache manager.
    settings : Settings
        Application settings (stream-through toggle).
    filename : str
        Requested asset filename.
    kind : AssetKind
        Video or image.
    request : Request
        Incoming request; its ``Range`` header is honoured.

    Returns
    -------
    Response
        ``FileResponse`` for local files, ``StreamingResponse`` on bypass.
    """
    store = manager.store(kind)
    hit = manager.enabled and await store.exists(filename)

    try:
        path = await manager.resolve(filename, kind)
        # An admin clear or refresh may have removed it since resolution.
        if not await store.exists(filename):
            logger.info("Cached %s %s vanished; fetching again", kind.value, filename)
            hit = False
            path = await manager.resolve(filename, kind)
    except RemoteNotFound:
        raise
    except CacheMiss as exc:
        if not settings.stream_through_on_miss:
            raise
        logger.info(
            "Streaming %s %s from remote store: %s", kind.value, filename, exc.message
        )
        return await _stream_from_remote(manager, filename, kind, request)

    return FileResponse(
        path,
        headers={
            "Cache-Control": CACHE_CONTROL,
            "X-Cache": "HIT" if hit else "MISS",
        },
    )


@router.get(
    "/media/videos/{filename}",
    responses=_MEDIA_RESPONSES,
    response_class=Response,
)
async def get_video(
    filename: str,
    request: Request,
    manager: MediaCacheManager = Depends(get_media_cache),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Serve a video from the local cache (supports Range requests)."""
    return await serve_media(manager, settings, filename, AssetKind.VIDEO, request)


@router.get(
    "/media/images/{filename}",
    responses=_MEDIA_RESPONSES,
    response_class=Response,
)
async def get_image(
    filename: str,
    request: Request,
    manager: MediaCacheManager = Depends(get_media_cache),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Serve an image from the local cache."""
    return await serve_media(manager, settings, filename, AssetKind.IMAGE, request)
