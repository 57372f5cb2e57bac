"""FastAPI application for the reelcache media proxy and admin API."""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from reelcache import __version__
from reelcache.api.exception_handlers import register_exception_handlers
from reelcache.api.routers import cache, health, media
from reelcache.config.logging_config import configure_logging
from reelcache.config.settings import Settings, get_settings
from reelcache.exceptions import CatalogUnavailable
from reelcache.services.factory import build_media_cache
from reelcache.services.media_cache import MediaCacheManager

logger = logging.getLogger(__name__)


def _log_preload_outcome(task: "asyncio.Task[object]") -> None:
    if task.cancelled():
        logger.info("Startup preload cancelled")
        return
    exc = task.exception()
    if isinstance(exc, CatalogUnavailable):
        logger.error("Startup preload skipped: %s", exc.message)
    elif exc is not None:
        logger.error("Startup preload failed", exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown.

    Startup loads settings, configures logging, builds the media cache and
    kicks off the critical preload in the background so the server accepts
    requests immediately. Shutdown waits for in-flight downloads and closes
    the remote client and catalog.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app.state.settings = settings
    configure_logging(settings.log_level)

    manager: Optional[MediaCacheManager] = getattr(app.state, "media_cache", None)
    owns_manager = manager is None
    if manager is None:
        manager = build_media_cache(settings)
        app.state.media_cache = manager
    logger.info(
        "Media cache ready at %s (enabled=%s)", settings.cache_dir, manager.enabled
    )

    preload_task: Optional[asyncio.Task[object]] = None
    if settings.preload_on_startup and manager.enabled:
        preload_task = asyncio.create_task(manager.preload(), name="reelcache-preload")
        preload_task.add_done_callback(_log_preload_outcome)

    yield

    if preload_task is not None and not preload_task.done():
        preload_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await preload_task
    if owns_manager:
        await manager.aclose()
        app.state.media_cache = None


def _get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxied requests."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


async def log_requests(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """
    Middleware to log incoming requests and outgoing responses.

    Logs response status code and timing with a level matching the status:
    INFO for 2xx/3xx, WARNING for 4xx and ERROR for 5xx. Media responses
    include the ``X-Cache`` outcome.
    """
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path

    logger.debug("Request: %s %s from %s", method, path, _get_client_ip(request))

    response = await call_next(request)

    duration = time.perf_counter() - start_time
    status_code = response.status_code

    if status_code >= 500:
        log_level = logging.ERROR
    elif status_code >= 400:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    cache_outcome = response.headers.get("x-cache")
    if cache_outcome:
        logger.log(
            log_level,
            "Response: %s %s - %d [%s] (%.3fs)",
            method,
            path,
            status_code,
            cache_outcome,
            duration,
        )
    else:
        logger.log(
            log_level,
            "Response: %s %s - %d (%.3fs)",
            method,
            path,
            status_code,
            duration,
        )

    return response


def create_app(
    settings: Optional[Settings] = None,
    media_cache: Optional[MediaCacheManager] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Parameters
    ----------
    settings : Settings | None
        Settings to run with; loaded from the environment at startup if
        omitted.
    media_cache : MediaCacheManager | None
        Pre-built manager (tests); built from settings at startup if omitted.

    Returns
    -------
    FastAPI
        The configured application.
    """
    application = FastAPI(
        title="reelcache API",
        description="Local media cache and proxy for site videos and images",
        version=__version__,
        lifespan=lifespan,
    )
    application.state.settings = settings
    application.state.media_cache = media_cache

    application.middleware("http")(log_requests)
    register_exception_handlers(application)

    # Mount routers under /api/v1 prefix
    application.include_router(health.router, prefix="/api/v1", tags=["health"])
    application.include_router(media.router, prefix="/api/v1", tags=["media"])
    application.include_router(cache.router, prefix="/api/v1", tags=["cache"])
    return application


app = create_app()
