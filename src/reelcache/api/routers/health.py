"""Health check endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict

from reelcache import __version__
from reelcache.api.schemas.responses import ApiResponse


class HealthStatus(BaseModel):
    """Application health status."""

    model_config = ConfigDict(strict=True)

    status: str  # "healthy", "degraded"
    version: str
    cache_enabled: bool  # False in passthrough mode
    timestamp: datetime


class HealthResponse(ApiResponse[HealthStatus]):
    """Response for health check endpoint."""

    pass


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Reports ``degraded`` while the media cache runs in passthrough mode;
    media is still served, straight from the remote store.
    """
    manager = getattr(request.app.state, "media_cache", None)
    cache_enabled = manager is not None and manager.enabled

    health_data = HealthStatus(
        status="healthy" if cache_enabled else "degraded",
        version=__version__,
        cache_enabled=cache_enabled,
        timestamp=datetime.now(timezone.utc),
    )
    return HealthResponse(data=health_data)
