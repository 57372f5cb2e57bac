"""FastAPI dependencies for API endpoints."""

from fastapi import Request

from reelcache.config.settings import Settings
from reelcache.exceptions import ServiceUnavailableError
from reelcache.services.media_cache import MediaCacheManager


def get_media_cache(request: Request) -> MediaCacheManager:
    """
    Dependency for the media cache manager.

    The manager is created by the application lifespan and stored on
    ``app.state``.

    Returns
    -------
    MediaCacheManager
        The application's cache manager.

    Raises
    ------
    ServiceUnavailableError
        If the application has not finished starting up.
    """
    manager = getattr(request.app.state, "media_cache", None)
    if manager is None:
        raise ServiceUnavailableError("Media cache is not initialized")
    return manager


def get_app_settings(request: Request) -> Settings:
    """Dependency for the settings the application was started with."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise ServiceUnavailableError("Application settings are not loaded")
    return settings
