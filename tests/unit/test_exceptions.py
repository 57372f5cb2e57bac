"""
Tests for custom exceptions.
"""

from __future__ import annotations

import pytest

from reelcache.api.schemas.responses import ErrorCode
from reelcache.exceptions import (
    BadRequestError,
    CacheDisabled,
    CacheMiss,
    CatalogUnavailable,
    DirectoryUnavailable,
    ExternalServiceError,
    InvalidFilename,
    NotFoundError,
    ReelcacheError,
    RemoteFetchFailed,
    RemoteNotFound,
    ServiceUnavailableError,
    WriteFailed,
)


class TestCacheExceptions:
    """Tests for the media cache exception hierarchy."""

    @pytest.mark.parametrize(
        "exc",
        [
            CacheDisabled("hero1.mp4"),
            RemoteFetchFailed("hero1.mp4", "timeout"),
            RemoteNotFound("hero1.mp4"),
            WriteFailed("hero1.mp4"),
        ],
    )
    def test_resolve_failures_are_cache_misses(self, exc: CacheMiss) -> None:
        assert isinstance(exc, CacheMiss)
        assert isinstance(exc, ReelcacheError)
        assert exc.filename == "hero1.mp4"

    def test_remote_fetch_failed_keeps_reason(self) -> None:
        exc = RemoteFetchFailed("gallery7.mp4", "status_503", status_code=503)

        assert exc.reason == "status_503"
        assert exc.status_code == 503
        assert "status_503" in exc.message

    def test_write_failed_includes_os_error(self) -> None:
        exc = WriteFailed("hero1.mp4", OSError("No space left on device"))

        assert exc.reason == "write_failed"
        assert "No space left on device" in exc.message

    def test_directory_unavailable_message(self) -> None:
        exc = DirectoryUnavailable("/srv/cache/videos", PermissionError("denied"))

        assert exc.directory == "/srv/cache/videos"
        assert "denied" in str(exc)

    def test_invalid_filename_is_not_a_cache_miss(self) -> None:
        assert not isinstance(InvalidFilename("../etc/passwd"), CacheMiss)

    def test_catalog_unavailable_keeps_source(self) -> None:
        original = ValueError("bad json")
        exc = CatalogUnavailable("data/hero-videos.json", original)

        assert exc.source == "data/hero-videos.json"
        assert exc.original_error is original


class TestAPIErrors:
    """Tests for API layer exceptions."""

    def test_not_found_error(self) -> None:
        exc = NotFoundError(resource_type="Asset", identifier="hero1.mp4", hint="Try refresh")

        assert exc.status_code == 404
        assert exc.error_code == ErrorCode.NOT_FOUND
        assert exc.message == "Asset 'hero1.mp4' not found. Try refresh"
        assert exc.details == {"resource_type": "Asset", "identifier": "hero1.mp4"}

    @pytest.mark.parametrize(
        ("exc", "status", "code"),
        [
            (BadRequestError("bad"), 400, ErrorCode.BAD_REQUEST),
            (ExternalServiceError("down"), 502, ErrorCode.EXTERNAL_SERVICE_ERROR),
            (ServiceUnavailableError("busy"), 503, ErrorCode.SERVICE_UNAVAILABLE),
        ],
    )
    def test_status_codes(self, exc, status, code) -> None:  # type: ignore[no-untyped-def]
        assert exc.status_code == status
        assert exc.error_code == code

    def test_to_problem_detail(self) -> None:
        problem = BadRequestError("bad range").to_problem_detail("/api/v1/cache/force")

        assert problem == {
            "type": "https://api.reelcache.dev/errors/BAD_REQUEST",
            "title": "Bad Request",
            "status": 400,
            "detail": "bad range",
            "instance": "/api/v1/cache/force",
            "code": "BAD_REQUEST",
        }
