"""Unit tests for API exception handlers.

Tests that domain and API exceptions are rendered as RFC 7807 problem
details with the right status codes.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from reelcache.api.exception_handlers import (
    MAX_DETAIL_LENGTH,
    TRUNCATION_SUFFIX,
    _truncate_detail,
    register_exception_handlers,
)
from reelcache.exceptions import (
    CatalogUnavailable,
    ExternalServiceError,
    InvalidFilename,
    NotFoundError,
    RemoteFetchFailed,
    RemoteNotFound,
    WriteFailed,
)

pytestmark = pytest.mark.asyncio


def _app_raising(exc: Exception) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/test")
    async def raise_error() -> None:
        raise exc

    return app


async def _get(app: FastAPI):  # type: ignore[no-untyped-def]
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/test")


class TestDomainExceptions:
    """Cache exceptions that escape an endpoint."""

    async def test_remote_not_found_returns_404(self) -> None:
        response = await _get(_app_raising(RemoteNotFound("hero1.mp4")))

        assert response.status_code == 404
        assert response.headers["content-type"] == "application/problem+json"
        body = response.json()
        assert body["code"] == "NOT_FOUND"
        assert body["instance"] == "/test"
        assert "hero1.mp4" in body["detail"]

    @pytest.mark.parametrize(
        "exc",
        [RemoteFetchFailed("hero1.mp4", "timeout"), WriteFailed("hero1.mp4")],
    )
    async def test_other_misses_return_502(self, exc: Exception) -> None:
        response = await _get(_app_raising(exc))

        assert response.status_code == 502
        assert response.json()["code"] == "EXTERNAL_SERVICE_ERROR"

    async def test_invalid_filename_returns_400(self) -> None:
        response = await _get(_app_raising(InvalidFilename("../secret")))

        assert response.status_code == 400
        assert response.json()["code"] == "BAD_REQUEST"

    async def test_catalog_unavailable_hides_source(self) -> None:
        response = await _get(
            _app_raising(CatalogUnavailable("postgresql://user:secret@db/site"))
        )

        assert response.status_code == 503
        assert "secret" not in response.json()["detail"]


class TestAPIErrors:
    """APIError subclasses and the catch-all handler."""

    async def test_not_found_error(self) -> None:
        response = await _get(
            _app_raising(NotFoundError(resource_type="Asset", identifier="x.mp4"))
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Asset 'x.mp4' not found"

    async def test_external_service_detail_is_generic(self) -> None:
        response = await _get(
            _app_raising(ExternalServiceError("connect to 10.0.0.5 refused"))
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "External service unavailable"

    async def test_unhandled_exception_returns_500(self) -> None:
        response = await _get(_app_raising(RuntimeError("boom")))

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "boom" not in body["detail"]


def test_truncate_detail() -> None:
    assert _truncate_detail("short") == "short"

    truncated = _truncate_detail("x" * (MAX_DETAIL_LENGTH + 10))

    assert len(truncated) == MAX_DETAIL_LENGTH
    assert truncated.endswith(TRUNCATION_SUFFIX)
