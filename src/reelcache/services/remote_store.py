"""
HTTP client for the remote asset store.

Assets live in public storage buckets addressed by filename:
``GET {base_url}/{bucket}/{urlencoded-filename}``. A 200 (or 206 for range
requests) yields a body stream, 404 maps to ``RemoteNotFound`` and anything
else, including transport errors and timeouts, maps to
``RemoteFetchFailed``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import quote

import httpx

from reelcache.exceptions import RemoteFetchFailed, RemoteNotFound
from reelcache.models.enums import AssetKind

logger = logging.getLogger(__name__)

# Streaming chunk size for downloads: 1 MB
CHUNK_SIZE = 1024 * 1024


class RemoteAssetStore:
    """Async client for the object-storage buckets behind the cache.

    Parameters
    ----------
    base_url : str
        Storage endpoint up to (excluding) the bucket name.
    buckets : Mapping[AssetKind, str]
        Bucket name per asset kind.
    timeout : float
        Request timeout in seconds.
    user_agent : str
        Descriptive ``User-Agent`` sent with every request.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        buckets: Mapping[AssetKind, str],
        *,
        timeout: float = 30.0,
        user_agent: str = "reelcache",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._buckets = dict(buckets)
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    def url_for(self, filename: str, kind: AssetKind) -> str:
        """Build the public URL for an asset."""
        bucket = self._buckets[kind]
        return f"{self._base_url}/{bucket}/{quote(filename, safe='')}"

    async def open_stream(
        self,
        filename: str,
        kind: AssetKind,
        *,
        range_header: Optional[str] = None,
    ) -> httpx.Response:
        """Send the GET and return the response with its body unread.

        The caller owns the response and must ``aclose()`` it.

        Raises
        ------
        RemoteNotFound
            If the store answers 404.
        RemoteFetchFailed
            On any other non-2xx status, transport error or timeout.
        """
        url = self.url_for(filename, kind)
        headers = {"Range": range_header} if range_header else None
        request = self._client.build_request("GET", url, headers=headers)

        try:
            response = await self._client.send(request, stream=True)
        except httpx.TimeoutException as exc:
            logger.warning("Timeout fetching remote asset: %s", url)
            raise RemoteFetchFailed(filename, "timeout", original_error=exc) from exc
        except httpx.HTTPError as exc:
            logger.warning("HTTP error fetching remote asset %s: %s", url, exc)
            raise RemoteFetchFailed(
                filename, f"http_error: {exc}", original_error=exc
            ) from exc

        status_code = response.status_code
        if status_code == 404:
            await response.aclose()
            logger.info("Remote asset not found (404): %s", url)
            raise RemoteNotFound(filename, url)
        if not 200 <= status_code < 300:
            await response.aclose()
            logger.warning("Unexpected status %d fetching %s", status_code, url)
            raise RemoteFetchFailed(
                filename, f"status_{status_code}", status_code=status_code
            )
        return response

    @asynccontextmanager
    async def open(
        self,
        filename: str,
        kind: AssetKind,
    ) -> AsyncIterator[httpx.Response]:
        """Context-managed variant of ``open_stream``."""
        response = await self.open_stream(filename, kind)
        try:
            yield response
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
