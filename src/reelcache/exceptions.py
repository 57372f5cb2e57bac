"""
Custom exceptions for the reelcache application.

This module defines domain-specific exceptions for the media cache (directory,
remote fetch and write failures) and the API layer exceptions that are
rendered as RFC 7807 problem details.
"""

from __future__ import annotations

from typing import Any

from reelcache.api.schemas.responses import (
    ERROR_TITLES,
    ErrorCode,
    get_error_type_uri,
)


class ReelcacheError(Exception):
    """Base exception for all reelcache errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize ReelcacheError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        """
        self.message = message
        super().__init__(message)


# =============================================================================
# Media Cache Exceptions
# =============================================================================


class DirectoryUnavailable(ReelcacheError):
    """
    Exception raised when a cache directory cannot be created or used.

    Fatal to the cache, not to the process: the cache manager catches it at
    startup, logs it once and switches to pass-through mode.

    Attributes
    ----------
    message : str
        Human-readable error message.
    directory : str
        The directory that could not be prepared.
    original_error : Exception | None
        The underlying ``OSError``.
    """

    def __init__(
        self,
        directory: str,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize DirectoryUnavailable.

        Parameters
        ----------
        directory : str
            The directory that could not be prepared.
        original_error : Exception | None, optional
            The underlying exception (default: None).
        """
        self.directory = directory
        self.original_error = original_error
        message = f"Cache directory unavailable: {directory}"
        if original_error is not None:
            message += f" ({original_error})"
        super().__init__(message)


class InvalidFilename(ReelcacheError):
    """
    Exception raised for a filename that cannot be a cache key.

    Names containing path separators, parent references or a leading dot
    would escape the cache directory or collide with temp files.
    """

    def __init__(self, filename: str) -> None:
        """
        Initialize InvalidFilename.

        Parameters
        ----------
        filename : str
            The rejected filename.
        """
        self.filename = filename
        super().__init__(f"Invalid cache filename: {filename!r}")


class CacheMiss(ReelcacheError):
    """
    Base exception for a ``resolve()`` that could not produce a local file.

    The caller (media proxy) decides whether to stream from the remote store
    or return an error response.

    Attributes
    ----------
    message : str
        Human-readable error message.
    filename : str
        The requested filename.
    """

    def __init__(self, filename: str, message: str | None = None) -> None:
        """
        Initialize CacheMiss.

        Parameters
        ----------
        filename : str
            The requested filename.
        message : str | None, optional
            Human-readable error message.
        """
        self.filename = filename
        super().__init__(message or f"Cache miss for {filename}")


class CacheDisabled(CacheMiss):
    """Exception raised when the cache runs in pass-through mode."""

    def __init__(self, filename: str) -> None:
        super().__init__(filename, f"Cache disabled; cannot cache {filename}")


class RemoteFetchFailed(CacheMiss):
    """
    Exception raised when downloading from the remote asset store fails.

    Covers non-2xx statuses other than 404, transport errors and timeouts.
    Transient; the cache does not retry automatically.

    Attributes
    ----------
    status_code : int | None
        HTTP status returned by the remote store, if any.
    original_error : Exception | None
        The underlying transport exception, if any.
    """

    def __init__(
        self,
        filename: str,
        reason: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize RemoteFetchFailed.

        Parameters
        ----------
        filename : str
            The requested filename.
        reason : str
            Short machine-friendly reason (e.g. ``"timeout"``, ``"status_503"``).
        status_code : int | None, optional
            HTTP status from the remote store (default: None).
        original_error : Exception | None, optional
            The underlying exception (default: None).
        """
        self.reason = reason
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(filename, f"Remote fetch failed for {filename}: {reason}")


class RemoteNotFound(CacheMiss):
    """Exception raised when the remote asset store returns 404."""

    def __init__(self, filename: str, url: str | None = None) -> None:
        """
        Initialize RemoteNotFound.

        Parameters
        ----------
        filename : str
            The requested filename.
        url : str | None, optional
            The remote URL that returned 404 (default: None).
        """
        self.url = url
        self.reason = "not_found"
        super().__init__(filename, f"Remote asset not found: {filename}")


class WriteFailed(CacheMiss):
    """
    Exception raised when a downloaded asset cannot be written to disk.

    Treated as a fetch failure by callers; the partial file is always removed
    before this is raised.

    Attributes
    ----------
    original_error : Exception | None
        The underlying ``OSError``.
    """

    def __init__(
        self,
        filename: str,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize WriteFailed.

        Parameters
        ----------
        filename : str
            The filename being written.
        original_error : Exception | None, optional
            The underlying exception (default: None).
        """
        self.original_error = original_error
        self.reason = "write_failed"
        message = f"Failed to write cached file {filename}"
        if original_error is not None:
            message += f": {original_error}"
        super().__init__(filename, message)


class StaleEntryRemovalFailed(ReelcacheError):
    """
    Exception describing a stale entry that reconciliation could not delete.

    Logged and counted during ``refresh()``; never aborts the pass.
    """

    def __init__(self, filename: str, original_error: Exception | None = None) -> None:
        """
        Initialize StaleEntryRemovalFailed.

        Parameters
        ----------
        filename : str
            The stale filename.
        original_error : Exception | None, optional
            The underlying exception (default: None).
        """
        self.filename = filename
        self.original_error = original_error
        super().__init__(f"Failed to remove stale cache entry {filename}")


class CatalogUnavailable(ReelcacheError):
    """
    Exception raised when the content catalog cannot be queried.

    Preload and refresh cannot decide what to keep without the catalog, so
    they raise this instead of deleting anything.
    """

    def __init__(self, source: str, original_error: Exception | None = None) -> None:
        """
        Initialize CatalogUnavailable.

        Parameters
        ----------
        source : str
            Description of the catalog source (file path, database URL).
        original_error : Exception | None, optional
            The underlying exception (default: None).
        """
        self.source = source
        self.original_error = original_error
        super().__init__(f"Content catalog unavailable: {source}")


# =============================================================================
# API Layer Exceptions
# =============================================================================


class APIError(ReelcacheError):
    """Base exception for API layer errors.

    Attributes
    ----------
    status_code : int
        HTTP status code for the error response (default: 500).
    error_code : ErrorCode
        Machine-readable error code for API consumers.
    message : str
        Human-readable error message.
    details : dict[str, Any] | None
        Additional error context.
    """

    status_code: int = 500
    _error_code_value: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize APIError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        details : dict[str, Any] | None, optional
            Additional error context (default: None).
        """
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def error_code(self) -> ErrorCode:
        """Get the error code as an ErrorCode enum."""
        return ErrorCode(self._error_code_value)

    def to_problem_detail(self, instance: str) -> dict[str, Any]:
        """Convert to RFC 7807 Problem Detail dictionary.

        Parameters
        ----------
        instance : str
            URI reference of the specific occurrence
            (e.g. ``"/api/v1/media/videos/hero1.mp4"``).

        Returns
        -------
        dict[str, Any]
            Dictionary with RFC 7807 fields.
        """
        return {
            "type": get_error_type_uri(self.error_code),
            "title": ERROR_TITLES.get(self.error_code, "Error"),
            "status": self.status_code,
            "detail": self.message,
            "instance": instance,
            "code": self.error_code.value,
        }


class NotFoundError(APIError):
    """Resource not found (404).

    Examples
    --------
    >>> raise NotFoundError(resource_type="Video", identifier="hero1.mp4")
    """

    status_code: int = 404
    _error_code_value: str = "NOT_FOUND"

    def __init__(
        self,
        resource_type: str,
        identifier: str,
        hint: str | None = None,
    ) -> None:
        """
        Initialize NotFoundError.

        Parameters
        ----------
        resource_type : str
            The type of resource that was not found (e.g. "Video").
        identifier : str
            The identifier used to look up the resource.
        hint : str | None, optional
            Additional hint for the user (default: None).
        """
        self.resource_type = resource_type
        self.identifier = identifier
        message = f"{resource_type} '{identifier}' not found"
        if hint:
            message += f". {hint}"
        super().__init__(
            message=message,
            details={"resource_type": resource_type, "identifier": identifier},
        )


class BadRequestError(APIError):
    """Invalid request parameters (400)."""

    status_code: int = 400
    _error_code_value: str = "BAD_REQUEST"


class ExternalServiceError(APIError):
    """Remote asset store unavailable (502)."""

    status_code: int = 502
    _error_code_value: str = "EXTERNAL_SERVICE_ERROR"


class ServiceUnavailableError(APIError):
    """Service temporarily unavailable (503)."""

    status_code: int = 503
    _error_code_value: str = "SERVICE_UNAVAILABLE"


# Exit codes for CLI integration
EXIT_CODE_SUCCESS = 0
EXIT_CODE_GENERAL_ERROR = 1
EXIT_CODE_INVALID_ARGS = 2
EXIT_CODE_INTERRUPTED = 130  # Standard Unix signal interrupt exit code
