"""Centralized exception handlers for FastAPI with RFC 7807 compliance.

Converts domain and API exceptions to RFC 7807 Problem Details so every
endpoint, media proxy and admin alike, reports errors in one format.

RFC 7807 Reference: https://tools.ietf.org/html/rfc7807
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from reelcache.api.schemas.responses import (
    ERROR_TITLES,
    ErrorCode,
    FieldError,
    ProblemDetail,
    ProblemJSONResponse,
    ValidationProblemDetail,
    get_error_type_uri,
)
from reelcache.exceptions import (
    APIError,
    CacheMiss,
    CatalogUnavailable,
    ExternalServiceError,
    InvalidFilename,
    RemoteNotFound,
)

logger = logging.getLogger(__name__)

MAX_DETAIL_LENGTH = 4096
"""Maximum allowed length for detail messages before truncation."""

TRUNCATION_SUFFIX = "... (truncated)"


# =============================================================================
# Helper Functions
# =============================================================================


def _truncate_detail(detail: str) -> str:
    """Truncate detail message if it exceeds maximum length."""
    if len(detail) <= MAX_DETAIL_LENGTH:
        return detail
    truncate_at = MAX_DETAIL_LENGTH - len(TRUNCATION_SUFFIX)
    return detail[:truncate_at] + TRUNCATION_SUFFIX


def problem_response(
    code: ErrorCode,
    status: int,
    detail: str,
    instance: str,
    headers: dict[str, str] | None = None,
) -> ProblemJSONResponse:
    """Build an RFC 7807 response.

    Parameters
    ----------
    code : ErrorCode
        The error code for the problem.
    status : int
        HTTP status code for the response.
    detail : str
        Human-readable explanation of the problem.
    instance : str
        URI reference of the specific occurrence.
    headers : dict[str, str] | None, optional
        Additional headers to include in the response.

    Returns
    -------
    ProblemJSONResponse
        RFC 7807 compliant JSON response.
    """
    problem = ProblemDetail(
        type=get_error_type_uri(code),
        title=ERROR_TITLES.get(code, "Error"),
        status=status,
        detail=_truncate_detail(detail),
        instance=instance,
        code=code.value,
    )
    return ProblemJSONResponse(
        content=problem.model_dump(),
        status_code=status,
        headers=headers,
    )


# =============================================================================
# Exception Handlers
# =============================================================================


async def api_error_handler(request: Request, exc: APIError) -> ProblemJSONResponse:
    """Handle APIError subclasses.

    For ExternalServiceError the detail is replaced with a generic message
    and the internal error is logged.
    """
    instance = str(request.url.path)

    if isinstance(exc, ExternalServiceError):
        logger.error(
            "External service error: %s (details=%s)",
            exc.message,
            exc.details,
        )
        return problem_response(
            code=exc.error_code,
            status=exc.status_code,
            detail="External service unavailable",
            instance=instance,
        )

    return problem_response(
        code=exc.error_code,
        status=exc.status_code,
        detail=exc.message,
        instance=instance,
    )


async def cache_miss_handler(request: Request, exc: CacheMiss) -> ProblemJSONResponse:
    """Handle a cache miss that escaped its endpoint.

    ``RemoteNotFound`` becomes 404; every other miss means the remote store
    or the local disk failed and becomes 502.
    """
    instance = str(request.url.path)

    if isinstance(exc, RemoteNotFound):
        return problem_response(
            code=ErrorCode.NOT_FOUND,
            status=404,
            detail=f"Asset '{exc.filename}' not found",
            instance=instance,
        )

    logger.warning("Cache miss for %s: %s", instance, exc.message)
    return problem_response(
        code=ErrorCode.EXTERNAL_SERVICE_ERROR,
        status=502,
        detail=f"Asset '{exc.filename}' is temporarily unavailable",
        instance=instance,
    )


async def invalid_filename_handler(
    request: Request, exc: InvalidFilename
) -> ProblemJSONResponse:
    """Handle filenames that cannot be cache keys (400)."""
    return problem_response(
        code=ErrorCode.BAD_REQUEST,
        status=400,
        detail=exc.message,
        instance=str(request.url.path),
    )


async def catalog_unavailable_handler(
    request: Request, exc: CatalogUnavailable
) -> ProblemJSONResponse:
    """Handle an unreadable content catalog (503)."""
    logger.error("Content catalog unavailable: %s", exc.message)
    return problem_response(
        code=ErrorCode.SERVICE_UNAVAILABLE,
        status=503,
        detail="Content catalog unavailable",
        instance=str(request.url.path),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> ProblemJSONResponse:
    """Handle Pydantic RequestValidationError and convert to RFC 7807 format."""
    errors = [
        FieldError(
            loc=list(error.get("loc", [])),
            msg=error.get("msg", ""),
            type=error.get("type", ""),
        )
        for error in exc.errors()
    ]

    validation_problem = ValidationProblemDetail(
        type=get_error_type_uri(ErrorCode.VALIDATION_ERROR),
        title=ERROR_TITLES[ErrorCode.VALIDATION_ERROR],
        status=422,
        detail="Request validation failed",
        instance=str(request.url.path),
        code=ErrorCode.VALIDATION_ERROR.value,
        errors=errors,
    )
    return ProblemJSONResponse(
        content=validation_problem.model_dump(),
        status_code=422,
    )


async def generic_error_handler(
    request: Request, exc: Exception
) -> ProblemJSONResponse:
    """Catch-all handler; internal details are logged, never exposed."""
    logger.exception("Unhandled exception: %s", exc)

    return problem_response(
        code=ErrorCode.INTERNAL_ERROR,
        status=500,
        detail="An unexpected error occurred",
        instance=str(request.url.path),
    )


# =============================================================================
# Handler Registration
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Parameters
    ----------
    app : FastAPI
        The FastAPI application instance.
    """
    app.add_exception_handler(APIError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(CacheMiss, cache_miss_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidFilename, invalid_filename_handler)  # type: ignore[arg-type]
    app.add_exception_handler(CatalogUnavailable, catalog_unavailable_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_error_handler)
