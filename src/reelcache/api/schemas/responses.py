"""API response envelope schemas."""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from starlette.responses import JSONResponse


class ErrorCode(str, Enum):
    """Standardized error codes for API responses.

    4xx Client Errors:
        NOT_FOUND: Resource does not exist (404)
        BAD_REQUEST: Invalid request parameters (400)
        VALIDATION_ERROR: Request validation failed (422)

    5xx Server Errors:
        INTERNAL_ERROR: Unexpected server error (500)
        EXTERNAL_SERVICE_ERROR: Remote asset store unavailable (502)
        SERVICE_UNAVAILABLE: Service temporarily unavailable (503)
    """

    # 4xx Client Errors
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # 5xx Server Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


# RFC 7807 Constants and Utilities
ERROR_TYPE_BASE: str = "https://api.reelcache.dev/errors"
"""Base URI for constructing RFC 7807 type URIs."""


def get_error_type_uri(code: ErrorCode) -> str:
    """Generate RFC 7807 type URI from error code.

    Examples
    --------
    >>> get_error_type_uri(ErrorCode.NOT_FOUND)
    'https://api.reelcache.dev/errors/NOT_FOUND'
    """
    return f"{ERROR_TYPE_BASE}/{code.value}"


# RFC 7807 Error Title Mapping
ERROR_TITLES: dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "Resource Not Found",
    ErrorCode.BAD_REQUEST: "Bad Request",
    ErrorCode.VALIDATION_ERROR: "Validation Error",
    ErrorCode.INTERNAL_ERROR: "Internal Server Error",
    ErrorCode.EXTERNAL_SERVICE_ERROR: "External Service Error",
    ErrorCode.SERVICE_UNAVAILABLE: "Service Unavailable",
}
"""Mapping from ErrorCode to human-readable RFC 7807 title."""

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response for API errors.

    Attributes
    ----------
    type : str
        URI identifying the problem type.
    title : str
        Short human-readable summary of the problem type.
    status : int
        HTTP status code (4xx or 5xx).
    detail : str
        Human-readable explanation of the specific problem occurrence.
    instance : str
        URI reference of the specific occurrence.
    code : str
        Application-specific error code from ErrorCode enum.
    """

    type: str = Field(
        ...,
        description="URI identifying the problem type",
        examples=["https://api.reelcache.dev/errors/NOT_FOUND"],
    )
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., ge=400, le=599, description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation of the problem")
    instance: str = Field(
        ...,
        description="URI reference of the specific occurrence",
        examples=["/api/v1/media/videos/hero1.mp4"],
    )
    code: str = Field(..., description="Application-specific error code")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "https://api.reelcache.dev/errors/NOT_FOUND",
                "title": "Resource Not Found",
                "status": 404,
                "detail": "Video 'hero1.mp4' not found",
                "instance": "/api/v1/media/videos/hero1.mp4",
                "code": "NOT_FOUND",
            }
        }
    )


class ProblemJSONResponse(JSONResponse):
    """JSONResponse subclass for RFC 7807 Problem Details."""

    media_type = "application/problem+json"


class FieldError(BaseModel):
    """Individual field validation error for RFC 7807 validation responses.

    Attributes
    ----------
    loc : list[str | int]
        Location of the error as a field path (e.g., ["body", "filenames"]).
    msg : str
        Human-readable error message.
    type : str
        Error type identifier.
    """

    loc: list[str | int] = Field(
        ...,
        description="Location of the error (field path)",
        examples=[["body", "filenames"]],
    )
    msg: str = Field(..., description="Error message", examples=["Field required"])
    type: str = Field(..., description="Error type identifier", examples=["missing"])


class ValidationProblemDetail(ProblemDetail):
    """RFC 7807 Problem Details with validation errors for 422 responses."""

    errors: list[FieldError] = Field(
        ...,
        description="List of field-level validation errors",
    )
