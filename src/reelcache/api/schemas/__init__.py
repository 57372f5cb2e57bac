"""API schema exports."""

from reelcache.api.schemas.cache import (
    CacheStatusRequest,
    ForceCacheRequest,
)
from reelcache.api.schemas.responses import (
    ApiResponse,
    ErrorCode,
    ProblemDetail,
    ProblemJSONResponse,
)

__all__ = [
    "ApiResponse",
    "CacheStatusRequest",
    "ErrorCode",
    "ForceCacheRequest",
    "ProblemDetail",
    "ProblemJSONResponse",
]
