"""Cache administration API schemas.

Request bodies for the admin endpoints that inspect and control the local
media cache. Response payloads reuse the service-level models.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from reelcache.models.enums import AssetKind


class CacheStatusRequest(BaseModel):
    """Filenames whose cache coverage should be reported."""

    model_config = ConfigDict(extra="forbid")

    filenames: List[str] = Field(
        ...,
        max_length=500,
        description="Filenames to look up",
        examples=[["hero1.mp4", "gallery7.mp4"]],
    )
    kind: Optional[AssetKind] = Field(
        default=None,
        description="Restrict the lookup to videos or images",
    )


class ForceCacheRequest(BaseModel):
    """A single asset to (re)download into the cache."""

    model_config = ConfigDict(extra="forbid")

    filename: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Asset filename",
        examples=["hero1.mp4"],
    )
    kind: AssetKind = Field(default=AssetKind.VIDEO, description="Asset kind")
