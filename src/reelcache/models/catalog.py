"""
Content catalog models.

Defines the Pydantic model describing one asset referenced by an active
content record, plus the helper that turns a stored media reference (bare
filename or full storage URL) into the cache's filename key.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import unquote, urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import AssetKind


def asset_filename(reference: Optional[str]) -> Optional[str]:
    """Extract the cache filename from a media reference.

    Content records store either a bare filename (``hero1.mp4``) or a full
    public storage URL. The cache key is the last path segment, URL-decoded,
    without any query string or fragment.

    Parameters
    ----------
    reference : str | None
        Filename or URL as stored on the content record.

    Returns
    -------
    str | None
        The filename, or ``None`` if the reference is empty.

    Examples
    --------
    >>> asset_filename("https://cdn.example.com/bucket/My%20Clip.mp4?v=3")
    'My Clip.mp4'
    >>> asset_filename("hero1.mp4")
    'hero1.mp4'
    """
    if reference is None:
        return None
    reference = reference.strip()
    if not reference:
        return None

    path = urlsplit(reference).path
    name = unquote(path.rsplit("/", 1)[-1])
    return name or None


class CatalogAsset(BaseModel):
    """An asset filename referenced by an active content record."""

    filename: str = Field(..., min_length=1, description="Original asset filename")
    kind: AssetKind = Field(..., description="Asset kind (video or image)")

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Strip any query string from the filename."""
        name = v.split("?", 1)[0].strip()
        if not name:
            raise ValueError("Filename cannot be empty")
        return name

    model_config = ConfigDict(frozen=True)
