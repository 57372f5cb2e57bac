"""
Enums for reelcache models.
"""

from __future__ import annotations

from enum import Enum


class AssetKind(str, Enum):
    """Kind of media asset; selects the cache directory and remote bucket."""

    VIDEO = "video"
    IMAGE = "image"

    @property
    def directory_name(self) -> str:
        """Name of the cache subdirectory for this kind."""
        return f"{self.value}s"
