"""
Data models for reelcache.
"""

from __future__ import annotations

from .catalog import CatalogAsset
from .enums import AssetKind

__all__ = ["AssetKind", "CatalogAsset"]
