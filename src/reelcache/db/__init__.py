"""
Database module for reelcache.

Contains the read-side SQLAlchemy models for the content records that
reference cached media (hero videos and gallery items).
"""

from __future__ import annotations

from reelcache.db.models import Base, GalleryItem, HeroVideo

__all__: list[str] = ["Base", "GalleryItem", "HeroVideo"]
