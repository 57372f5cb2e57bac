"""
Database models for reelcache.

Only the columns the media cache reads are mapped: the media references of
hero videos and gallery items plus their ``is_active`` flags. The admin CMS
owns the full schema.
"""

from __future__ import annotations

import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class HeroVideo(Base):
    """Hero carousel video with one media reference per language."""

    __tablename__ = "hero_videos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title_en: Mapped[str] = mapped_column(String(255), nullable=False)
    title_fr: Mapped[Optional[str]] = mapped_column(String(255))

    # Media references (bare filename or storage URL)
    url_en: Mapped[Optional[str]] = mapped_column(String(500))
    url_fr: Mapped[Optional[str]] = mapped_column(String(500))

    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<HeroVideo(id={self.id}, url_en={self.url_en!r})>"


class GalleryItem(Base):
    """Gallery entry with a video and its thumbnail images."""

    __tablename__ = "gallery_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title_en: Mapped[str] = mapped_column(String(255), nullable=False)
    title_fr: Mapped[Optional[str]] = mapped_column(String(255))

    # Video references
    video_filename: Mapped[Optional[str]] = mapped_column(String(500))
    video_url_en: Mapped[Optional[str]] = mapped_column(String(500))
    video_url_fr: Mapped[Optional[str]] = mapped_column(String(500))

    # Image references
    image_url_en: Mapped[Optional[str]] = mapped_column(String(500))
    image_url_fr: Mapped[Optional[str]] = mapped_column(String(500))
    static_image_url: Mapped[Optional[str]] = mapped_column(String(500))

    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<GalleryItem(id={self.id}, title_en={self.title_en!r})>"
