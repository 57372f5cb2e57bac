"""
Application settings and configuration management.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode

from reelcache import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="reelcache")
    app_version: str = Field(default=__version__)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Storage
    cache_dir: Path = Field(default=Path("./cache"))
    catalog_dir: Path = Field(default=Path("./data"))

    # Remote asset store
    remote_base_url: str = Field(
        default="https://storage.example.com/storage/v1/object/public"
    )
    video_bucket: str = Field(default="media-videos")
    image_bucket: str = Field(default="media-images")
    remote_timeout: float = Field(default=30.0, gt=0)
    user_agent: str = Field(default=f"reelcache/{__version__} (+media cache)")

    # Cache bounds
    cache_max_bytes: int = Field(default=500 * 1024 * 1024, gt=0)
    cache_max_items: int = Field(default=20, gt=0)
    cache_target_items: int = Field(default=15, ge=0)
    max_concurrent_fetches: int = Field(default=4, gt=0)

    # Population
    critical_videos: Annotated[list[str], NoDecode] = Field(default_factory=list)
    preload_on_startup: bool = Field(default=True)
    stream_through_on_miss: bool = Field(default=True)

    # Content catalog
    catalog_source: str = Field(default="json")
    database_url: str = Field(default="sqlite+aiosqlite:///./data/reelcache.db")
    db_log_queries: bool = Field(default=False)

    @field_validator("critical_videos", mode="before")
    @classmethod
    def parse_critical_videos(cls, v: str | list[str]) -> list[str]:
        """Parse critical filenames from comma-separated string or list."""
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v

    @field_validator("cache_dir", "catalog_dir", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Ensure directory paths are Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("catalog_source")
    @classmethod
    def validate_catalog_source(cls, v: str) -> str:
        """Validate catalog source."""
        valid_sources = ["json", "database"]
        if v.lower() not in valid_sources:
            raise ValueError(f"Invalid catalog source: {v}")
        return v.lower()

    @field_validator("remote_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the remote base URL."""
        return v.rstrip("/")

    @model_validator(mode="after")
    def check_cache_bounds(self) -> Settings:
        """The eviction floor must sit at or below the ceiling."""
        if self.cache_target_items > self.cache_max_items:
            raise ValueError(
                "cache_target_items must be less than or equal to cache_max_items"
            )
        return self

    @property
    def videos_dir(self) -> Path:
        """Directory holding cached videos."""
        return self.cache_dir / "videos"

    @property
    def images_dir(self) -> Path:
        """Directory holding cached images."""
        return self.cache_dir / "images"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
