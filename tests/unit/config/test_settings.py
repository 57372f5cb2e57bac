"""
Tests for settings configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from reelcache.config.settings import Settings


def _settings(**overrides) -> Settings:  # type: ignore[no-untyped-def]
    return Settings(_env_file=None, **overrides)  # type: ignore[call-arg]


def test_settings_defaults():
    """Test default settings values."""
    settings = _settings()

    assert settings.app_name == "reelcache"
    assert settings.cache_max_bytes == 500 * 1024 * 1024
    assert settings.cache_max_items == 20
    assert settings.cache_target_items == 15
    assert settings.catalog_source == "json"
    assert settings.preload_on_startup is True
    assert settings.critical_videos == []


def test_cache_subdirectories():
    """Videos and images live in separate directories under the cache root."""
    settings = _settings(cache_dir=Path("/srv/cache"))

    assert settings.videos_dir == Path("/srv/cache/videos")
    assert settings.images_dir == Path("/srv/cache/images")


def test_settings_path_string_conversion():
    """Test path validation from string input."""
    settings = Settings.model_validate({"cache_dir": "./media"})

    assert isinstance(settings.cache_dir, Path)
    assert settings.cache_dir == Path("./media")


def test_critical_videos_from_environment(monkeypatch: pytest.MonkeyPatch):
    """Critical filenames are read as a comma-separated list."""
    monkeypatch.setenv("CRITICAL_VIDEOS", "hero1.mp4, hero2.mp4,,hero3.mp4 ")

    settings = _settings()

    assert settings.critical_videos == ["hero1.mp4", "hero2.mp4", "hero3.mp4"]


def test_critical_videos_list():
    """Test critical filenames passed as a list."""
    settings = _settings(critical_videos=["hero1.mp4"])

    assert settings.critical_videos == ["hero1.mp4"]


def test_log_level_is_normalized():
    """Test log level normalization."""
    assert _settings(log_level="debug").log_level == "DEBUG"


def test_log_level_validation():
    """Test log level validation."""
    with pytest.raises(ValueError, match="Invalid log level"):
        _settings(log_level="LOUD")


def test_catalog_source_validation():
    """Test catalog source validation."""
    assert _settings(catalog_source="Database").catalog_source == "database"
    with pytest.raises(ValueError, match="Invalid catalog source"):
        _settings(catalog_source="redis")


def test_remote_base_url_trailing_slash_removed():
    """Test remote base URL normalization."""
    settings = _settings(remote_base_url="https://storage.test/public/")

    assert settings.remote_base_url == "https://storage.test/public"


def test_target_items_above_max_items_rejected():
    """The eviction floor cannot exceed the ceiling."""
    with pytest.raises(ValidationError, match="cache_target_items"):
        _settings(cache_max_items=5, cache_target_items=10)


def test_non_positive_bounds_rejected():
    """Test cache bound validation."""
    with pytest.raises(ValidationError):
        _settings(cache_max_bytes=0)
    with pytest.raises(ValidationError):
        _settings(max_concurrent_fetches=0)
