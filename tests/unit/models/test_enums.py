"""
Tests for model enums.
"""

from __future__ import annotations

import pytest

from reelcache.models.enums import AssetKind


class TestAssetKind:
    """Tests for AssetKind."""

    def test_values(self):
        assert AssetKind.VIDEO.value == "video"
        assert AssetKind.IMAGE.value == "image"

    @pytest.mark.parametrize(
        ("kind", "directory"),
        [(AssetKind.VIDEO, "videos"), (AssetKind.IMAGE, "images")],
    )
    def test_directory_name(self, kind, directory):
        assert kind.directory_name == directory

    def test_from_string(self):
        assert AssetKind("image") is AssetKind.IMAGE
        with pytest.raises(ValueError):
            AssetKind("audio")
