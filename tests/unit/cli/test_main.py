"""
Tests for CLI main functionality.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import typer
from typer.testing import CliRunner

from reelcache import __version__
from reelcache.cli.main import app, main


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


def test_cli_version(runner):
    """Test version flag."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"reelcache v{__version__}" in result.stdout


def test_cli_version_command(runner):
    """Test explicit version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "reelcache" in result.stdout
    assert "Version" in result.stdout


def test_cli_help_lists_subcommands(runner):
    """Test help output."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "cache" in result.stdout
    assert "api" in result.stdout


def test_cache_help(runner):
    """Test cache subcommand help."""
    result = runner.invoke(app, ["cache", "--help"])
    assert result.exit_code == 0
    for command in ("preload", "refresh", "status", "clear", "purge", "force"):
        assert command in result.stdout


def test_cli_invalid_subcommand(runner):
    """Test an unknown subcommand."""
    result = runner.invoke(app, ["invalid-command"])
    assert result.exit_code == 2


def test_main_callback_without_subcommand():
    """The callback exits non-zero when no subcommand was given."""
    ctx = MagicMock()
    ctx.invoked_subcommand = None

    with pytest.raises(typer.Exit) as exc_info:
        main(ctx, version=False)

    assert exc_info.value.exit_code == 1
