"""
CLI interface module for reelcache.

Provides Typer-based command-line interface for running the API server and
administering the local media cache.
"""

from __future__ import annotations

__all__: list[str] = []
