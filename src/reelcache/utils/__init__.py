"""
Utility functions for reelcache.
"""

from __future__ import annotations

from .formatting import format_size

__all__ = ["format_size"]
