"""Human-readable formatting helpers shared by the API and CLI."""

from __future__ import annotations


def format_size(size_bytes: int) -> str:
    """Convert bytes to human-readable format.

    Examples
    --------
    >>> format_size(512)
    '512 B'
    >>> format_size(5 * 1024 * 1024)
    '5.0 MB'
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
