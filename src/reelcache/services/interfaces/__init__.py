"""
Service interfaces (ABCs) for the reelcache application.

These abstract base classes define contracts for service implementations,
enabling dependency injection, testing with mocks, and swappable implementations.
"""

from .content_catalog_interface import ContentCatalogInterface

__all__ = [
    "ContentCatalogInterface",
]
