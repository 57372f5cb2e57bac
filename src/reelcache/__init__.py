"""
reelcache - Local media cache for a remote object-storage bucket.

Keeps the site's hero videos and gallery media on local disk, in sync with
the content catalog, and serves them to the media proxy with low latency.
"""

from __future__ import annotations

__version__ = "1.0.0"
__author__ = "reelcache"
__email__ = "noreply@reelcache.dev"
__license__ = "MIT"

__all__ = ["__version__", "__author__", "__email__", "__license__"]
