"""HTTP API for reelcache: media proxy and cache administration endpoints."""
