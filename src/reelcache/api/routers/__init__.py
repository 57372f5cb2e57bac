"""API routers for reelcache."""
