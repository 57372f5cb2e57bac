"""CLI command groups for reelcache."""
