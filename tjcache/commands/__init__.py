"""CLI command groups for tjcache."""
