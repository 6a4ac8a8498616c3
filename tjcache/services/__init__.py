"""Cache services: the ephemeral tier, fetch-through lookup and the tier registry."""

from .cache import CacheEntry, CacheMetrics, EphemeralCache, memoize
from .registry import CacheRegistry
from .tiered_cache import TieredCache

__all__ = [
    "CacheEntry",
    "CacheMetrics",
    "CacheRegistry",
    "EphemeralCache",
    "TieredCache",
    "memoize",
]
