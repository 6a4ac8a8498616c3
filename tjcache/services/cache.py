"""
In-process caching for tjcache.

The ephemeral tier is the fastest and least durable of the cache tiers: a
TTL-bounded key/value map that lives as long as the process does.

Expiry is lazy. No timer is scheduled per entry; liveness is checked when an
entry is read, and ``cleanup()`` sweeps everything that has gone stale.
"""

import inspect
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Generic, Hashable, TypeVar

from ..config.constants import DEFAULT_EPHEMERAL_MAXSIZE, DEFAULT_TTL_SECONDS
from ..storage.entry import CacheEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass
class CacheMetrics:
    """Counters for cache performance monitoring."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate as percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "hit_rate_percent": round(self.hit_rate, 2),
        }


class EphemeralCache(Generic[T]):
    """
    TTL cache with lazy expiry and optional LRU bound.

    Usage:
        cache = EphemeralCache[dict](ttl=300)
        cache.set("strategy_stats_42", {"win_rate": 0.61})
        cache.get("strategy_stats_42")  # -> {"win_rate": 0.61} or None

    ``None`` is the miss marker, so a stored ``None`` reads as a miss.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        maxsize: int | None = DEFAULT_EPHEMERAL_MAXSIZE,
        name: str = "ephemeral",
        clock: Clock = time.time,
    ):
        """
        Initialize the cache.

        Args:
            ttl: Default time-to-live in seconds
            maxsize: Maximum number of entries, or None for unbounded
            name: Name for identification in logs/stats
            clock: Time source returning epoch seconds
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self.maxsize = maxsize
        self.name = name
        self._clock = clock
        self._entries: OrderedDict[Hashable, CacheEntry[T]] = OrderedDict()
        self._lock = threading.RLock()
        self._metrics = CacheMetrics()

    def get(self, key: Hashable) -> T | None:
        """
        Get a live value, or None on miss.

        A non-live entry is removed as part of the read.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._metrics.misses += 1
                return None

            if not entry.is_live(self._clock()):
                del self._entries[key]
                self._metrics.expirations += 1
                self._metrics.misses += 1
                return None

            self._entries.move_to_end(key)
            self._metrics.hits += 1
            return entry.value

    def set(self, key: Hashable, value: T, ttl: float | None = None) -> None:
        """
        Store a value, fully replacing any previous entry for the key.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Optional TTL override in seconds
        """
        actual_ttl = ttl if ttl is not None else self.ttl
        if actual_ttl <= 0:
            raise ValueError("ttl must be positive")

        with self._lock:
            if key in self._entries:
                del self._entries[key]

            if self.maxsize is not None:
                while len(self._entries) >= self.maxsize:
                    evicted, _ = self._entries.popitem(last=False)
                    self._metrics.evictions += 1
                    logger.debug("%s: evicted %r", self.name, evicted)

            self._entries[key] = CacheEntry(
                value=value, created_at=self._clock(), ttl=actual_ttl
            )

    def delete(self, key: Hashable) -> bool:
        """Delete an entry. Returns True if one was present."""
        with self._lock:
            if key in self._entries:
                del self._entries[key]
                return True
            return False

    def clear(self, pattern: str | None = None) -> int:
        """
        Remove entries.

        Args:
            pattern: If given, only string keys containing it are removed

        Returns:
            Number of entries removed
        """
        with self._lock:
            if pattern is None:
                count = len(self._entries)
                self._entries.clear()
                return count

            doomed = [k for k in self._entries if isinstance(k, str) and pattern in k]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def cleanup(self) -> int:
        """
        Remove all non-live entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if not e.is_live(now)]
            for key in expired:
                del self._entries[key]
            self._metrics.expirations += len(expired)
            return len(expired)

    def stats(self) -> dict[str, Any]:
        """Size and keys of live entries (sweeps stale ones first)."""
        with self._lock:
            self.cleanup()
            return {"size": len(self._entries), "keys": list(self._entries.keys())}

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if not entry.is_live(self._clock()):
                del self._entries[key]
                self._metrics.expirations += 1
                return False
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    @property
    def metrics(self) -> CacheMetrics:
        return self._metrics


def memoize(
    cache: EphemeralCache,
    key_func: Callable[..., Hashable] | None = None,
    ttl: float | None = None,
) -> Callable:
    """
    Decorator caching a function's results in an EphemeralCache.

    Works for plain and ``async`` functions. ``None`` results are not cached.

    Usage:
        @memoize(cache, key_func=lambda sid: f"strategy_stats_{sid}", ttl=600)
        async def strategy_stats(strategy_id: str) -> dict:
            ...
    """

    def make_key(args: tuple, kwargs: dict) -> Hashable:
        if key_func:
            return key_func(*args, **kwargs)
        return (args, tuple(sorted(kwargs.items())))

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                key = make_key(args, kwargs)
                result = cache.get(key)
                if result is not None:
                    return result
                result = await func(*args, **kwargs)
                if result is not None:
                    cache.set(key, result, ttl)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            key = make_key(args, kwargs)
            result = cache.get(key)
            if result is not None:
                return result
            result = func(*args, **kwargs)
            if result is not None:
                cache.set(key, result, ttl)
            return result

        return wrapper

    return decorator
