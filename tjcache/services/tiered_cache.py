"""
Fetch-through lookup across the cache tiers.

Call sites that load data from the backend go through ``get_or_fetch``:

1. the ephemeral cache,
2. the durable store, then the transactional store (a hit is copied into
   the ephemeral cache for whatever remains of its TTL, never longer),
3. the fetch callable, whose result is written back: always to the
   ephemeral cache, and to the durable store if the serialized payload is
   small enough, otherwise to the transactional store.

The tiers never raise into the caller. The fetch callable may: its errors
are the caller's business and are not cached.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable

from ..config.constants import LARGE_PAYLOAD_BYTES
from ..exceptions import BackendInitError
from ..storage.durable import DurableKeyStore
from ..storage.entry import CacheEntry
from ..storage.transactional import TransactionalStore
from .cache import EphemeralCache

logger = logging.getLogger(__name__)


def payload_size(value: Any) -> int | None:
    """Serialized size in bytes, or None if the value is not JSON-encodable."""
    try:
        return len(json.dumps(value, separators=(",", ":")).encode("utf-8"))
    except (TypeError, ValueError):
        return None


class TieredCache:
    """Ephemeral → durable/transactional → fetch."""

    def __init__(
        self,
        ephemeral: EphemeralCache,
        durable: DurableKeyStore | None = None,
        transactional: TransactionalStore | None = None,
        large_payload_bytes: int = LARGE_PAYLOAD_BYTES,
    ):
        self.ephemeral = ephemeral
        self.durable = durable
        self.transactional = transactional
        self.large_payload_bytes = large_payload_bytes
        self.fetch_count = 0

    def _transactional_ready(self) -> bool:
        return self.transactional is not None and self.transactional.available

    async def _transactional_get(self, key: str) -> CacheEntry | None:
        if not self._transactional_ready():
            return None
        try:
            return await self.transactional.get_entry(key)
        except BackendInitError:
            logger.info("Transactional tier unavailable, skipping it")
            return None

    async def _transactional_set(self, key: str, value: Any, ttl: float | None) -> bool:
        if not self._transactional_ready():
            return False
        try:
            return await self.transactional.set(key, value, ttl)
        except BackendInitError:
            logger.info("Transactional tier unavailable, skipping it")
            return False

    def _promote(self, key: str, entry: CacheEntry | None) -> Any:
        """Copy a lower-tier entry into the ephemeral tier for what is left of its TTL."""
        if entry is None:
            return None
        remaining = entry.remaining(self.ephemeral.clock())
        if remaining <= 0:
            return None
        self.ephemeral.set(key, entry.value, remaining)
        return entry.value

    async def lookup(self, key: str) -> Any:
        """Cached value from the fastest tier that has it, or None."""
        value = self.ephemeral.get(key)
        if value is not None:
            return value

        if self.durable is not None:
            value = self._promote(key, self.durable.get_entry(key))
            if value is not None:
                return value

        return self._promote(key, await self._transactional_get(key))

    async def store(self, key: str, value: Any, ttl: float | None = None) -> str:
        """
        Write a value to the ephemeral tier and the durable tier that fits it.

        Returns:
            Name of the durable tier used: "durable", "transactional" or
            "memory" when neither accepted it
        """
        self.ephemeral.set(key, value, ttl)

        size = payload_size(value)
        if size is None:
            return "memory"

        if size <= self.large_payload_bytes and self.durable is not None:
            if self.durable.set(key, value, ttl):
                return "durable"

        if await self._transactional_set(key, value, ttl):
            return "transactional"
        return "memory"

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        ttl: float | None = None,
    ) -> Any:
        """Cached value for ``key``, fetching and caching it on a miss."""
        value = await self.lookup(key)
        if value is not None:
            return value

        self.fetch_count += 1
        value = await fetch()
        if value is not None:
            tier = await self.store(key, value, ttl)
            logger.debug("Fetched %r and cached it in %s", key, tier)
        return value

    async def invalidate(self, key: str) -> None:
        """Remove ``key`` from every tier."""
        self.ephemeral.delete(key)
        if self.durable is not None:
            self.durable.delete(key)
        if self._transactional_ready():
            try:
                await self.transactional.delete(key)
            except BackendInitError:
                logger.info("Transactional tier unavailable, skipping it")
