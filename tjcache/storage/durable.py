"""Durable key store: survives restarts, entries expire by TTL."""

import logging
import time
from typing import Any, Callable

from ..config.constants import DEFAULT_TTL_SECONDS, DURABLE_KEY_PREFIX, MAX_DURABLE_PAYLOAD_BYTES
from .backends import StorageBackend
from .entry import CacheEntry
from .keystore import _MISSING, NamespacedKeyStore

logger = logging.getLogger(__name__)


class DurableKeyStore(NamespacedKeyStore):
    """
    Durable tier with the ``{value, createdAt, ttl}`` envelope.

    Keys are stored as ``cache_<key>``. Reads check liveness exactly like
    ``EphemeralCache`` and evict expired records on the way out.
    """

    prefix = DURABLE_KEY_PREFIX
    tier = "durable"

    def __init__(
        self,
        backend: StorageBackend,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_payload_bytes: int | None = MAX_DURABLE_PAYLOAD_BYTES,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(backend, max_payload_bytes=max_payload_bytes)
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock

    def _wrap(self, value: Any, ttl: float | None) -> Any:
        actual_ttl = ttl if ttl is not None else self.ttl
        if actual_ttl <= 0:
            raise ValueError("ttl must be positive")
        return CacheEntry(value=value, created_at=self._clock(), ttl=actual_ttl).to_record()

    def _live_entry(self, key: str, record: Any) -> Any:
        """The live entry a record holds, or _MISSING. Evicts what it rejects."""
        try:
            entry = CacheEntry.from_record(record)
        except ValueError as e:
            self._evict_malformed(key, e)
            return _MISSING

        if not entry.is_live(self._clock()):
            logger.debug("durable: %r expired", key)
            self._guard("evict", key, lambda: self.backend.remove_item(self._storage_key(key)), None)
            return _MISSING
        return entry

    def _unwrap(self, key: str, record: Any) -> Any:
        entry = self._live_entry(key, record)
        if entry is _MISSING:
            return _MISSING
        return entry.value

    def get_entry(self, key: str) -> CacheEntry | None:
        """The live entry for ``key`` with its write time and TTL, or None."""
        record = self._read_record(key)
        if record is _MISSING:
            return None
        entry = self._live_entry(key, record)
        if entry is _MISSING:
            return None
        return entry

    def cleanup(self) -> int:
        """Evict every expired or malformed record in the namespace."""
        before = len(self.keys())
        for key in self.keys():
            self.get(key)
        return before - len(self.keys())
