"""
Shared machinery for the synchronous, string-only storage tiers.

``NamespacedKeyStore`` owns the parts ``DurableKeyStore`` and
``SessionKeyStore`` have in common: key prefixing, JSON (de)serialization,
the payload size limit, and the rule that a failing backend never raises
into caller code. Subclasses decide what envelope (if any) wraps a value.
"""

import json
import logging
from typing import Any, Callable, TypeVar

from ..config.constants import MAX_DURABLE_PAYLOAD_BYTES
from .backends import StorageBackend

logger = logging.getLogger(__name__)

R = TypeVar("R")

_MISSING = object()


class NamespacedKeyStore:
    """Base class for a key/value tier sharing a backend with other data."""

    prefix = ""
    tier = "store"

    def __init__(
        self,
        backend: StorageBackend,
        max_payload_bytes: int | None = MAX_DURABLE_PAYLOAD_BYTES,
    ):
        self.backend = backend
        self.max_payload_bytes = max_payload_bytes

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------

    def _wrap(self, value: Any, ttl: float | None) -> Any:
        """Turn a caller value into the record that gets serialized."""
        return value

    def _unwrap(self, key: str, record: Any) -> Any:
        """Turn a parsed record back into the caller value, or _MISSING."""
        return record

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _storage_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _guard(self, operation: str, key: str, call: Callable[[], R], fallback: R) -> R:
        """Run a backend call, degrading to ``fallback`` on any failure."""
        try:
            return call()
        except Exception as e:
            logger.warning("%s %s failed for %r, degrading: %s", self.tier, operation, key, e)
            return fallback

    def _evict_malformed(self, key: str, reason: Exception) -> None:
        logger.warning("%s: discarding malformed record %r: %s", self.tier, key, reason)
        self._guard("evict", key, lambda: self.backend.remove_item(self._storage_key(key)), None)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """
        Serialize and store a value.

        Returns:
            True if the backend accepted the write, False if it was skipped
            (unserializable, too large, backend failure)
        """
        try:
            text = json.dumps(self._wrap(value, ttl), separators=(",", ":"))
        except (TypeError, ValueError) as e:
            logger.warning("%s: could not encode value for %r: %s", self.tier, key, e)
            return False

        size = len(text.encode("utf-8"))
        if self.max_payload_bytes is not None and size > self.max_payload_bytes:
            logger.warning(
                "%s: value for %r is too large to store (%d bytes > %d)",
                self.tier, key, size, self.max_payload_bytes,
            )
            return False

        def write() -> bool:
            self.backend.set_item(self._storage_key(key), text)
            return True

        return self._guard("write", key, write, False)

    def _read_record(self, key: str) -> Any:
        """Parsed record stored under ``key``, or _MISSING."""
        text = self._guard("read", key, lambda: self.backend.get_item(self._storage_key(key)), None)
        if text is None:
            return _MISSING

        try:
            return json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            self._evict_malformed(key, e)
            return _MISSING

    def get(self, key: str) -> Any:
        """Read a value, or None on miss (absent, malformed, expired, failure)."""
        record = self._read_record(key)
        if record is _MISSING:
            return None

        value = self._unwrap(key, record)
        if value is _MISSING:
            return None
        return value

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""

        def remove() -> bool:
            storage_key = self._storage_key(key)
            if self.backend.get_item(storage_key) is None:
                return False
            self.backend.remove_item(storage_key)
            return True

        return self._guard("delete", key, remove, False)

    def keys(self) -> list[str]:
        """Logical keys currently held in this tier's namespace."""
        raw = self._guard("list", "*", self.backend.keys, [])
        return [k[len(self.prefix):] for k in raw if k.startswith(self.prefix)]

    def clear(self) -> int:
        """Remove every key in this tier's namespace, leaving other data alone."""
        removed = 0
        for key in self.keys():
            if self.delete(key):
                removed += 1
        return removed
