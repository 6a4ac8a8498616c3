"""
String-only key/value backends for the synchronous storage tiers.

A backend is the raw store underneath ``DurableKeyStore`` and
``SessionKeyStore``. Backends are allowed to fail (disabled, full, disk
errors); the stores wrapping them are the ones that must not.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from ..exceptions import StorageQuotaExceededError, StorageUnavailableError

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Synchronous string-to-string key/value store."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryBackend:
    """Dict-backed backend.

    Scoped to the process, so it stands in for tab-scoped session storage.
    ``quota_bytes`` bounds the summed size of keys and values; ``enabled=False``
    makes every call fail the way a disabled browser store does.
    """

    def __init__(self, quota_bytes: int | None = None, enabled: bool = True):
        self.quota_bytes = quota_bytes
        self.enabled = enabled
        self._items: dict[str, str] = {}

    def _check_enabled(self) -> None:
        if not self.enabled:
            raise StorageUnavailableError("Memory backend disabled")

    def _used_bytes(self, excluding: str | None = None) -> int:
        return sum(
            len(k.encode()) + len(v.encode())
            for k, v in self._items.items()
            if k != excluding
        )

    def get_item(self, key: str) -> str | None:
        self._check_enabled()
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_enabled()
        if self.quota_bytes is not None:
            needed = self._used_bytes(excluding=key) + len(key.encode()) + len(value.encode())
            if needed > self.quota_bytes:
                raise StorageQuotaExceededError(quota_bytes=self.quota_bytes, key=key)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._check_enabled()
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        self._check_enabled()
        return list(self._items)


class JsonFileBackend:
    """Backend persisted as a single JSON object on disk.

    Survives process restarts, which makes it the durable tier's backend.
    The file is loaded once and every write replaces it atomically. A
    corrupt file is treated as empty and overwritten on the next write.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._items: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._items is not None:
            return self._items

        items: dict[str, str] = {}
        if self.path.exists():
            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.warning("Durable store file %s is corrupt, starting empty", self.path)
                raw = {}
            if isinstance(raw, dict):
                items = {k: v for k, v in raw.items() if isinstance(v, str)}
        self._items = items
        return items

    def _flush(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".tjcache-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = dict(self._load())
        items[key] = value
        self._flush(items)
        self._items = items

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key not in items:
            return
        items = dict(items)
        del items[key]
        self._flush(items)
        self._items = items

    def keys(self) -> list[str]:
        return list(self._load())

    def reload(self) -> None:
        """Drop the in-memory copy so the next call re-reads the file."""
        self._items = None
