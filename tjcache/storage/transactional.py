"""
Transactional store: the larger, asynchronous cache tier.

Backed by SQLite. The connection is opened lazily on first use and reused
for the life of the store; every operation is one transaction against the
``cache_entries`` table and runs on a worker thread via ``asyncio.to_thread``
so the event loop never blocks on disk. An ``asyncio.Lock`` serializes
transactions on the shared connection.

This tier is an optional accelerator. If it cannot be opened, ``init()``
raises ``BackendInitError`` and every later call raises the same error
without trying again; callers are expected to catch it and carry on
without the tier.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Callable

from ..config.constants import DEFAULT_TTL_SECONDS, TRANSACTIONAL_TABLE
from ..exceptions import BackendInitError
from .entry import CacheEntry

logger = logging.getLogger(__name__)


class TransactionalStore:
    """Async TTL key/value store over a single SQLite table."""

    def __init__(
        self,
        db_path: Path | str,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            db_path: SQLite database path, or ":memory:"
            ttl: Default time-to-live in seconds
            clock: Time source returning epoch seconds
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.db_path = str(db_path)
        self.ttl = ttl
        self._clock = clock
        self._conn: sqlite3.Connection | None = None
        self._init_error: BackendInitError | None = None
        self._init_lock: asyncio.Lock | None = None
        self._tx_lock: asyncio.Lock | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def available(self) -> bool:
        """False once initialization has failed."""
        return self._init_error is None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _open(self) -> sqlite3.Connection:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        try:
            with conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {TRANSACTIONAL_TABLE} (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        created_at REAL NOT NULL,
                        ttl REAL NOT NULL
                    )
                    """
                )
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    async def init(self) -> None:
        """
        Open the backend if it is not open yet.

        Raises:
            BackendInitError: If the database cannot be opened, now or on any
                earlier attempt
        """
        if self._init_error is not None:
            raise self._init_error
        if self._conn is not None:
            return

        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        async with self._init_lock:
            if self._init_error is not None:
                raise self._init_error
            if self._conn is not None:
                return
            try:
                self._conn = await asyncio.to_thread(self._open)
            except (sqlite3.Error, OSError) as e:
                self._init_error = BackendInitError(path=self.db_path, reason=str(e))
                logger.warning("Transactional store unavailable: %s", e)
                raise self._init_error from e
            logger.debug("Opened transactional store at %s", self.db_path)

    async def close(self) -> None:
        """Close the connection. A later call reopens it."""
        conn, self._conn = self._conn, None
        if conn is not None:
            await asyncio.to_thread(conn.close)

    async def _run(self, operation: str, key: str, func: Callable[[sqlite3.Connection], Any], fallback: Any) -> Any:
        """Run one transaction, degrading to ``fallback`` on SQLite errors."""
        await self.init()
        if self._tx_lock is None:
            self._tx_lock = asyncio.Lock()

        async with self._tx_lock:
            conn = self._conn
            if conn is None:
                return fallback

            def transaction() -> Any:
                with conn:
                    return func(conn)

            try:
                return await asyncio.to_thread(transaction)
            except sqlite3.Error as e:
                logger.warning("transactional %s failed for %r, degrading: %s", operation, key, e)
                return fallback

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """
        Store a value under ``key``, replacing any previous record.

        Returns:
            True if the record was written
        """
        actual_ttl = ttl if ttl is not None else self.ttl
        if actual_ttl <= 0:
            raise ValueError("ttl must be positive")
        try:
            text = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            logger.warning("transactional: could not encode value for %r: %s", key, e)
            return False
        created_at = self._clock()

        def write(conn: sqlite3.Connection) -> bool:
            conn.execute(
                f"INSERT OR REPLACE INTO {TRANSACTIONAL_TABLE} (key, value, created_at, ttl) "
                "VALUES (?, ?, ?, ?)",
                (key, text, created_at, actual_ttl),
            )
            return True

        return await self._run("write", key, write, False)

    async def get(self, key: str) -> Any:
        """Read a live value, or None. Expired and malformed records are deleted."""
        entry = await self.get_entry(key)
        if entry is None:
            return None
        return entry.value

    async def get_entry(self, key: str) -> CacheEntry | None:
        """The live entry for ``key`` with its write time and TTL, or None."""
        now = self._clock()

        def read(conn: sqlite3.Connection) -> CacheEntry | None:
            row = conn.execute(
                f"SELECT value, created_at, ttl FROM {TRANSACTIONAL_TABLE} WHERE key = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None

            text, created_at, ttl = row
            if now - created_at >= ttl:
                conn.execute(f"DELETE FROM {TRANSACTIONAL_TABLE} WHERE key = ?", (key,))
                logger.debug("transactional: %r expired", key)
                return None

            try:
                value = json.loads(text)
            except json.JSONDecodeError as e:
                conn.execute(f"DELETE FROM {TRANSACTIONAL_TABLE} WHERE key = ?", (key,))
                logger.warning("transactional: discarding malformed record %r: %s", key, e)
                return None
            return CacheEntry(value=value, created_at=created_at, ttl=ttl)

        return await self._run("read", key, read, None)

    async def delete(self, key: str) -> bool:
        """Delete a record. Returns True if one was present."""

        def remove(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(f"DELETE FROM {TRANSACTIONAL_TABLE} WHERE key = ?", (key,))
            return cursor.rowcount > 0

        return await self._run("delete", key, remove, False)

    async def clear(self) -> int:
        """Delete every record. Returns the number removed."""

        def remove_all(conn: sqlite3.Connection) -> int:
            return conn.execute(f"DELETE FROM {TRANSACTIONAL_TABLE}").rowcount

        return await self._run("clear", "*", remove_all, 0)

    async def cleanup(self) -> int:
        """Delete every expired record. Returns the number removed."""
        now = self._clock()

        def sweep(conn: sqlite3.Connection) -> int:
            return conn.execute(
                f"DELETE FROM {TRANSACTIONAL_TABLE} WHERE ? - created_at >= ttl", (now,)
            ).rowcount

        return await self._run("cleanup", "*", sweep, 0)

    async def count(self) -> int:
        """Number of stored records, live or not."""

        def count_rows(conn: sqlite3.Connection) -> int:
            return conn.execute(f"SELECT COUNT(*) FROM {TRANSACTIONAL_TABLE}").fetchone()[0]

        return await self._run("count", "*", count_rows, 0)
