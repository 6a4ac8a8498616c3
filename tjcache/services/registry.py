"""
Process-wide set of cache tiers.

The tiers are plain objects that can be constructed anywhere (tests build
their own). ``CacheRegistry`` is the one place the application builds them
from settings and hands them out, so their lifetime is explicit: created on
first ``instance()``, dropped by ``reset_instance()``.

Usage:
    registry = CacheRegistry.instance()
    stats = await registry.tiered().get_or_fetch("strategy_stats_7", load_stats)
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from ..config.settings import Settings
from ..storage.backends import JsonFileBackend, MemoryBackend
from ..storage.durable import DurableKeyStore
from ..storage.session import SessionKeyStore
from ..storage.transactional import TransactionalStore
from .cache import EphemeralCache
from .tiered_cache import TieredCache

logger = logging.getLogger(__name__)

TIER_NAMES = ("ephemeral", "durable", "session", "transactional")


class CacheRegistry:
    """Holds the ephemeral, durable, session and transactional tiers."""

    _instance: "CacheRegistry | None" = None
    _lock = threading.Lock()

    def __init__(
        self,
        ephemeral: EphemeralCache,
        durable: DurableKeyStore,
        session: SessionKeyStore,
        transactional: TransactionalStore | None = None,
    ):
        self.ephemeral = ephemeral
        self.durable = durable
        self.session = session
        self.transactional = transactional
        self._tiered: TieredCache | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheRegistry":
        """Build every tier from settings."""
        transactional = None
        if settings.transactional_enabled:
            transactional = TransactionalStore(settings.transactional_db_path, ttl=settings.default_ttl)

        registry = cls(
            ephemeral=EphemeralCache(
                ttl=settings.default_ttl, maxsize=settings.ephemeral_maxsize, name="ephemeral"
            ),
            durable=DurableKeyStore(JsonFileBackend(settings.durable_store_path), ttl=settings.default_ttl),
            session=SessionKeyStore(MemoryBackend()),
            transactional=transactional,
        )
        logger.debug("Built cache tiers under %s", settings.data_dir)
        return registry

    @classmethod
    def instance(cls) -> "CacheRegistry":
        """Get the process-wide registry, building it from the environment."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls.from_settings(Settings.from_env())
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the process-wide registry. Primarily for tests."""
        with cls._lock:
            cls._instance = None

    def tiered(self) -> TieredCache:
        """Fetch-through view over the tiers (built once)."""
        if self._tiered is None:
            self._tiered = TieredCache(self.ephemeral, self.durable, self.transactional)
        return self._tiered

    async def stats(self) -> dict[str, Any]:
        """Size and key listing per tier."""
        ephemeral = self.ephemeral.stats()
        durable_keys = self.durable.keys()
        session_keys = self.session.keys()
        result: dict[str, Any] = {
            "ephemeral": {**ephemeral, **self.ephemeral.metrics.to_dict()},
            "durable": {"size": len(durable_keys), "keys": durable_keys},
            "session": {"size": len(session_keys), "keys": session_keys},
        }

        if self.transactional is None:
            result["transactional"] = {"size": 0, "available": False}
        elif not self.transactional.available:
            result["transactional"] = {"size": 0, "available": False}
        else:
            try:
                size = await self.transactional.count()
            except Exception as e:
                logger.warning("Could not read transactional tier stats: %s", e)
                result["transactional"] = {"size": 0, "available": False}
            else:
                result["transactional"] = {"size": size, "available": True}
        return result

    async def clear(self, tier: str) -> int:
        """Clear one tier by name. Returns the number of entries removed."""
        if tier not in TIER_NAMES:
            raise KeyError(tier)
        if tier == "ephemeral":
            return self.ephemeral.clear()
        if tier == "durable":
            return self.durable.clear()
        if tier == "session":
            return self.session.clear()

        if self.transactional is None or not self.transactional.available:
            return 0
        try:
            return await self.transactional.clear()
        except Exception as e:
            logger.warning("Could not clear transactional tier: %s", e)
            return 0

    async def clear_all(self) -> dict[str, int]:
        """Clear every tier. Tiers are independent; each is cleared on its own."""
        return {name: await self.clear(name) for name in TIER_NAMES}

    async def cleanup(self) -> dict[str, int]:
        """Sweep expired entries out of the TTL tiers."""
        results = {
            "ephemeral": self.ephemeral.cleanup(),
            "durable": self.durable.cleanup(),
            "transactional": 0,
        }
        if self.transactional is not None and self.transactional.available:
            try:
                results["transactional"] = await self.transactional.cleanup()
            except Exception as e:
                logger.warning("Could not sweep transactional tier: %s", e)
        return results

    async def close(self) -> None:
        if self.transactional is not None:
            await self.transactional.close()
