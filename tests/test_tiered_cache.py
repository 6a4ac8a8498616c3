"""Tests for fetch-through lookup across the tiers."""

import pytest

from tjcache.services.cache import EphemeralCache
from tjcache.services.tiered_cache import TieredCache, payload_size
from tjcache.storage.transactional import TransactionalStore


def _fetcher(value, calls):
    async def fetch():
        calls.append(1)
        return value

    return fetch


class TestPayloadSize:
    def test_size_of_json(self):
        assert payload_size({"a": 1}) == len('{"a":1}')

    def test_unencodable(self):
        assert payload_size(object()) is None


@pytest.mark.asyncio
class TestTieredCache:
    """Tests for TieredCache."""

    async def test_miss_fetches_and_caches(self, durable, clock):
        tiered = TieredCache(EphemeralCache(clock=clock), durable)
        calls = []

        assert await tiered.get_or_fetch("strategy_stats_1", _fetcher({"pnl": 10}, calls)) == {"pnl": 10}
        assert await tiered.get_or_fetch("strategy_stats_1", _fetcher({"pnl": 99}, calls)) == {"pnl": 10}
        assert calls == [1]
        assert durable.get("strategy_stats_1") == {"pnl": 10}

    async def test_durable_hit_promoted_to_ephemeral(self, durable, clock):
        ephemeral = EphemeralCache(clock=clock)
        durable.set("k", "from-disk")
        tiered = TieredCache(ephemeral, durable)

        assert await tiered.lookup("k") == "from-disk"
        assert ephemeral.get("k") == "from-disk"

    async def test_large_payload_goes_to_transactional(self, durable, clock):
        transactional = TransactionalStore(":memory:", clock=clock)
        tiered = TieredCache(EphemeralCache(clock=clock), durable, transactional, large_payload_bytes=100)
        big = ["x" * 50 for _ in range(10)]

        assert await tiered.store("page", big) == "transactional"
        assert durable.get("page") is None
        assert await transactional.get("page") == big
        await transactional.close()

    async def test_small_payload_goes_to_durable(self, durable, clock):
        tiered = TieredCache(EphemeralCache(clock=clock), durable)
        assert await tiered.store("k", {"a": 1}) == "durable"

    async def test_unavailable_transactional_is_skipped(self, durable, clock, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        transactional = TransactionalStore(blocker / "cache.db", clock=clock)
        tiered = TieredCache(EphemeralCache(clock=clock), durable, transactional, large_payload_bytes=10)
        calls = []

        value = await tiered.get_or_fetch("big", _fetcher("y" * 100, calls))
        assert value == "y" * 100
        assert not transactional.available
        assert await tiered.get_or_fetch("big", _fetcher("z", calls)) == "y" * 100

    async def test_fetch_error_propagates_and_is_not_cached(self, durable, clock):
        tiered = TieredCache(EphemeralCache(clock=clock), durable)

        async def failing():
            raise ConnectionError("backend down")

        with pytest.raises(ConnectionError):
            await tiered.get_or_fetch("k", failing)
        assert await tiered.lookup("k") is None

    async def test_none_result_not_cached(self, durable, clock):
        tiered = TieredCache(EphemeralCache(clock=clock), durable)
        calls = []
        await tiered.get_or_fetch("k", _fetcher(None, calls))
        await tiered.get_or_fetch("k", _fetcher(None, calls))
        assert len(calls) == 2
        assert tiered.fetch_count == 2

    async def test_expired_entries_refetched(self, durable, clock):
        tiered = TieredCache(EphemeralCache(clock=clock), durable)
        calls = []
        await tiered.get_or_fetch("k", _fetcher(1, calls), ttl=1.0)
        clock.advance(1.1)
        await tiered.get_or_fetch("k", _fetcher(2, calls), ttl=1.0)
        assert len(calls) == 2

    async def test_invalidate_removes_everywhere(self, durable, clock):
        ephemeral = EphemeralCache(clock=clock)
        transactional = TransactionalStore(":memory:", clock=clock)
        tiered = TieredCache(ephemeral, durable, transactional)
        await tiered.store("k", 1)
        await transactional.set("k", 1)

        await tiered.invalidate("k")
        assert await tiered.lookup("k") is None
        await transactional.close()

    async def test_durable_promotion_keeps_remaining_ttl(self, durable, clock):
        ephemeral = EphemeralCache(ttl=300, clock=clock)
        tiered = TieredCache(ephemeral, durable)
        await tiered.store("k", {"a": 1}, ttl=1.0)
        ephemeral.clear()

        clock.advance(0.5)
        assert await tiered.lookup("k") == {"a": 1}
        assert "k" in ephemeral

        clock.advance(0.6)
        assert ephemeral.get("k") is None
        assert await tiered.lookup("k") is None

    async def test_transactional_promotion_keeps_remaining_ttl(self, durable, clock):
        ephemeral = EphemeralCache(ttl=300, clock=clock)
        transactional = TransactionalStore(":memory:", clock=clock)
        tiered = TieredCache(ephemeral, durable, transactional, large_payload_bytes=10)
        big = "x" * 50
        assert await tiered.store("page", big, ttl=2.0) == "transactional"
        ephemeral.clear()

        clock.advance(1.5)
        assert await tiered.lookup("page") == big
        clock.advance(0.6)
        assert ephemeral.get("page") is None
        assert await tiered.lookup("page") is None
        await transactional.close()
