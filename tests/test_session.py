"""Tests for FilterPersistence and FilterSession wiring."""

import asyncio

import pytest

from tjcache.config.settings import Settings
from tjcache.state.actions import ClearFilters, LoadFromStore, SetFilter
from tjcache.state.filters import DEFAULT_FILTERS, FilterOptions
from tjcache.sync.address import AddressBar
from tjcache.sync.session import FilterSession

FAST = {
    "durable_delay": 0.03,
    "address_delay": 0.05,
    "durable_max_wait": None,
    "address_max_wait": None,
}


class TestFilterPersistence:
    def test_save_and_load(self, persistence):
        filters = FilterOptions(symbol="AAPL", emotional_states=("FOMO",))
        assert persistence.save(filters) is True
        assert persistence.load() == filters

    def test_load_missing(self, persistence):
        assert persistence.load() is None

    def test_stale_layout_loads_with_defaults(self, persistence, durable):
        durable.set("filter_state", {"symbol": "tsla", "sortBy": "legacy", "market": "bonds"})
        assert persistence.load() == FilterOptions(symbol="TSLA")

    def test_non_mapping_record_discarded(self, persistence, durable):
        durable.set("filter_state", ["not", "filters"])
        assert persistence.load() is None
        assert durable.get("filter_state") is None

    def test_record_expires(self, persistence, clock):
        persistence.save(FilterOptions(symbol="AAPL"))
        clock.advance(31 * 24 * 3600)
        assert persistence.load() is None

    def test_clear(self, persistence):
        persistence.save(FilterOptions(symbol="AAPL"))
        assert persistence.clear() is True
        assert persistence.load() is None


class TestSeeding:
    """The address wins over the durable record, which wins over defaults."""

    def test_address_first(self, persistence):
        persistence.save(FilterOptions(symbol="STORED"))
        session = FilterSession(AddressBar("?symbol=LINKED&side=Buy"), persistence, **FAST)
        state = session.open()
        assert state.filters == FilterOptions(symbol="LINKED", side="Buy")
        assert session.seed_source == "address"
        session.close()

    def test_durable_when_address_empty(self, persistence):
        persistence.save(FilterOptions(symbol="STORED"))
        session = FilterSession(AddressBar("?utm_source=mail"), persistence, **FAST)
        assert session.open().filters.symbol == "STORED"
        assert session.seed_source == "store"
        session.close()

    def test_defaults_when_nothing_stored(self, persistence):
        session = FilterSession(AddressBar(), persistence, **FAST)
        assert session.open().filters == DEFAULT_FILTERS
        assert session.seed_source == "defaults"
        session.close()

    def test_seeding_does_not_write_back(self, persistence):
        bar = AddressBar()
        persistence.save(FilterOptions(symbol="STORED"))
        with FilterSession(bar, persistence, **FAST) as session:
            assert not session.synchronizer.pending
        assert bar.query == ""

    def test_load_after_open_ignored(self, persistence):
        with FilterSession(AddressBar(), persistence, **FAST) as session:
            session.dispatch(LoadFromStore(FilterOptions(symbol="LATE")))
            assert session.state.filters.symbol == ""

    def test_sync_session_writes_changes(self, persistence):
        bar = AddressBar()
        with FilterSession(bar, persistence, **FAST) as session:
            session.dispatch(SetFilter("symbol", "AAPL"))
            assert persistence.load().symbol == "AAPL"
            assert bar.query == "symbol=AAPL"

    def test_cannot_reopen_closed_session(self, persistence):
        session = FilterSession(AddressBar(), persistence, **FAST)
        session.open()
        session.close()
        with pytest.raises(RuntimeError):
            session.open()


@pytest.mark.asyncio
class TestFilterSession:
    """Tests for projection and teardown."""

    async def test_changes_projected_to_store_and_address(self, persistence):
        bar = AddressBar()
        async with FilterSession(bar, persistence, **FAST) as session:
            session.dispatch(SetFilter("symbol", "AAPL"))
            session.dispatch(SetFilter("pnl_filter", "profitable"))
            await asyncio.sleep(0.1)

        assert persistence.load() == FilterOptions(symbol="AAPL", pnl_filter="profitable")
        assert bar.query == "symbol=AAPL&pnlFilter=profitable"
        assert bar.replace_count == 1

    async def test_clear_projects_empty_address(self, persistence):
        bar = AddressBar("?symbol=AAPL")
        async with FilterSession(bar, persistence, **FAST) as session:
            session.dispatch(ClearFilters())
            await asyncio.sleep(0.1)
        assert bar.query == ""
        assert persistence.load() == DEFAULT_FILTERS

    async def test_navigation_updates_state(self, persistence):
        bar = AddressBar("?symbol=AAPL")
        async with FilterSession(bar, persistence, **FAST) as session:
            bar.navigate("?symbol=AAPL&side=Sell")
            assert session.state.filters == FilterOptions(symbol="AAPL", side="Sell")
            bar.navigate("")
            assert session.state.filters == DEFAULT_FILTERS

    async def test_close_unsubscribes_and_cancels(self, persistence):
        bar = AddressBar()
        session = FilterSession(bar, persistence, **FAST)
        session.open()
        session.dispatch(SetFilter("symbol", "AAPL"))
        session.close()
        session.close()

        await asyncio.sleep(0.1)
        assert persistence.load() is None
        assert bar.query == ""
        assert bar.listener_count == 0
        assert session.store.listener_count == 0
        assert not session.is_open

    async def test_dispatch_after_close_is_ignored(self, persistence):
        session = FilterSession(AddressBar(), persistence, **FAST)
        session.open()
        session.close()
        session.dispatch(SetFilter("symbol", "AAPL"))
        assert session.state.filters.symbol == ""

    async def test_flush_writes_immediately(self, persistence):
        bar = AddressBar()
        session = FilterSession(bar, persistence, durable_delay=5, address_delay=5,
                                durable_max_wait=None, address_max_wait=None)
        session.open()
        session.dispatch(SetFilter("market", "crypto"))
        session.flush()
        assert persistence.load().market == "crypto"
        assert bar.query == "market=crypto"
        session.close()


class TestFromSettings:
    def test_uses_configured_delays(self, persistence, tmp_path):
        settings = Settings(data_dir=tmp_path, durable_debounce=0.1, address_debounce=2.5)
        session = FilterSession.from_settings(settings, AddressBar(), persistence)
        assert session.synchronizer._durable.delay == 0.1
        assert session.synchronizer._address.delay == 2.5
        assert session.synchronizer._address.max_wait == 2.5

    def test_max_wait_from_environment(self, persistence, data_dir, monkeypatch):
        monkeypatch.setenv("TJCACHE_DURABLE_MAX_WAIT_MS", "1500")
        session = FilterSession.from_settings(Settings.from_env(), AddressBar(), persistence)
        assert session.synchronizer._durable.max_wait == pytest.approx(1.5)
