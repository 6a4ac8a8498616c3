"""CLI tests using typer's CliRunner."""

import json

import pytest
from typer.testing import CliRunner

from tjcache import __version__
from tjcache.main import app
from tjcache.services.registry import CacheRegistry
from tjcache.state.filters import FilterOptions
from tjcache.state.strategy_filters import StrategyFilterOptions
from tjcache.sync.persistence import FilterPersistence, StrategyFilterPersistence

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(data_dir, monkeypatch):
    """Every CLI test runs against a fresh data directory without the SQLite tier."""
    monkeypatch.setenv("TJCACHE_DISABLE_TRANSACTIONAL", "true")
    return data_dir


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Usage:" in result.stdout

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_invalid_command(self):
        result = runner.invoke(app, ["nonexistent-command"])
        assert result.exit_code != 0

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("TJCACHE_LOG_LEVEL", "LOUD")
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 1


class TestCacheCommands:
    def test_stats_json(self):
        CacheRegistry.instance().durable.set("strategy_stats_1", {"pnl": 1})
        result = runner.invoke(app, ["cache", "stats", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["durable"]["keys"] == ["strategy_stats_1"]
        assert data["transactional"]["available"] is False

    def test_stats_table(self):
        result = runner.invoke(app, ["cache", "stats"])
        assert result.exit_code == 0
        assert "ephemeral" in result.stdout

    def test_clear_tier(self):
        CacheRegistry.instance().durable.set("a", 1)
        result = runner.invoke(app, ["cache", "clear", "durable", "--force"])
        assert result.exit_code == 0
        assert "Cleared 1 entries" in result.stdout
        assert CacheRegistry.instance().durable.keys() == []

    def test_clear_unknown_tier(self):
        result = runner.invoke(app, ["cache", "clear", "redis", "--force"])
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_clear_all_needs_confirmation(self):
        CacheRegistry.instance().durable.set("a", 1)
        result = runner.invoke(app, ["cache", "clear"], input="n\n")
        assert result.exit_code != 0
        assert CacheRegistry.instance().durable.keys() == ["a"]

    def test_cleanup(self):
        CacheRegistry.instance().durable.set("a", 1, ttl=0.000001)
        result = runner.invoke(app, ["cache", "cleanup"])
        assert result.exit_code == 0
        assert "Removed 1 expired entries" in result.stdout


class TestFilterCommands:
    def test_show_nothing_stored(self):
        result = runner.invoke(app, ["filters", "show", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"stored": False, "filters": None}

    def test_show_stored(self):
        FilterPersistence(CacheRegistry.instance().durable).save(FilterOptions(symbol="AAPL"))
        result = runner.invoke(app, ["filters", "show", "--json"])
        assert json.loads(result.stdout)["filters"]["symbol"] == "AAPL"

        result = runner.invoke(app, ["filters", "show"])
        assert "Active filters: 1" in result.stdout

    def test_clear(self):
        persistence = FilterPersistence(CacheRegistry.instance().durable)
        persistence.save(FilterOptions(symbol="AAPL"))
        result = runner.invoke(app, ["filters", "clear", "--force"])
        assert result.exit_code == 0
        assert persistence.load() is None

    def test_strategy_filters_shown_separately(self):
        StrategyFilterPersistence(CacheRegistry.instance().durable).save(
            StrategyFilterOptions(search="Momentum", is_active=False)
        )
        result = runner.invoke(app, ["filters", "show", "--strategies", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["filters"]["search"] == "Momentum"
        assert data["filters"]["is_active"] is False

        result = runner.invoke(app, ["filters", "show", "--strategies"])
        assert "Active filters: 2" in result.stdout
        assert json.loads(runner.invoke(app, ["filters", "show", "--json"]).stdout)["stored"] is False

    def test_clear_strategy_filters(self):
        persistence = StrategyFilterPersistence(CacheRegistry.instance().durable)
        persistence.save(StrategyFilterOptions(search="Momentum"))
        result = runner.invoke(app, ["filters", "clear", "--strategies", "--force"])
        assert result.exit_code == 0
        assert persistence.load() is None


class TestAddressCommands:
    def test_decode_json(self):
        result = runner.invoke(app, ["address", "decode", "?symbol=aapl&pnlFilter=lossable", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["symbol"] == "AAPL"
        assert data["pnl_filter"] == "lossable"

    def test_decode_empty(self):
        result = runner.invoke(app, ["address", "decode", "?foo=bar"])
        assert "No filters" in result.stdout

    def test_encode(self):
        result = runner.invoke(
            app, ["address", "encode", "--symbol", "msft", "--emotion", "fomo", "--emotion", "tilt"]
        )
        assert result.exit_code == 0
        assert result.stdout.strip() == "symbol=MSFT&emotionalStates=FOMO%2CTILT"

    def test_encode_with_base_url(self):
        result = runner.invoke(
            app, ["address", "encode", "--side", "Buy", "--base-url", "https://journal.example/trades"]
        )
        assert result.stdout.strip() == "https://journal.example/trades?side=Buy"

    def test_encode_invalid(self):
        result = runner.invoke(app, ["address", "encode", "--market", "bonds"])
        assert result.exit_code == 1
        assert "Invalid filter" in result.stdout
