"""Tests for tjcache config module."""

import pytest

from tjcache.config import (
    Settings,
    get_data_dir,
    get_env_info,
    get_env_var,
    validate_all_env_vars,
    validate_env_var,
)
from tjcache.exceptions import ConfigurationError


def test_get_data_dir_creates_directory(data_dir):
    """get_data_dir honours TJCACHE_DATA_DIR and creates the directory."""
    assert get_data_dir() == data_dir
    assert data_dir.is_dir()


def test_validate_numeric():
    assert validate_env_var("TJCACHE_DEFAULT_TTL", "60") == (True, None)
    is_valid, error = validate_env_var("TJCACHE_DEFAULT_TTL", "soon")
    assert not is_valid
    assert "Expected a number" in error


def test_validate_choices_case_insensitive():
    assert validate_env_var("TJCACHE_LOG_LEVEL", "debug")[0]
    assert not validate_env_var("TJCACHE_LOG_LEVEL", "LOUD")[0]


def test_unknown_vars_are_valid():
    assert validate_env_var("SOMETHING_ELSE", "x") == (True, None)


def test_get_env_var_raises_on_invalid(monkeypatch):
    monkeypatch.setenv("TJCACHE_DURABLE_DEBOUNCE_MS", "-5")
    with pytest.raises(ConfigurationError) as exc_info:
        get_env_var("TJCACHE_DURABLE_DEBOUNCE_MS")
    assert exc_info.value.context["setting"] == "TJCACHE_DURABLE_DEBOUNCE_MS"


def test_get_env_var_default(monkeypatch):
    monkeypatch.delenv("TJCACHE_LOG_LEVEL", raising=False)
    assert get_env_var("TJCACHE_LOG_LEVEL") == "WARNING"


def test_validate_all_env_vars(monkeypatch):
    monkeypatch.setenv("TJCACHE_DISABLE_TRANSACTIONAL", "maybe")
    errors = validate_all_env_vars()
    assert len(errors) == 1
    assert "TJCACHE_DISABLE_TRANSACTIONAL" in errors[0]


def test_get_env_info(monkeypatch):
    monkeypatch.setenv("TJCACHE_LOG_LEVEL", "INFO")
    info = get_env_info()
    assert info["TJCACHE_LOG_LEVEL"]["is_set"]
    assert info["TJCACHE_LOG_LEVEL"]["valid"]


class TestSettings:
    def test_defaults(self, data_dir, monkeypatch):
        for name in (
            "TJCACHE_DEFAULT_TTL",
            "TJCACHE_DURABLE_DEBOUNCE_MS",
            "TJCACHE_ADDRESS_DEBOUNCE_MS",
            "TJCACHE_DURABLE_MAX_WAIT_MS",
            "TJCACHE_ADDRESS_MAX_WAIT_MS",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.data_dir == data_dir
        assert settings.default_ttl == 300
        assert settings.durable_debounce == pytest.approx(0.3)
        assert settings.address_debounce == pytest.approx(0.5)
        assert settings.durable_max_wait == pytest.approx(1.0)
        assert settings.address_max_wait == pytest.approx(2.0)
        assert settings.transactional_enabled

    def test_milliseconds_converted(self, data_dir, monkeypatch):
        monkeypatch.setenv("TJCACHE_DURABLE_DEBOUNCE_MS", "150")
        monkeypatch.setenv("TJCACHE_ADDRESS_DEBOUNCE_MS", "1000")
        settings = Settings.from_env()
        assert settings.durable_debounce == pytest.approx(0.15)
        assert settings.address_debounce == pytest.approx(1.0)

    def test_max_wait_from_env(self, data_dir, monkeypatch):
        monkeypatch.setenv("TJCACHE_DURABLE_MAX_WAIT_MS", "1500")
        monkeypatch.setenv("TJCACHE_ADDRESS_MAX_WAIT_MS", "4000")
        settings = Settings.from_env()
        assert settings.durable_max_wait == pytest.approx(1.5)
        assert settings.address_max_wait == pytest.approx(4.0)

    def test_zero_max_wait_disables_it(self, data_dir, monkeypatch):
        monkeypatch.setenv("TJCACHE_DURABLE_MAX_WAIT_MS", "0")
        assert Settings.from_env().durable_max_wait is None

    def test_invalid_max_wait_raises(self, data_dir, monkeypatch):
        monkeypatch.setenv("TJCACHE_ADDRESS_MAX_WAIT_MS", "soon")
        with pytest.raises(ConfigurationError):
            Settings.from_env()

    def test_paths(self, tmp_path):
        settings = Settings(data_dir=tmp_path)
        assert settings.durable_store_path == tmp_path / "durable_store.json"
        assert settings.transactional_db_path == tmp_path / "transactional.db"

    def test_invalid_env_raises(self, data_dir, monkeypatch):
        monkeypatch.setenv("TJCACHE_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError):
            Settings.from_env()

    def test_zero_ttl_rejected(self, data_dir, monkeypatch):
        monkeypatch.setenv("TJCACHE_DEFAULT_TTL", "0")
        with pytest.raises(ConfigurationError):
            Settings.from_env()

    @pytest.mark.parametrize("value", ["true", "1", "TRUE"])
    def test_disable_transactional(self, data_dir, monkeypatch, value):
        monkeypatch.setenv("TJCACHE_DISABLE_TRANSACTIONAL", value)
        assert not Settings.from_env().transactional_enabled
