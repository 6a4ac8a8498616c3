"""Tests for the tjcache exception hierarchy."""

import pytest

from tjcache.exceptions import (
    BackendInitError,
    ConfigurationError,
    InvalidActionError,
    MalformedRecordError,
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
    TjcacheError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_class",
        [StorageUnavailableError, StorageQuotaExceededError, MalformedRecordError, BackendInitError],
    )
    def test_storage_errors(self, exc_class):
        error = exc_class()
        assert isinstance(error, StorageError)
        assert isinstance(error, TjcacheError)

    def test_invalid_action_is_value_error(self):
        assert isinstance(InvalidActionError(), ValueError)

    def test_configuration_error(self):
        assert isinstance(ConfigurationError(), TjcacheError)


class TestMessages:
    def test_context_in_message(self):
        error = BackendInitError(path="/tmp/x.db", reason="locked")
        assert error.context == {"reason": "locked", "path": "/tmp/x.db"}
        assert str(error).startswith("Transactional backend failed to initialize (")
        assert "path='/tmp/x.db'" in str(error)

    def test_plain_message(self):
        assert str(TjcacheError("boom")) == "boom"
        assert not TjcacheError("boom").retryable

    def test_retryable_flag(self):
        assert TjcacheError("busy", retryable=True).retryable

    def test_quota_context(self):
        error = StorageQuotaExceededError(quota_bytes=5)
        assert error.context["quota_bytes"] == 5
