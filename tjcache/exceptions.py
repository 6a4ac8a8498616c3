"""Custom exception hierarchy for tjcache.

Most of these never reach application code: the storage tiers catch them at
their public boundary, log, and degrade. They exist so that backends can
signal *what* went wrong and so that the few call sites that do see them
(``TransactionalStore.init``, action constructors) can catch something
narrower than ``Exception``.

Exception Hierarchy:
    TjcacheError (base)
    ├── StorageError - key/value backend problems
    │   ├── StorageUnavailableError - backend disabled or unreachable
    │   ├── StorageQuotaExceededError - write rejected for capacity
    │   ├── MalformedRecordError - stored text failed to parse
    │   └── BackendInitError - transactional tier failed to open
    ├── InvalidActionError - filter action payload failed validation
    └── ConfigurationError - settings/environment issues

Usage:
    from tjcache.exceptions import BackendInitError

    try:
        await store.init()
    except BackendInitError:
        logger.info("transactional tier unavailable, continuing without it")
"""

from typing import Any, Optional


class TjcacheError(Exception):
    """Base exception for all tjcache errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about the error (keys, paths, sizes)
        retryable: Whether this error might succeed on retry
    """

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        **context: Any,
    ) -> None:
        self.message = message
        self.context = context
        self.retryable = retryable
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(TjcacheError):
    """Base exception for storage backend operations."""

    pass


class StorageUnavailableError(StorageError):
    """The backend is disabled or cannot be reached."""

    def __init__(self, message: str = "Storage backend unavailable", **context: Any) -> None:
        super().__init__(message, **context)


class StorageQuotaExceededError(StorageError):
    """A write was rejected because the backend is full."""

    def __init__(
        self,
        message: str = "Storage quota exceeded",
        *,
        quota_bytes: Optional[int] = None,
        **context: Any,
    ) -> None:
        if quota_bytes is not None:
            context["quota_bytes"] = quota_bytes
        super().__init__(message, **context)


class MalformedRecordError(StorageError):
    """A stored record could not be parsed back into a value."""

    def __init__(
        self,
        message: str = "Malformed cache record",
        *,
        key: Optional[str] = None,
        **context: Any,
    ) -> None:
        if key:
            context["key"] = key
        super().__init__(message, **context)


class BackendInitError(StorageError):
    """The transactional backend failed to open.

    Not retryable: once raised, the store stays unavailable for its lifetime.
    """

    def __init__(
        self,
        message: str = "Transactional backend failed to initialize",
        *,
        path: Optional[str] = None,
        **context: Any,
    ) -> None:
        if path:
            context["path"] = path
        super().__init__(message, **context)


# =============================================================================
# State Errors
# =============================================================================


class InvalidActionError(TjcacheError, ValueError):
    """A filter action was constructed with an invalid payload."""

    def __init__(
        self,
        message: str = "Invalid filter action",
        *,
        action: Optional[str] = None,
        **context: Any,
    ) -> None:
        if action:
            context["action"] = action
        super().__init__(message, **context)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(TjcacheError):
    """Invalid or missing configuration."""

    def __init__(
        self,
        message: str = "Configuration error",
        *,
        setting: Optional[str] = None,
        **context: Any,
    ) -> None:
        if setting:
            context["setting"] = setting
        super().__init__(message, **context)
