"""Configuration utilities for tjcache."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..exceptions import ConfigurationError
from .constants import (
    ADDRESS_DEBOUNCE_SECONDS,
    ADDRESS_MAX_WAIT_SECONDS,
    DEFAULT_EPHEMERAL_MAXSIZE,
    DEFAULT_TTL_SECONDS,
    DURABLE_DEBOUNCE_SECONDS,
    DURABLE_MAX_WAIT_SECONDS,
    DURABLE_STORE_FILENAME,
    ENV_VAR_DEFINITIONS,
    TJCACHE_DATA_DIR,
    TRANSACTIONAL_DB_FILENAME,
)


def get_data_dir() -> Path:
    """Get the data directory, respecting TJCACHE_DATA_DIR.

    Tests point TJCACHE_DATA_DIR at a temp directory so they never touch the
    real durable store.
    """
    override = os.environ.get("TJCACHE_DATA_DIR")
    data_dir = Path(override) if override else TJCACHE_DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def validate_env_var(name: str, value: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate a single environment variable value.

    Args:
        name: The environment variable name.
        value: The current value (or None if not set).

    Returns:
        Tuple of (is_valid, error_message).
    """
    if name not in ENV_VAR_DEFINITIONS:
        return True, None  # Unknown vars are always valid

    if value is None:
        return True, None

    definition = ENV_VAR_DEFINITIONS[name]

    if definition.get("numeric"):
        try:
            number = float(value)
        except ValueError:
            return False, f"Invalid value '{value}' for {name}. Expected a number"
        if number < 0:
            return False, f"Invalid value '{value}' for {name}. Must not be negative"
        return True, None

    valid_values = definition.get("valid_values")
    if valid_values is None:
        return True, None

    if value.lower() not in [v.lower() for v in valid_values]:
        return False, f"Invalid value '{value}' for {name}. Valid values: {valid_values}"

    return True, None


def validate_all_env_vars() -> List[str]:
    """Validate all tjcache environment variables.

    Returns:
        List of error messages (empty if all valid).
    """
    errors = []
    for name in ENV_VAR_DEFINITIONS:
        is_valid, error = validate_env_var(name, os.environ.get(name))
        if not is_valid:
            errors.append(error)
    return errors


def get_env_var(name: str, validate: bool = True) -> Optional[str]:
    """Get an environment variable with optional validation.

    Args:
        name: The environment variable name.
        validate: Whether to validate the value against known definitions.

    Returns:
        The environment variable value, its documented default, or None.

    Raises:
        ConfigurationError: If validate=True and the value is invalid.
    """
    value = os.environ.get(name)

    if validate and value is not None:
        is_valid, error = validate_env_var(name, value)
        if not is_valid:
            raise ConfigurationError(error, setting=name)

    if value is None and name in ENV_VAR_DEFINITIONS:
        return ENV_VAR_DEFINITIONS[name].get("default")

    return value


def get_env_info() -> Dict[str, Dict]:
    """Describe every tjcache environment variable and its current state."""
    info = {}
    for name, definition in ENV_VAR_DEFINITIONS.items():
        value = os.environ.get(name)
        is_valid, _ = validate_env_var(name, value)
        info[name] = {
            "description": definition.get("description", ""),
            "value": value,
            "is_set": value is not None,
            "valid": is_valid,
            "default": definition.get("default"),
        }
    return info


def _ms_to_seconds(name: str, fallback: float) -> float:
    raw = get_env_var(name)
    if raw is None:
        return fallback
    return float(raw) / 1000


def _max_wait_seconds(name: str, fallback: float) -> Optional[float]:
    seconds = _ms_to_seconds(name, fallback)
    if seconds == 0:
        return None
    return seconds


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings for the cache tiers and synchronizer."""

    data_dir: Path
    default_ttl: float = DEFAULT_TTL_SECONDS
    ephemeral_maxsize: int = DEFAULT_EPHEMERAL_MAXSIZE
    durable_debounce: float = DURABLE_DEBOUNCE_SECONDS
    durable_max_wait: Optional[float] = DURABLE_MAX_WAIT_SECONDS
    address_debounce: float = ADDRESS_DEBOUNCE_SECONDS
    address_max_wait: Optional[float] = ADDRESS_MAX_WAIT_SECONDS
    log_level: str = "WARNING"
    transactional_enabled: bool = True

    @property
    def durable_store_path(self) -> Path:
        return self.data_dir / DURABLE_STORE_FILENAME

    @property
    def transactional_db_path(self) -> Path:
        return self.data_dir / TRANSACTIONAL_DB_FILENAME

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from TJCACHE_* environment variables.

        Raises:
            ConfigurationError: If any variable holds an invalid value.
        """
        errors = validate_all_env_vars()
        if errors:
            raise ConfigurationError("; ".join(errors))

        default_ttl = float(get_env_var("TJCACHE_DEFAULT_TTL") or DEFAULT_TTL_SECONDS)
        if default_ttl <= 0:
            raise ConfigurationError("Default TTL must be positive", setting="TJCACHE_DEFAULT_TTL")

        disabled = (get_env_var("TJCACHE_DISABLE_TRANSACTIONAL") or "false").lower()
        return cls(
            data_dir=get_data_dir(),
            default_ttl=default_ttl,
            durable_debounce=_ms_to_seconds("TJCACHE_DURABLE_DEBOUNCE_MS", DURABLE_DEBOUNCE_SECONDS),
            durable_max_wait=_max_wait_seconds("TJCACHE_DURABLE_MAX_WAIT_MS", DURABLE_MAX_WAIT_SECONDS),
            address_debounce=_ms_to_seconds("TJCACHE_ADDRESS_DEBOUNCE_MS", ADDRESS_DEBOUNCE_SECONDS),
            address_max_wait=_max_wait_seconds("TJCACHE_ADDRESS_MAX_WAIT_MS", ADDRESS_MAX_WAIT_SECONDS),
            log_level=(get_env_var("TJCACHE_LOG_LEVEL") or "WARNING").upper(),
            transactional_enabled=disabled not in ("true", "1"),
        )
