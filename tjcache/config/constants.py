"""
Centralized constants for tjcache.

Durations are in seconds, sizes in bytes. Anything a deployment may want to
change is also exposed through an environment variable (see settings.py);
the values here are the defaults.
"""

from pathlib import Path

# =============================================================================
# PATHS
# =============================================================================

TJCACHE_DATA_DIR = Path.home() / ".local" / "share" / "tjcache"
DURABLE_STORE_FILENAME = "durable_store.json"
TRANSACTIONAL_DB_FILENAME = "transactional.db"

# =============================================================================
# KEY NAMESPACES
# =============================================================================

DURABLE_KEY_PREFIX = "cache_"
SESSION_KEY_PREFIX = "session_"
TRANSACTIONAL_TABLE = "cache_entries"

# =============================================================================
# TTLs
# =============================================================================

DEFAULT_TTL_SECONDS = 5 * 60  # Ephemeral/durable default
FILTER_STATE_TTL_SECONDS = 30 * 24 * 3600  # Persisted filters survive a month

# =============================================================================
# CAPACITY
# =============================================================================

DEFAULT_EPHEMERAL_MAXSIZE = 1000
MAX_DURABLE_PAYLOAD_BYTES = 1024 * 1024  # 1MB - refuse larger durable writes
LARGE_PAYLOAD_BYTES = 64 * 1024  # Above this, fetch results go transactional

# =============================================================================
# DEBOUNCE WINDOWS
# =============================================================================

DURABLE_DEBOUNCE_SECONDS = 0.3
DURABLE_MAX_WAIT_SECONDS = 1.0
ADDRESS_DEBOUNCE_SECONDS = 0.5
ADDRESS_MAX_WAIT_SECONDS = 2.0

# =============================================================================
# FILTER STATE
# =============================================================================

FILTER_STATE_KEY = "filter_state"
STRATEGY_FILTER_STATE_KEY = "strategy_filters"

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

ENV_VAR_DEFINITIONS: dict[str, dict] = {
    "TJCACHE_DATA_DIR": {
        "description": "Directory holding the durable store file and the transactional database",
        "default": None,
        "valid_values": None,
    },
    "TJCACHE_DEFAULT_TTL": {
        "description": "Default cache entry TTL in seconds",
        "default": str(DEFAULT_TTL_SECONDS),
        "valid_values": None,
        "numeric": True,
    },
    "TJCACHE_DURABLE_DEBOUNCE_MS": {
        "description": "Quiet period before filters are written to the durable store",
        "default": str(int(DURABLE_DEBOUNCE_SECONDS * 1000)),
        "valid_values": None,
        "numeric": True,
    },
    "TJCACHE_ADDRESS_DEBOUNCE_MS": {
        "description": "Quiet period before the address query string is rewritten",
        "default": str(int(ADDRESS_DEBOUNCE_SECONDS * 1000)),
        "valid_values": None,
        "numeric": True,
    },
    "TJCACHE_DURABLE_MAX_WAIT_MS": {
        "description": "Longest a stream of filter changes may defer the durable write (0 disables)",
        "default": str(int(DURABLE_MAX_WAIT_SECONDS * 1000)),
        "valid_values": None,
        "numeric": True,
    },
    "TJCACHE_ADDRESS_MAX_WAIT_MS": {
        "description": "Longest a stream of filter changes may defer the address rewrite (0 disables)",
        "default": str(int(ADDRESS_MAX_WAIT_SECONDS * 1000)),
        "valid_values": None,
        "numeric": True,
    },
    "TJCACHE_LOG_LEVEL": {
        "description": "Log level for the tjcache loggers",
        "default": "WARNING",
        "valid_values": ["DEBUG", "INFO", "WARNING", "ERROR"],
    },
    "TJCACHE_DISABLE_TRANSACTIONAL": {
        "description": "Skip the transactional tier entirely",
        "default": "false",
        "valid_values": ["true", "false", "1", "0"],
    },
}
