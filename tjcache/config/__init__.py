"""Configuration for tjcache."""

from .settings import (
    Settings,
    get_data_dir,
    get_env_info,
    get_env_var,
    validate_all_env_vars,
    validate_env_var,
)

__all__ = [
    "Settings",
    "get_data_dir",
    "get_env_info",
    "get_env_var",
    "validate_all_env_vars",
    "validate_env_var",
]
