"""Filter state: options, actions and the reducer store."""

from .actions import (
    ClearFilters,
    FilterAction,
    LoadFromAddress,
    LoadFromStore,
    ResetFilters,
    ResetSort,
    SetFilter,
    SetFilters,
    SetLoading,
    SetSort,
)
from .filters import DEFAULT_FILTERS, FilterOptions, active_filter_count
from .store import FilterState, FilterStateStore, reduce_filter_state
from .strategy_filters import DEFAULT_STRATEGY_FILTERS, StrategyFilterOptions, active_strategy_filter_count

__all__ = [
    "ClearFilters",
    "DEFAULT_FILTERS",
    "DEFAULT_STRATEGY_FILTERS",
    "FilterAction",
    "FilterOptions",
    "FilterState",
    "FilterStateStore",
    "LoadFromAddress",
    "LoadFromStore",
    "ResetFilters",
    "ResetSort",
    "SetFilter",
    "SetFilters",
    "SetLoading",
    "SetSort",
    "StrategyFilterOptions",
    "active_filter_count",
    "active_strategy_filter_count",
    "reduce_filter_state",
]
