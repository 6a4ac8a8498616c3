"""Durable records of the current filters, one per view."""

import logging
from typing import Any

from ..config.constants import FILTER_STATE_KEY, FILTER_STATE_TTL_SECONDS, STRATEGY_FILTER_STATE_KEY
from ..state.filters import FilterOptions, active_filter_count, coerce_filters
from ..state.strategy_filters import (
    StrategyFilterOptions,
    active_strategy_filter_count,
    coerce_strategy_filters,
)
from ..storage.durable import DurableKeyStore

logger = logging.getLogger(__name__)


class FilterPersistence:
    """Saves and restores FilterOptions through the durable tier.

    Records are validated on load: unknown keys are ignored and invalid values
    fall back to defaults, so a record written by an older layout still loads.
    """

    default_key = FILTER_STATE_KEY
    label = "filters"

    def __init__(
        self,
        store: DurableKeyStore,
        key: str | None = None,
        ttl: float = FILTER_STATE_TTL_SECONDS,
    ):
        self.store = store
        self.key = key or self.default_key
        self.ttl = ttl

    def _coerce(self, raw: Any) -> Any:
        return coerce_filters(raw)

    def _active_count(self, filters: Any) -> int:
        return active_filter_count(filters)

    def save(self, filters: FilterOptions) -> bool:
        saved = self.store.set(self.key, filters.to_dict(), ttl=self.ttl)
        if saved:
            logger.debug("Saved %s (%d active)", self.label, self._active_count(filters))
        return saved

    def load(self) -> FilterOptions | None:
        raw = self.store.get(self.key)
        if raw is None:
            return None
        filters = self._coerce(raw)
        if filters is None:
            logger.warning("Stored %s under %r are not a mapping, ignoring", self.label, self.key)
            self.store.delete(self.key)
        return filters

    def clear(self) -> bool:
        return self.store.delete(self.key)


class StrategyFilterPersistence(FilterPersistence):
    """The strategy list's record, kept apart from the trade filters."""

    default_key = STRATEGY_FILTER_STATE_KEY
    label = "strategy filters"

    def _coerce(self, raw: Any) -> StrategyFilterOptions | None:
        return coerce_strategy_filters(raw)

    def _active_count(self, filters: StrategyFilterOptions) -> int:
        return active_strategy_filter_count(filters)
