"""
Reducer-driven container for a view's filter state.

``reduce_filter_state`` is a pure function of (state, action, now).
``FilterStateStore`` wraps it with ordered dispatch, subscriber
notification, and the seeding guard: ``LoadFromAddress`` and
``LoadFromStore`` replace the filters wholesale, so once the view has been
seeded they would clobber the user's edits with stale data and are dropped.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Callable

from .actions import (
    SEED_ACTIONS,
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

logger = logging.getLogger(__name__)

StateListener = Callable[["FilterState"], None]


@dataclass(frozen=True)
class FilterState:
    """Single source of truth for a view's filters."""

    filters: FilterOptions = field(default_factory=FilterOptions)
    is_loading: bool = False
    last_updated: float = 0.0

    @property
    def active_filter_count(self) -> int:
        return active_filter_count(self.filters)

    @property
    def has_active_filters(self) -> bool:
        return self.active_filter_count > 0


def reduce_filter_state(state: FilterState, action: FilterAction, now: float) -> FilterState:
    """Apply one action. Total: every action yields a state."""
    if isinstance(action, SetLoading):
        return replace(state, is_loading=action.is_loading)

    filters = state.filters
    if isinstance(action, SetFilter):
        filters = filters.with_changes(**{action.key: action.value})
    elif isinstance(action, SetFilters):
        filters = filters.with_changes(**action.partial)
    elif isinstance(action, (ClearFilters, ResetFilters)):
        filters = DEFAULT_FILTERS
    elif isinstance(action, (LoadFromAddress, LoadFromStore)):
        filters = action.filters
    elif isinstance(action, SetSort):
        filters = filters.with_changes(sort_by=action.key, sort_order=action.direction)
    elif isinstance(action, ResetSort):
        filters = filters.with_changes(
            sort_by=DEFAULT_FILTERS.sort_by, sort_order=DEFAULT_FILTERS.sort_order
        )
    else:
        logger.warning("Ignoring unknown filter action %r", action)
        return state

    return replace(state, filters=filters, last_updated=now)


class FilterStateStore:
    """
    Holds one FilterState and applies actions in dispatch order.

    Dispatch from inside a listener is queued and applied after the current
    action has finished notifying, so listeners always observe states in
    order and the reducer is never re-entered.
    """

    def __init__(
        self,
        initial: FilterState | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._clock = clock
        self._state = initial if initial is not None else FilterState(last_updated=clock())
        self._listeners: list[StateListener] = []
        self._queue: deque[FilterAction] = deque()
        self._dispatching = False
        self._seeded = False

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def filters(self) -> FilterOptions:
        return self._state.filters

    @property
    def seeded(self) -> bool:
        return self._seeded

    def mark_seeded(self) -> None:
        """Close the seeding window; load actions are dropped from now on."""
        self._seeded = True

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, action: FilterAction) -> FilterState:
        """Apply an action (or queue it if a dispatch is in progress)."""
        self._queue.append(action)
        if self._dispatching:
            return self._state

        self._dispatching = True
        try:
            while self._queue:
                self._apply(self._queue.popleft())
        finally:
            self._dispatching = False
        return self._state

    def _apply(self, action: FilterAction) -> None:
        if isinstance(action, SEED_ACTIONS) and self._seeded:
            logger.warning(
                "Dropping %s after seeding; it would overwrite newer filters",
                type(action).__name__,
            )
            return

        if isinstance(action, ClearFilters):
            logger.info("Filters cleared by user")
        elif isinstance(action, ResetFilters):
            logger.info("Filters reset to defaults")

        self._state = reduce_filter_state(self._state, action, self._clock())
        self._notify()

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error("Error in filter state listener: %s", e)
