"""
One view's filter session: seeding, projection wiring, teardown.

A ``FilterSession`` is created when a view mounts and closed when it goes
away. Opening seeds the store (address first, then the durable record,
then defaults), closes the seeding window, and hooks the store up to the
synchronizer and to address navigation. Closing cancels the debounce
timers and drops every listener so nothing writes on behalf of a view that
no longer exists.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..config.constants import (
    ADDRESS_DEBOUNCE_SECONDS,
    ADDRESS_MAX_WAIT_SECONDS,
    DURABLE_DEBOUNCE_SECONDS,
    DURABLE_MAX_WAIT_SECONDS,
)
from ..config.settings import Settings
from ..state.actions import FilterAction, LoadFromAddress, LoadFromStore, SetFilters
from ..state.filters import FILTER_FIELDS, merge_with_defaults
from ..state.store import FilterState, FilterStateStore
from . import address as codec
from .address import AddressBar
from .debounce import DebouncedSynchronizer
from .persistence import FilterPersistence

logger = logging.getLogger(__name__)


def _max_wait(max_wait: float | None, delay: float) -> float | None:
    # A debounce window configured longer than the max wait stretches the max wait.
    if max_wait is None:
        return None
    return max(max_wait, delay)


class FilterSession:
    """
    Owns the filter state of a single view.

    Usage:
        async with FilterSession(address_bar, persistence) as session:
            session.dispatch(SetFilter("symbol", "AAPL"))
    """

    def __init__(
        self,
        address: AddressBar,
        persistence: FilterPersistence,
        *,
        durable_delay: float = DURABLE_DEBOUNCE_SECONDS,
        address_delay: float = ADDRESS_DEBOUNCE_SECONDS,
        durable_max_wait: float | None = DURABLE_MAX_WAIT_SECONDS,
        address_max_wait: float | None = ADDRESS_MAX_WAIT_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.address = address
        self.persistence = persistence
        self.store = FilterStateStore(clock=clock)
        self.synchronizer = DebouncedSynchronizer(
            lambda: self.store.state,
            durable_writer=persistence.save,
            address_writer=self._write_address,
            durable_delay=durable_delay,
            address_delay=address_delay,
            durable_max_wait=durable_max_wait,
            address_max_wait=address_max_wait,
        )
        self.seed_source: str | None = None
        self._unsubscribers: list[Callable[[], None]] = []
        self._opened = False
        self._closed = False

    @classmethod
    def from_settings(
        cls, settings: Settings, address: AddressBar, persistence: FilterPersistence
    ) -> "FilterSession":
        return cls(
            address,
            persistence,
            durable_delay=settings.durable_debounce,
            address_delay=settings.address_debounce,
            durable_max_wait=_max_wait(settings.durable_max_wait, settings.durable_debounce),
            address_max_wait=_max_wait(settings.address_max_wait, settings.address_debounce),
        )

    @property
    def state(self) -> FilterState:
        return self.store.state

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    def open(self) -> FilterState:
        """Seed the state and start synchronizing. Safe to call once."""
        if self._closed:
            raise RuntimeError("FilterSession is closed")
        if self._opened:
            return self.store.state
        self._opened = True

        self._seed()
        self.store.mark_seeded()

        self._unsubscribers.append(self.store.subscribe(self.synchronizer.schedule))
        self._unsubscribers.append(self.address.subscribe(self._on_navigate))
        return self.store.state

    def _seed(self) -> None:
        from_address = codec.decode(self.address.query)
        if from_address:
            self.store.dispatch(LoadFromAddress(merge_with_defaults(from_address)))
            self.seed_source = "address"
        else:
            stored = self.persistence.load()
            if stored is not None:
                self.store.dispatch(LoadFromStore(stored))
                self.seed_source = "store"
            else:
                self.seed_source = "defaults"
        logger.debug("Filter session seeded from %s", self.seed_source)

    def dispatch(self, action: FilterAction) -> FilterState:
        """Apply an action to the view's state."""
        if not self.is_open:
            logger.warning("Dispatch of %s on a session that is not open", type(action).__name__)
            return self.store.state
        return self.store.dispatch(action)

    def _write_address(self, filters) -> None:
        self.address.replace(codec.encode(filters))

    def _on_navigate(self, query: str) -> None:
        """Address changed from outside (back/forward, pasted link)."""
        target = codec.decode_filters(query)
        changes = {
            name: getattr(target, name)
            for name in FILTER_FIELDS
            if getattr(target, name) != getattr(self.store.filters, name)
        }
        if changes:
            self.store.dispatch(SetFilters(changes))

    def flush(self) -> None:
        """Write pending projections now (e.g. before the process exits)."""
        self.synchronizer.flush()

    def close(self) -> None:
        """Cancel timers and drop listeners. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.synchronizer.close()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        logger.debug("Filter session closed")

    def __enter__(self) -> "FilterSession":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    async def __aenter__(self) -> "FilterSession":
        return self.__enter__()

    async def __aexit__(self, *exc_info) -> None:
        self.close()
