"""
Debounced projection of filter state onto its durable and address forms.

``DebouncedTask`` is a cancellable handle around ``loop.call_later``: every
``trigger`` restarts the quiet-period timer, and once closed it can never be
re-armed. Outside a running event loop a trigger fires at once.
``DebouncedSynchronizer`` runs two of them, one per target, so the cheap
durable write and the address rewrite settle independently.

Writers always receive the state current at fire time, not the state that
was passed to ``schedule``. A burst of changes therefore produces one write
carrying the last state, and a timer that fires late can never write an
older state over a newer one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from ..config.constants import (
    ADDRESS_DEBOUNCE_SECONDS,
    ADDRESS_MAX_WAIT_SECONDS,
    DURABLE_DEBOUNCE_SECONDS,
    DURABLE_MAX_WAIT_SECONDS,
)
from ..state.filters import FilterOptions
from ..state.store import FilterState

logger = logging.getLogger(__name__)


class DebouncedTask:
    """
    Runs ``callback`` once the triggers have been quiet for ``delay`` seconds.

    With ``max_wait`` set, a continuous stream of triggers still fires at
    least once every ``max_wait`` seconds.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        delay: float,
        *,
        max_wait: float | None = None,
        name: str = "debounced",
    ):
        if delay < 0:
            raise ValueError("delay must not be negative")
        if max_wait is not None and max_wait < delay:
            raise ValueError("max_wait must be at least delay")
        self.callback = callback
        self.delay = delay
        self.max_wait = max_wait
        self.name = name
        self.fire_count = 0
        self._handle: asyncio.TimerHandle | None = None
        self._first_trigger: float | None = None
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def trigger(self) -> None:
        """
        Restart the quiet-period timer. Ignored once closed.

        Outside a running event loop there is nothing to schedule on, so the
        callback runs immediately instead.
        """
        if self._closed:
            logger.debug("%s: trigger after close ignored", self.name)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("%s: no running event loop, firing immediately", self.name)
            self.cancel()
            self._fire()
            return

        now = loop.time()
        if self._handle is not None:
            self._handle.cancel()
        if self._first_trigger is None:
            self._first_trigger = now

        delay = self.delay
        if self.max_wait is not None:
            remaining = self._first_trigger + self.max_wait - now
            delay = max(0.0, min(delay, remaining))

        self._handle = loop.call_later(delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._first_trigger = None
        if self._closed:
            return
        self.fire_count += 1
        try:
            self.callback()
        except Exception as e:
            logger.error("%s: write failed: %s", self.name, e)

    def flush(self) -> bool:
        """Fire now if a timer is pending. Returns True if it fired."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        """Drop the pending timer, if any. The task can still be triggered again."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._first_trigger = None

    def close(self) -> None:
        """Cancel and refuse all future triggers."""
        self.cancel()
        self._closed = True


class DebouncedSynchronizer:
    """
    Coalesces filter-state changes into deferred durable and address writes.

    Usage:
        sync = DebouncedSynchronizer(
            lambda: store.state,
            durable_writer=persistence.save,
            address_writer=lambda f: address_bar.replace(encode(f)),
        )
        store.subscribe(sync.schedule)
        ...
        sync.close()  # on teardown
    """

    def __init__(
        self,
        current_state: Callable[[], FilterState],
        *,
        durable_writer: Callable[[FilterOptions], object],
        address_writer: Callable[[FilterOptions], object],
        durable_delay: float = DURABLE_DEBOUNCE_SECONDS,
        address_delay: float = ADDRESS_DEBOUNCE_SECONDS,
        durable_max_wait: float | None = DURABLE_MAX_WAIT_SECONDS,
        address_max_wait: float | None = ADDRESS_MAX_WAIT_SECONDS,
    ):
        self._current_state = current_state
        self._durable_writer = durable_writer
        self._address_writer = address_writer
        self.durable_writes = 0
        self.address_writes = 0
        self._durable = DebouncedTask(
            self._write_durable, durable_delay, max_wait=durable_max_wait, name="durable-sync"
        )
        self._address = DebouncedTask(
            self._write_address, address_delay, max_wait=address_max_wait, name="address-sync"
        )

    @property
    def pending(self) -> bool:
        return self._durable.pending or self._address.pending

    @property
    def closed(self) -> bool:
        return self._durable.closed and self._address.closed

    def schedule(self, state: FilterState | None = None) -> None:
        """Note that the state changed; both pipelines restart their timers.

        ``state`` is accepted so the method can be used directly as a store
        listener. It is not what gets written.
        """
        self._durable.trigger()
        self._address.trigger()

    def _write_durable(self) -> None:
        filters = self._current_state().filters
        self._durable_writer(filters)
        self.durable_writes += 1
        logger.debug("Filters written to durable store")

    def _write_address(self) -> None:
        filters = self._current_state().filters
        self._address_writer(filters)
        self.address_writes += 1
        logger.debug("Filters written to address")

    def flush(self) -> None:
        """Write any pending projection immediately."""
        self._durable.flush()
        self._address.flush()

    def cancel(self) -> None:
        """Drop pending writes without closing."""
        self._durable.cancel()
        self._address.cancel()

    def close(self) -> None:
        """Cancel pending writes for good; later ``schedule`` calls do nothing."""
        self._durable.close()
        self._address.close()

    async def __aenter__(self) -> "DebouncedSynchronizer":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()
