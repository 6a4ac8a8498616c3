"""
Mapping between filter options and a shareable address query string.

Only fields that differ from their defaults are written, one parameter per
field, in declaration order. Decoding is forgiving: unknown parameters are
ignored and a malformed value for a known parameter is treated as absent, so
a hand-edited or outdated link still opens with sensible filters.
"""

from __future__ import annotations

import logging
from typing import Any, Callable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..state.filters import (
    DEFAULT_FILTERS,
    FILTER_FIELDS,
    FilterOptions,
    merge_with_defaults,
    validate_field,
)

logger = logging.getLogger(__name__)

# Field name -> query parameter name. Must stay stable: shared links depend on it.
PARAM_NAMES: dict[str, str] = {
    "symbol": "symbol",
    "market": "market",
    "date_from": "dateFrom",
    "date_to": "dateTo",
    "pnl_filter": "pnlFilter",
    "strategy_id": "strategyId",
    "side": "side",
    "emotional_states": "emotionalStates",
    "sort_by": "sortBy",
    "sort_order": "sortOrder",
    "cursor": "cursor",
}
FIELD_BY_PARAM: dict[str, str] = {param: name for name, param in PARAM_NAMES.items()}

AddressListener = Callable[[str], None]


def _format_value(name: str, value: Any) -> str:
    if name == "emotional_states":
        return ",".join(value)
    return str(value)


def encode(filters: FilterOptions) -> str:
    """Query string (without ``?``) holding every non-default field."""
    params = []
    for name in FILTER_FIELDS:
        value = getattr(filters, name)
        if value == getattr(DEFAULT_FILTERS, name):
            continue
        params.append((PARAM_NAMES[name], _format_value(name, value)))
    return urlencode(params)


def decode(query: str) -> dict[str, Any]:
    """
    Partial filters from a query string, keyed by field name.

    A leading ``?`` is allowed. Unknown, blank and malformed parameters are
    skipped, and values equal to the default are left out.
    """
    partial: dict[str, Any] = {}
    for param, raw in parse_qsl(query.lstrip("?"), keep_blank_values=True):
        name = FIELD_BY_PARAM.get(param)
        if name is None:
            continue
        try:
            value = validate_field(name, raw)
        except ValueError as e:
            logger.debug("Ignoring malformed address parameter %s=%r: %s", param, raw, e)
            continue
        if value == getattr(DEFAULT_FILTERS, name):
            partial.pop(name, None)
            continue
        partial[name] = value
    return partial


def decode_filters(query: str) -> FilterOptions:
    """Decode and fill in defaults for everything the address omits."""
    return merge_with_defaults(decode(query))


def validate_param(param: str, value: str) -> bool:
    """Whether ``value`` is acceptable for the address parameter ``param``."""
    name = FIELD_BY_PARAM.get(param)
    if name is None:
        return False
    try:
        validate_field(name, value)
    except ValueError:
        return False
    return True


def shareable_url(base_url: str, filters: FilterOptions) -> str:
    """``base_url`` with its query replaced by the encoded filters."""
    parts = urlsplit(base_url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, encode(filters), parts.fragment))


class AddressBar:
    """
    The address the view is shown under, reduced to its query string.

    ``replace`` is how the application rewrites the address and does not
    notify anyone. ``navigate`` models a change coming from outside (back
    button, pasted link) and notifies subscribers.
    """

    def __init__(self, query: str = ""):
        self._query = query.lstrip("?")
        self._listeners: list[AddressListener] = []
        self.replace_count = 0

    @property
    def query(self) -> str:
        return self._query

    def replace(self, query: str) -> None:
        query = query.lstrip("?")
        if query == self._query:
            return
        self._query = query
        self.replace_count += 1
        logger.debug("Address rewritten to ?%s", query)

    def navigate(self, query: str) -> None:
        self._query = query.lstrip("?")
        for listener in list(self._listeners):
            try:
                listener(self._query)
            except Exception as e:
                logger.error("Error in address listener: %s", e)

    def subscribe(self, listener: AddressListener) -> Callable[[], None]:
        """Register a navigation listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
