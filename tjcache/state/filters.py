"""
Filter options for the trade table.

``FilterOptions`` is an immutable record whose every field has a default;
the all-default record means "no filters active". That equivalence drives
both ``active_filter_count`` and the address codec, which omits any field
still at its default.

Note: a field explicitly set to its default value (for example choosing
``sort_order="desc"`` by hand) is indistinguishable from an untouched one and
does not count as active.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)

MARKETS = ("stock", "crypto", "forex", "futures")
PNL_FILTERS = ("all", "profitable", "lossable")
SIDES = ("Buy", "Sell")
SORT_FIELDS = ("trade_date", "symbol", "pnl", "entry_price", "exit_price", "quantity")
SORT_ORDERS = ("asc", "desc")
EMOTIONS = (
    "FOMO",
    "REVENGE",
    "TILT",
    "OVERRISK",
    "PATIENCE",
    "REGRET",
    "DISCIPLINE",
    "CONFIDENT",
    "ANXIOUS",
    "NEUTRAL",
)


@dataclass(frozen=True)
class FilterOptions:
    """The user's current filter and sort selection."""

    symbol: str = ""
    market: str = ""
    date_from: str = ""
    date_to: str = ""
    pnl_filter: str = "all"
    strategy_id: str = ""
    side: str = ""
    emotional_states: tuple[str, ...] = field(default_factory=tuple)
    sort_by: str = "trade_date"
    sort_order: str = "desc"
    cursor: str = ""

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly dict (tuples become lists)."""
        return {
            f.name: list(getattr(self, f.name)) if f.name == "emotional_states" else getattr(self, f.name)
            for f in fields(self)
        }

    def with_changes(self, **changes: Any) -> "FilterOptions":
        return replace(self, **changes)


DEFAULT_FILTERS = FilterOptions()

FILTER_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(FilterOptions))


# =============================================================================
# Field validation
# =============================================================================
# Each validator returns the normalized value or raises ValueError. Empty
# strings (and an empty emotion list) always normalize to the field default.


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {type(value).__name__}")
    return value.strip()


def _symbol(value: Any) -> str:
    return _text(value).upper()


def _choice(choices: tuple[str, ...], allow_empty: bool) -> Callable[[Any], str]:
    def validate(value: Any) -> str:
        text = _text(value)
        if text == "" and allow_empty:
            return ""
        if text not in choices:
            raise ValueError(f"{text!r} is not one of {', '.join(choices)}")
        return text

    return validate


def _iso_date(value: Any) -> str:
    text = _text(value)
    if text == "":
        return ""
    try:
        return dt.date.fromisoformat(text).isoformat()
    except ValueError:
        raise ValueError(f"{text!r} is not an ISO date (YYYY-MM-DD)") from None


def _emotions(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        raise ValueError(f"expected a list of emotions, got {type(value).__name__}")

    normalized: list[str] = []
    for item in items:
        emotion = _text(item).upper()
        if emotion == "":
            continue
        if emotion not in EMOTIONS:
            raise ValueError(f"{emotion!r} is not a known emotional state")
        if emotion not in normalized:
            normalized.append(emotion)
    return tuple(normalized)


FIELD_VALIDATORS: dict[str, Callable[[Any], Any]] = {
    "symbol": _symbol,
    "market": _choice(MARKETS, allow_empty=True),
    "date_from": _iso_date,
    "date_to": _iso_date,
    "pnl_filter": _choice(PNL_FILTERS, allow_empty=False),
    "strategy_id": _text,
    "side": _choice(SIDES, allow_empty=True),
    "emotional_states": _emotions,
    "sort_by": _choice(SORT_FIELDS, allow_empty=False),
    "sort_order": _choice(SORT_ORDERS, allow_empty=False),
    "cursor": _text,
}


def validate_field(name: str, value: Any) -> Any:
    """
    Normalize one field value.

    Raises:
        KeyError: If ``name`` is not a filter field
        ValueError: If the value is not valid for the field
    """
    if name not in FIELD_VALIDATORS:
        raise KeyError(name)
    return FIELD_VALIDATORS[name](value)


def validate_partial(partial: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a partial update strictly; any bad field raises."""
    return {name: validate_field(name, value) for name, value in partial.items()}


def coerce_filters(raw: Any) -> FilterOptions | None:
    """
    Build FilterOptions from loosely structured data (e.g. a persisted record).

    Unknown keys are ignored and invalid values fall back to their defaults,
    so a stale record from an older layout still loads. Returns None when
    ``raw`` is not a mapping at all.
    """
    if isinstance(raw, FilterOptions):
        return raw
    if not isinstance(raw, Mapping):
        return None

    values: dict[str, Any] = {}
    for name in FILTER_FIELDS:
        if name not in raw:
            continue
        try:
            values[name] = validate_field(name, raw[name])
        except ValueError as e:
            logger.debug("Dropping invalid %s in stored filters: %s", name, e)
    return DEFAULT_FILTERS.with_changes(**values)


def merge_with_defaults(partial: Mapping[str, Any]) -> FilterOptions:
    """Full FilterOptions from a validated partial (missing fields default)."""
    return DEFAULT_FILTERS.with_changes(**partial)


def active_fields(filters: FilterOptions) -> list[str]:
    """Names of fields whose value differs from the default."""
    return [
        name for name in FILTER_FIELDS
        if getattr(filters, name) != getattr(DEFAULT_FILTERS, name)
    ]


def active_filter_count(filters: FilterOptions) -> int:
    """Number of fields not at their default."""
    return len(active_fields(filters))
