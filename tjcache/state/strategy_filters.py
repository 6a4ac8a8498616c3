"""
Filter options for the strategy list.

The strategy view keeps its own filter record next to the trade filters.
Unset criteria are ``None`` rather than an empty value, so "only inactive
strategies" (``is_active=False``) stays distinct from "any status".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Mapping

from .filters import SORT_ORDERS, _choice, _text

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY_SORT = "created_at"


@dataclass(frozen=True)
class StrategyFilterOptions:
    """The user's filter and sort selection on the strategy list."""

    search: str = ""
    is_active: bool | None = None
    performance_min: float | None = None
    performance_max: float | None = None
    min_trades: int | None = None
    has_rules: bool | None = None
    sort_by: str = DEFAULT_STRATEGY_SORT
    sort_order: str = "desc"

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def with_changes(self, **changes: Any) -> "StrategyFilterOptions":
        return replace(self, **changes)


DEFAULT_STRATEGY_FILTERS = StrategyFilterOptions()

STRATEGY_FILTER_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(StrategyFilterOptions))


def _optional_bool(value: Any) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise ValueError(f"expected true, false or null, got {value!r}")


def _optional_number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("expected a number, got a boolean")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{value!r} is not a number") from None


def _optional_count(value: Any) -> int | None:
    number = _optional_number(value)
    if number is None:
        return None
    if number < 0 or number != int(number):
        raise ValueError(f"{value!r} is not a non-negative whole number")
    return int(number)


def _sort_field(value: Any) -> str:
    return _text(value) or DEFAULT_STRATEGY_SORT


STRATEGY_FIELD_VALIDATORS: dict[str, Callable[[Any], Any]] = {
    "search": _text,
    "is_active": _optional_bool,
    "performance_min": _optional_number,
    "performance_max": _optional_number,
    "min_trades": _optional_count,
    "has_rules": _optional_bool,
    "sort_by": _sort_field,
    "sort_order": _choice(SORT_ORDERS, allow_empty=False),
}


def coerce_strategy_filters(raw: Any) -> StrategyFilterOptions | None:
    """
    Build StrategyFilterOptions from a persisted record.

    Unknown keys are ignored and invalid values fall back to their defaults.
    Returns None when ``raw`` is not a mapping.
    """
    if isinstance(raw, StrategyFilterOptions):
        return raw
    if not isinstance(raw, Mapping):
        return None

    values: dict[str, Any] = {}
    for name in STRATEGY_FILTER_FIELDS:
        if name not in raw:
            continue
        try:
            values[name] = STRATEGY_FIELD_VALIDATORS[name](raw[name])
        except ValueError as e:
            logger.debug("Dropping invalid %s in stored strategy filters: %s", name, e)
    return DEFAULT_STRATEGY_FILTERS.with_changes(**values)


def active_strategy_filter_count(filters: StrategyFilterOptions) -> int:
    """Number of criteria narrowing the list. Sorting is not a criterion."""
    criteria = (
        filters.search != "",
        filters.is_active is not None,
        filters.performance_min is not None,
        filters.performance_max is not None,
        filters.min_trades is not None,
        filters.has_rules is not None,
    )
    return sum(criteria)
