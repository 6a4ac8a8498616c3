"""
Actions accepted by the filter-state reducer.

Each action is a frozen dataclass; together they form a closed set
(``FilterAction``). Payloads are validated and normalized when the action is
constructed, raising ``InvalidActionError``, so the reducer itself never has
to reject anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from ..exceptions import InvalidActionError
from .filters import FilterOptions, validate_field, validate_partial


def _validated_filters(action: str, filters: Any) -> FilterOptions:
    if not isinstance(filters, FilterOptions):
        raise InvalidActionError("filters must be a FilterOptions", action=action)
    try:
        return FilterOptions(**validate_partial(filters.to_dict()))
    except ValueError as e:
        raise InvalidActionError(str(e), action=action) from e


@dataclass(frozen=True)
class SetFilter:
    """Set one field."""

    key: str
    value: Any

    def __post_init__(self) -> None:
        try:
            normalized = validate_field(self.key, self.value)
        except KeyError:
            raise InvalidActionError("unknown filter field", action="SetFilter", key=self.key) from None
        except ValueError as e:
            raise InvalidActionError(str(e), action="SetFilter", key=self.key) from e
        object.__setattr__(self, "value", normalized)


@dataclass(frozen=True)
class SetFilters:
    """Set several fields at once; unspecified fields keep their values."""

    partial: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.partial, Mapping):
            raise InvalidActionError("partial must be a mapping", action="SetFilters")
        try:
            normalized = validate_partial(self.partial)
        except KeyError as e:
            raise InvalidActionError("unknown filter field", action="SetFilters", key=e.args[0]) from None
        except ValueError as e:
            raise InvalidActionError(str(e), action="SetFilters") from e
        object.__setattr__(self, "partial", normalized)


@dataclass(frozen=True)
class ClearFilters:
    """User cleared every filter."""


@dataclass(frozen=True)
class ResetFilters:
    """Filters reset programmatically."""


@dataclass(frozen=True)
class LoadFromAddress:
    """Seed filters from the address. Only valid before the store is seeded."""

    filters: FilterOptions

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", _validated_filters("LoadFromAddress", self.filters))


@dataclass(frozen=True)
class LoadFromStore:
    """Seed filters from the durable record. Only valid before the store is seeded."""

    filters: FilterOptions

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", _validated_filters("LoadFromStore", self.filters))


@dataclass(frozen=True)
class SetLoading:
    """Toggle the loading flag; leaves filters untouched."""

    is_loading: bool

    def __post_init__(self) -> None:
        if not isinstance(self.is_loading, bool):
            raise InvalidActionError("is_loading must be a bool", action="SetLoading")


@dataclass(frozen=True)
class SetSort:
    """Change the sort column and direction."""

    key: str
    direction: str = "desc"

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "key", validate_field("sort_by", self.key))
            object.__setattr__(self, "direction", validate_field("sort_order", self.direction))
        except ValueError as e:
            raise InvalidActionError(str(e), action="SetSort") from e


@dataclass(frozen=True)
class ResetSort:
    """Restore the default sort."""


FilterAction = Union[
    SetFilter,
    SetFilters,
    ClearFilters,
    ResetFilters,
    LoadFromAddress,
    LoadFromStore,
    SetLoading,
    SetSort,
    ResetSort,
]

SEED_ACTIONS = (LoadFromAddress, LoadFromStore)
