"""Projection of filter state onto the address and the durable store."""

from .address import AddressBar, decode, decode_filters, encode, shareable_url
from .debounce import DebouncedSynchronizer, DebouncedTask
from .persistence import FilterPersistence, StrategyFilterPersistence
from .session import FilterSession

__all__ = [
    "AddressBar",
    "DebouncedSynchronizer",
    "DebouncedTask",
    "FilterPersistence",
    "FilterSession",
    "StrategyFilterPersistence",
    "decode",
    "decode_filters",
    "encode",
    "shareable_url",
]
