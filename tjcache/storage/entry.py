"""The unit every TTL tier stores: a value, when it was written, and for how long it lives."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """An immutable cache entry.

    Live iff ``now - created_at < ttl``. Replacing a key creates a new entry.
    """

    value: T
    created_at: float
    ttl: float

    def is_live(self, now: float) -> bool:
        return now - self.created_at < self.ttl

    def remaining(self, now: float) -> float:
        """Seconds left before the entry expires (zero or less once it has)."""
        return self.created_at + self.ttl - now

    def to_record(self) -> dict[str, Any]:
        """Envelope stored by the durable tier."""
        return {"value": self.value, "createdAt": self.created_at, "ttl": self.ttl}

    @classmethod
    def from_record(cls, record: Any) -> "CacheEntry":
        """Rebuild an entry from its stored envelope.

        Raises:
            ValueError: If the record is not a well-formed envelope.
        """
        if not isinstance(record, dict) or "value" not in record:
            raise ValueError("not a cache envelope")
        created_at = record.get("createdAt")
        ttl = record.get("ttl")
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            raise ValueError("createdAt must be a number")
        if isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
            raise ValueError("ttl must be a number")
        return cls(value=record["value"], created_at=float(created_at), ttl=float(ttl))

