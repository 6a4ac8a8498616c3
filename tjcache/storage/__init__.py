"""Storage tiers backing the tjcache caches."""

from .backends import JsonFileBackend, MemoryBackend, StorageBackend
from .durable import DurableKeyStore
from .entry import CacheEntry
from .session import SessionKeyStore
from .transactional import TransactionalStore

__all__ = [
    "CacheEntry",
    "DurableKeyStore",
    "JsonFileBackend",
    "MemoryBackend",
    "SessionKeyStore",
    "StorageBackend",
    "TransactionalStore",
]
