"""Session key store: lives as long as the session, no TTL envelope."""

from ..config.constants import MAX_DURABLE_PAYLOAD_BYTES, SESSION_KEY_PREFIX
from .backends import MemoryBackend, StorageBackend
from .keystore import NamespacedKeyStore


class SessionKeyStore(NamespacedKeyStore):
    """
    Session-scoped tier storing raw JSON payloads under ``session_<key>``.

    The end of the session is the expiry policy, so ``ttl`` arguments are
    accepted for interface parity with the other tiers and ignored.
    """

    prefix = SESSION_KEY_PREFIX
    tier = "session"

    def __init__(
        self,
        backend: StorageBackend | None = None,
        max_payload_bytes: int | None = MAX_DURABLE_PAYLOAD_BYTES,
    ):
        super().__init__(backend if backend is not None else MemoryBackend(), max_payload_bytes)
