"""
Key-Value Store Protocol

Session-scoped state that outlives a single plan execution (the dedup ledger
and the processed-confirmation set) lives behind this protocol so it can be
replaced by a shared store. Keys are namespaced, typically by session id,
and expire after a TTL.
"""

from typing import Protocol


class KeyValueStoreProtocol(Protocol):
    """Namespaced membership store with per-entry time-to-live."""

    def add(self, namespace: str, key: str, ttl: int | None = None) -> None:
        """Record ``key``; ``ttl`` in seconds overrides the store default (0 = never)."""
        ...

    def contains(self, namespace: str, key: str) -> bool:
        """Return True if ``key`` is present and not expired."""
        ...

    def discard(self, namespace: str, key: str) -> bool:
        """Remove ``key``; returns True if it was present."""
        ...

    def keys(self, namespace: str) -> list[str]:
        """Return the live keys of a namespace."""
        ...

    def clear(self, namespace: str | None = None) -> None:
        """Drop one namespace, or everything when ``namespace`` is None."""
        ...
