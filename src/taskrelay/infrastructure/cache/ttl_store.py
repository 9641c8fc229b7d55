"""
In-Memory TTL Store

Namespaced membership store backing the dedup ledger and the
processed-confirmation set. Each namespace is typically one session.

Usage:
    store = InMemoryTTLStore(default_ttl=3600)

    if not store.contains("dedup:default", key):
        store.add("dedup:default", key)
"""

from dataclasses import dataclass, field

from taskrelay.core.utils.time import monotonic_seconds


@dataclass
class StoreEntry:
    """Single stored key with TTL support."""

    key: str
    created_at: float = field(default_factory=monotonic_seconds)
    ttl_seconds: int = 3600

    def expired(self, now: float) -> bool:
        # 0 means no expiry (lifetime of the store)
        return self.ttl_seconds > 0 and now - self.created_at > self.ttl_seconds


class InMemoryTTLStore:
    """
    Process-local implementation of ``KeyValueStoreProtocol``.

    Expired entries are dropped lazily when they are read.

    Attributes:
        _namespaces: namespace -> key -> StoreEntry
        _default_ttl: Default time-to-live in seconds for entries
        _stats: Hit/miss statistics for monitoring
    """

    def __init__(self, default_ttl: int = 3600):
        """
        Initialize InMemoryTTLStore.

        Args:
            default_ttl: Default time-to-live in seconds for entries.
                        Set to 0 for store-lifetime entries (no expiry).
        """
        self._namespaces: dict[str, dict[str, StoreEntry]] = {}
        self._default_ttl = default_ttl
        self._stats = {"hits": 0, "misses": 0}

    def add(self, namespace: str, key: str, ttl: int | None = None) -> None:
        """
        Record a key.

        Args:
            namespace: Namespace (e.g. "dedup:<session>")
            key: Key to record
            ttl: Optional TTL override in seconds. If None, uses default_ttl.
                0 means no expiry.
        """
        ttl_seconds = ttl if ttl is not None else self._default_ttl
        self._namespaces.setdefault(namespace, {})[key] = StoreEntry(
            key=key, ttl_seconds=max(ttl_seconds, 0)
        )

    def contains(self, namespace: str, key: str) -> bool:
        entries = self._namespaces.get(namespace)
        entry = entries.get(key) if entries else None
        if entry is None:
            self._stats["misses"] += 1
            return False

        if entry.expired(monotonic_seconds()):
            self._drop(namespace, key)
            self._stats["misses"] += 1
            return False

        self._stats["hits"] += 1
        return True

    def discard(self, namespace: str, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key was found and removed, False otherwise
        """
        entries = self._namespaces.get(namespace)
        if entries and key in entries:
            self._drop(namespace, key)
            return True
        return False

    def keys(self, namespace: str) -> list[str]:
        entries = self._namespaces.get(namespace)
        if not entries:
            return []
        now = monotonic_seconds()
        for key in [k for k, entry in entries.items() if entry.expired(now)]:
            self._drop(namespace, key)
        return list(entries)

    def clear(self, namespace: str | None = None) -> None:
        """Clear one namespace, or all entries and statistics."""
        if namespace is not None:
            self._namespaces.pop(namespace, None)
            return
        self._namespaces.clear()
        self._stats = {"hits": 0, "misses": 0}

    def _drop(self, namespace: str, key: str) -> None:
        # A namespace goes away with its last key
        entries = self._namespaces[namespace]
        del entries[key]
        if not entries:
            del self._namespaces[namespace]

    @property
    def stats(self) -> dict[str, int]:
        """
        Return lookup hit/miss statistics.

        Returns:
            Dictionary with 'hits' and 'misses' counts
        """
        return self._stats.copy()

    @property
    def size(self) -> int:
        """Return number of live and not-yet-collected entries across namespaces."""
        return sum(len(entries) for entries in self._namespaces.values())
