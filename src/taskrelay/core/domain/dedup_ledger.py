"""
Dedup Ledger

Session-scoped record of side effects already performed. A capability with
declared fingerprint fields (for example a calendar event's title, start and
end) is reserved in the ledger before it is invoked. A second reservation of
the same fingerprint waits while the first invocation is in flight, then is
refused if the effect happened so the caller can short-circuit instead of
repeating it.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
from typing import Any

from taskrelay.core.domain.capabilities import get_spec, is_blank
from taskrelay.core.interfaces.store import KeyValueStoreProtocol

_NAMESPACE_PREFIX = "dedup"


class DedupLedger:
    """Fingerprint side effects and refuse repeats within a session."""

    def __init__(
        self,
        *,
        store: KeyValueStoreProtocol,
        lock: asyncio.Lock | None = None,
        ttl_seconds: int = 0,
    ) -> None:
        self._store = store
        self._lock = lock or asyncio.Lock()
        self._ttl_seconds = ttl_seconds
        self._in_flight: dict[tuple[str, str], asyncio.Event] = {}

    @staticmethod
    def fingerprint(capability_name: str, args: dict[str, Any] | None) -> str | None:
        """
        Derive the dedup key for a capability call.

        Returns None when the capability is not fingerprinted or its leading
        fingerprint field (the effect's identity, e.g. the event title) is
        missing.
        """
        fields = get_spec(capability_name).fingerprint_fields
        args = args or {}
        if not fields or is_blank(args.get(fields[0])):
            return None

        values = [args.get(name) for name in fields]
        normalized = json.dumps(values, sort_keys=True, default=str)
        digest = hashlib.sha256(normalized.encode()).hexdigest()[:16]
        return f"{capability_name}:{digest}"

    async def reserve(self, session_id: str, key: str) -> bool:
        """
        Claim ``key`` for the session; False once the effect was performed.

        While another caller's invocation of the same key is still in
        flight, waits for it to settle. If that invocation was released the
        claim passes to this caller.
        """
        namespace = self._namespace(session_id)
        while True:
            async with self._lock:
                in_flight = self._in_flight.get((namespace, key))
                if in_flight is None:
                    if self._store.contains(namespace, key):
                        return False
                    self._store.add(namespace, key, ttl=self._ttl_seconds)
                    self._in_flight[(namespace, key)] = asyncio.Event()
                    return True
            await in_flight.wait()

    async def complete(self, session_id: str, key: str) -> None:
        """Mark a reserved effect as performed and wake any waiting duplicates."""
        async with self._lock:
            self._settle(self._namespace(session_id), key)

    async def release(self, session_id: str, key: str) -> None:
        """Drop a reservation whose invocation did not produce the effect."""
        namespace = self._namespace(session_id)
        async with self._lock:
            self._store.discard(namespace, key)
            self._settle(namespace, key)

    def contains(self, session_id: str, key: str) -> bool:
        return self._store.contains(self._namespace(session_id), key)

    def _settle(self, namespace: str, key: str) -> None:
        in_flight = self._in_flight.pop((namespace, key), None)
        if in_flight is not None:
            in_flight.set()

    @staticmethod
    def _namespace(session_id: str) -> str:
        return f"{_NAMESPACE_PREFIX}:{session_id}"
