"""Unit tests for DedupLedger."""

import asyncio

import pytest

from taskrelay.core.domain.dedup_ledger import DedupLedger
from taskrelay.infrastructure.cache.ttl_store import InMemoryTTLStore

EVENT = {"summary": "Film A", "start": "2026-10-17T18:00", "end": "2026-10-17T20:00"}


@pytest.fixture
def ledger() -> DedupLedger:
    return DedupLedger(store=InMemoryTTLStore(default_ttl=0))


class TestFingerprint:
    def test_fingerprinted_capability(self):
        key = DedupLedger.fingerprint("calendar_create_event", EVENT)

        assert key is not None
        assert key.startswith("calendar_create_event:")
        assert len(key.split(":", 1)[1]) == 16

    def test_fingerprint_ignores_unrelated_fields(self):
        noisy = {**EVENT, "description": "bring snacks"}

        assert DedupLedger.fingerprint("calendar_create_event", noisy) == (
            DedupLedger.fingerprint("calendar_create_event", EVENT)
        )

    def test_different_events_differ(self):
        other = {**EVENT, "summary": "Film B"}

        assert DedupLedger.fingerprint("calendar_create_event", other) != (
            DedupLedger.fingerprint("calendar_create_event", EVENT)
        )

    def test_not_fingerprinted_capability(self):
        assert DedupLedger.fingerprint("search_web", {"query": "x"}) is None

    def test_blank_identity_field(self):
        assert DedupLedger.fingerprint("calendar_create_event", {"summary": ""}) is None


class TestReservation:
    async def test_completed_effect_is_refused(self, ledger):
        key = DedupLedger.fingerprint("calendar_create_event", EVENT)

        assert await ledger.reserve("s1", key) is True
        await ledger.complete("s1", key)

        assert await ledger.reserve("s1", key) is False
        assert ledger.contains("s1", key) is True

    async def test_sessions_are_isolated(self, ledger):
        key = DedupLedger.fingerprint("calendar_create_event", EVENT)

        assert await ledger.reserve("s1", key) is True
        assert await ledger.reserve("s2", key) is True

    async def test_release_allows_retry(self, ledger):
        key = DedupLedger.fingerprint("calendar_create_event", EVENT)
        await ledger.reserve("s1", key)

        await ledger.release("s1", key)

        assert ledger.contains("s1", key) is False
        assert await ledger.reserve("s1", key) is True


class TestInFlight:
    async def test_duplicate_waits_and_is_refused_after_success(self, ledger):
        key = DedupLedger.fingerprint("calendar_create_event", EVENT)
        await ledger.reserve("s1", key)

        waiter = asyncio.create_task(ledger.reserve("s1", key))
        await asyncio.sleep(0)
        assert not waiter.done()

        await ledger.complete("s1", key)

        assert await waiter is False

    async def test_duplicate_takes_over_after_release(self, ledger):
        key = DedupLedger.fingerprint("calendar_create_event", EVENT)
        await ledger.reserve("s1", key)

        waiter = asyncio.create_task(ledger.reserve("s1", key))
        await asyncio.sleep(0)
        await ledger.release("s1", key)

        assert await waiter is True
        assert ledger.contains("s1", key) is True
