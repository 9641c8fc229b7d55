"""
Infrastructure Cache Module

Provides the in-memory store for session-scoped engine state.
"""

from taskrelay.infrastructure.cache.ttl_store import InMemoryTTLStore

__all__ = ["InMemoryTTLStore"]
