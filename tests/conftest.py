"""Test configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from taskrelay.application.invoker_adapter import CapabilityInvokerAdapter
from taskrelay.application.orchestrator import Orchestrator
from taskrelay.application.progress import ProgressEmitter
from taskrelay.application.task_executor import TaskExecutor
from taskrelay.core.domain.confirmation_gate import ConfirmationGate
from taskrelay.core.domain.dedup_ledger import DedupLedger
from taskrelay.core.domain.error_classifier import ErrorClassifier
from taskrelay.infrastructure.cache.ttl_store import InMemoryTTLStore

from fakes import FakeExtractor, FakeInvoker


@pytest.fixture
def invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def store() -> InMemoryTTLStore:
    return InMemoryTTLStore(default_ttl=0)


@pytest.fixture
def make_executor(
    invoker: FakeInvoker, extractor: FakeExtractor, store: InMemoryTTLStore
) -> Callable[..., TaskExecutor]:
    """Build a TaskExecutor over the fake collaborators."""

    def _make(**overrides: Any) -> TaskExecutor:
        lock = asyncio.Lock()
        classifier = ErrorClassifier()
        params: dict[str, Any] = {
            "extractor": extractor,
            "invoker": CapabilityInvokerAdapter(invoker, timeout_seconds=1.0),
            "gate": ConfirmationGate(store=store, classifier=classifier, lock=lock),
            "ledger": DedupLedger(store=store, lock=lock),
            "classifier": classifier,
            "progress": ProgressEmitter(),
        }
        params.update(overrides)
        return TaskExecutor(**params)

    return _make


@pytest.fixture
def make_orchestrator(make_executor: Callable[..., TaskExecutor]) -> Callable[..., Orchestrator]:
    """Build an Orchestrator; kwargs are split between executor and orchestrator."""

    orchestrator_keys = {"oracle", "max_parallel_tasks", "min_output_chars", "true_token"}

    def _make(**kwargs: Any) -> Orchestrator:
        orchestrator_kwargs = {k: v for k, v in kwargs.items() if k in orchestrator_keys}
        executor_kwargs = {k: v for k, v in kwargs.items() if k not in orchestrator_keys}
        return Orchestrator(executor=make_executor(**executor_kwargs), **orchestrator_kwargs)

    return _make
