"""
Engine Factory

Wires the orchestration core with infrastructure adapters based on an
engine configuration profile.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog

from taskrelay.application.config_loader import DEFAULT_PROFILE, ConfigLoader
from taskrelay.application.invoker_adapter import CapabilityInvokerAdapter
from taskrelay.application.orchestrator import Orchestrator
from taskrelay.application.progress import ProgressEmitter
from taskrelay.application.request_handler import RequestHandler
from taskrelay.application.task_executor import TaskExecutor
from taskrelay.core.domain.config_schema import EngineConfigSchema
from taskrelay.core.domain.confirmation_gate import ConfirmationGate
from taskrelay.core.domain.dedup_ledger import DedupLedger
from taskrelay.core.domain.error_classifier import ErrorClassifier
from taskrelay.core.domain.segmentation import ConnectorSegmenter
from taskrelay.core.interfaces.collaborators import (
    ArgumentExtractorProtocol,
    CapabilityInvokerProtocol,
    EvaluationOracleProtocol,
    PlannerProtocol,
    ProgressListenerProtocol,
    TaskSegmenterProtocol,
)
from taskrelay.core.interfaces.llm import LLMProviderProtocol
from taskrelay.core.interfaces.store import KeyValueStoreProtocol
from taskrelay.infrastructure.cache.ttl_store import InMemoryTTLStore
from taskrelay.infrastructure.collaborators.invoker_oracle import InvokerEvaluationOracle
from taskrelay.infrastructure.collaborators.llm_oracle import LLMEvaluationOracle
from taskrelay.infrastructure.collaborators.llm_segmenter import LLMTaskSegmenter
from taskrelay.infrastructure.invoker.http_invoker import HttpCapabilityInvoker


class EngineFactory:
    """Factory for creating an Orchestrator with dependency injection.

    Collaborators that are not injected are built from the configuration:
    the HTTP invoker, the in-memory TTL store and, when an LLM service can
    be created, the LLM segmenter and evaluation oracle.
    """

    def __init__(self, config: EngineConfigSchema | None = None) -> None:
        self.config = config or EngineConfigSchema()
        self.logger = structlog.get_logger().bind(component="engine_factory")
        self._llm: LLMProviderProtocol | None = None
        self._llm_failed = False

    @classmethod
    def from_profile(
        cls,
        profile: str = DEFAULT_PROFILE,
        *,
        config_dir: Path | str | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> "EngineFactory":
        """Load a profile with ``ConfigLoader`` and build a factory from it."""
        return cls(ConfigLoader(config_dir).load(profile, overrides=overrides))

    # ------------------------------------------------------------------
    # Infrastructure
    # ------------------------------------------------------------------

    def build_invoker(self) -> HttpCapabilityInvoker:
        cfg = self.config.invoker
        return HttpCapabilityInvoker(
            cfg.base_url,
            endpoint=cfg.endpoint,
            timeout_seconds=cfg.timeout_seconds,
        )

    def build_store(self) -> InMemoryTTLStore:
        return InMemoryTTLStore(default_ttl=self.config.dedup.ttl_seconds)

    def build_llm(self) -> LLMProviderProtocol | None:
        """Create the LiteLLM service once; None if its config is unusable."""
        if self._llm is not None or self._llm_failed:
            return self._llm

        from taskrelay.infrastructure.llm.litellm_service import LiteLLMService

        try:
            self._llm = LiteLLMService(self.config.llm.config_path)
        except (FileNotFoundError, ValueError) as e:
            self._llm_failed = True
            self.logger.warning("llm_service_unavailable", error=str(e))
        return self._llm

    def build_oracle(
        self, invoker: CapabilityInvokerProtocol
    ) -> EvaluationOracleProtocol | None:
        if self.config.evaluation.backend == "invoker":
            return InvokerEvaluationOracle(invoker)
        llm = self.build_llm()
        if llm is None:
            return None
        return LLMEvaluationOracle(llm, model=self.config.llm.model)

    def build_segmenter(self) -> TaskSegmenterProtocol | None:
        if not self.config.segmentation.use_external_fallback:
            return None
        llm = self.build_llm()
        if llm is None:
            return None
        return LLMTaskSegmenter(llm, model=self.config.llm.model)

    # ------------------------------------------------------------------
    # Engine
    # ------------------------------------------------------------------

    def create_orchestrator(
        self,
        *,
        extractor: ArgumentExtractorProtocol,
        invoker: CapabilityInvokerProtocol | None = None,
        oracle: EvaluationOracleProtocol | None = None,
        segmenter: TaskSegmenterProtocol | None = None,
        store: KeyValueStoreProtocol | None = None,
        listeners: list[ProgressListenerProtocol] | None = None,
    ) -> Orchestrator:
        """Create an Orchestrator.

        Args:
            extractor: Argument extractor (always supplied by the caller).
            invoker: Capability invoker; defaults to the HTTP invoker.
            oracle: Evaluation oracle; defaults to the configured backend.
            segmenter: Fallback segmenter; defaults to the LLM segmenter.
            store: Session state store; defaults to an in-memory TTL store.
            listeners: Progress listeners.
        """
        cfg = self.config
        invoker = invoker or self.build_invoker()
        store = store or self.build_store()
        if oracle is None:
            oracle = self.build_oracle(invoker)
        if segmenter is None:
            segmenter = self.build_segmenter()

        classifier = ErrorClassifier()
        lock = asyncio.Lock()
        executor = TaskExecutor(
            extractor=extractor,
            invoker=CapabilityInvokerAdapter(
                invoker, timeout_seconds=cfg.invoker.timeout_seconds
            ),
            gate=ConfirmationGate(
                store=store,
                classifier=classifier,
                lock=lock,
                ttl_seconds=cfg.confirmations.ttl_seconds,
            ),
            ledger=DedupLedger(store=store, lock=lock, ttl_seconds=cfg.dedup.ttl_seconds),
            classifier=classifier,
            segmenter=ConnectorSegmenter(),
            external_segmenter=segmenter,
            progress=ProgressEmitter(listeners),
        )

        self.logger.info(
            "orchestrator_created",
            invoker=type(invoker).__name__,
            oracle=type(oracle).__name__ if oracle else None,
            external_segmenter=type(segmenter).__name__ if segmenter else None,
            max_parallel_tasks=cfg.execution.max_parallel_tasks,
        )
        return Orchestrator(
            executor=executor,
            oracle=oracle,
            max_parallel_tasks=cfg.execution.max_parallel_tasks,
            min_output_chars=cfg.accumulator.min_output_chars,
            true_token=cfg.evaluation.true_token,
        )

    def create_request_handler(
        self,
        *,
        planner: PlannerProtocol,
        extractor: ArgumentExtractorProtocol,
        **kwargs: Any,
    ) -> RequestHandler:
        """Create a RequestHandler; extra kwargs go to ``create_orchestrator``."""
        orchestrator = self.create_orchestrator(extractor=extractor, **kwargs)
        return RequestHandler(planner=planner, orchestrator=orchestrator)
