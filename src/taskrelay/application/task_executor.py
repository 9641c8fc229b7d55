"""
Task Executor

The per-task invocation path shared by every strategy:

    PENDING -> ARGUMENT_EXTRACTION -> CONFIRMATION_REQUIRED | EXECUTING
            -> SUCCEEDED | FAILED

Extraction, the confirmation gate, the dedup ledger, the invoker adapter and
the error classifier are composed here so the strategies only decide order
and instruction text.
"""

from __future__ import annotations

from typing import Any

import structlog

from taskrelay.application.invoker_adapter import CapabilityInvokerAdapter
from taskrelay.application.progress import ProgressEmitter
from taskrelay.core.domain.capabilities import get_spec
from taskrelay.core.domain.confirmation_gate import ConfirmationGate
from taskrelay.core.domain.dedup_ledger import DedupLedger
from taskrelay.core.domain.enums import ErrorCategory, ProgressEventType, TaskState
from taskrelay.core.domain.error_classifier import ErrorClassifier
from taskrelay.core.domain.errors import ExtractionError
from taskrelay.core.domain.models import ErrorRecord, ExecutionPlan, StepResult, Task
from taskrelay.core.domain.segmentation import ConnectorSegmenter
from taskrelay.core.interfaces.collaborators import (
    ArgumentExtractorProtocol,
    TaskSegmenterProtocol,
)
from taskrelay.core.interfaces.logging import LoggerProtocol


class TaskExecutor:
    """Run one task through extraction, gating, dedup and invocation."""

    def __init__(
        self,
        *,
        extractor: ArgumentExtractorProtocol,
        invoker: CapabilityInvokerAdapter,
        gate: ConfirmationGate,
        ledger: DedupLedger,
        classifier: ErrorClassifier,
        segmenter: ConnectorSegmenter | None = None,
        external_segmenter: TaskSegmenterProtocol | None = None,
        progress: ProgressEmitter | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self._extractor = extractor
        self._invoker = invoker
        self._gate = gate
        self._ledger = ledger
        self._classifier = classifier
        self._segmenter = segmenter or ConnectorSegmenter()
        self._external_segmenter = external_segmenter
        self._progress = progress or ProgressEmitter()
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    @property
    def segmenter(self) -> ConnectorSegmenter:
        return self._segmenter

    @property
    def gate(self) -> ConfirmationGate:
        return self._gate

    @property
    def progress(self) -> ProgressEmitter:
        return self._progress

    async def resolve_slice(self, plan: ExecutionPlan, index: int) -> str:
        """
        Pick the instruction text for the task at ``index``.

        A planner-provided slice wins. When the capability repeats in a
        multi-task plan, the connector grammar is tried first and the
        external segmenter second; otherwise the whole request is reused.
        """
        task = plan.tasks[index]
        if task.natural_language_slice.strip():
            return task.natural_language_slice

        text = plan.original_request_text
        if len(plan.tasks) <= 1 or plan.occurrences(task.capability_name) <= 1:
            return text

        segment = self._segmenter.segment_for(text, len(plan.tasks), index)
        if segment:
            return segment

        if self._external_segmenter is not None:
            try:
                segment = await self._external_segmenter.segment(
                    text, plan.capability_names, index
                )
            except Exception as error:
                self._logger.warning(
                    "segmenter.fallback_failed",
                    capability=task.capability_name,
                    index=index,
                    error=str(error),
                )
                return text
            if segment and segment.strip():
                return segment.strip()
        return text

    async def extract(
        self, task: Task, text: str, *, context: str = ""
    ) -> tuple[dict[str, Any] | None, ErrorRecord | None]:
        """Extract arguments; returns (args, None) or (None, error)."""
        spec = get_spec(task.capability_name)
        try:
            args = await self._extractor.extract(
                task.capability_name,
                text,
                context if spec.accepts_context and context else None,
            )
        except ExtractionError as error:
            self._logger.warning(
                "extraction.failed",
                capability=task.capability_name,
                error=error.message,
                details=error.details,
            )
            args = None
            raw = error.message
        except Exception as error:
            self._logger.warning(
                "extraction.failed", capability=task.capability_name, error=str(error)
            )
            args = None
            raw = str(error)
        else:
            raw = "argument extractor returned no result"

        if args is None:
            return None, ErrorRecord(
                category=ErrorCategory.EXECUTION_ERROR,
                raw_message=raw,
                user_facing_detail=(
                    f"Could not understand the details for {task.capability_name}"
                ),
            )
        return dict(args), None

    async def execute(
        self,
        task: Task,
        text: str,
        *,
        session_id: str,
        context: str = "",
        track_confirmation: bool = False,
    ) -> StepResult | None:
        """
        Run a task end to end.

        Args:
            task: The task to run.
            text: Instruction text used for argument extraction.
            session_id: Session scoping the ledger and confirmation keys.
            context: Carried context, passed to context-aware extraction.
            track_confirmation: Record the (capability, step) key and skip a
                confirmation that was already emitted in this session.

        Returns:
            The step result, or None when a repeated confirmation was skipped.
        """
        name = task.capability_name
        self._progress.emit(
            ProgressEventType.STARTED, name, session_id=session_id, ordinal=task.ordinal
        )

        self._logger.debug(
            "task.state",
            capability=name,
            step=task.ordinal,
            state=TaskState.ARGUMENT_EXTRACTION.value,
        )
        args, extraction_error = await self.extract(task, text, context=context)
        if extraction_error is not None:
            return self._failed(task, extraction_error, session_id)

        decision = self._gate.gate(name, args, context=text)
        if decision.missing_fields_error is not None:
            return self._failed(task, decision.missing_fields_error, session_id)
        if decision.payload is not None:
            if track_confirmation and not await self._gate.should_prompt(
                session_id, name, task.ordinal
            ):
                return None
            self._logger.info(
                "task.state",
                capability=name,
                step=task.ordinal,
                state=TaskState.CONFIRMATION_REQUIRED.value,
            )
            self._progress.emit(
                ProgressEventType.CONFIRMATION_REQUIRED,
                name,
                session_id=session_id,
                ordinal=task.ordinal,
            )
            return StepResult.confirmation(name, decision.payload, ordinal=task.ordinal)

        return await self.invoke(task, args or {}, session_id=session_id)

    async def invoke(
        self, task: Task, args: dict[str, Any], *, session_id: str
    ) -> StepResult:
        """Invoke with dedup protection; used directly for approved actions."""
        name = task.capability_name
        dedup_key = self._ledger.fingerprint(name, args)
        if dedup_key is not None and not await self._ledger.reserve(session_id, dedup_key):
            self._logger.info(
                "dedup.duplicate_skipped", capability=name, step=task.ordinal, key=dedup_key
            )
            label = args.get(get_spec(name).fingerprint_fields[0])
            output = {
                "success": True,
                "message": f"Already completed earlier in this session: {label}",
                "duplicate": True,
            }
            self._progress.emit(
                ProgressEventType.SUCCEEDED,
                name,
                session_id=session_id,
                ordinal=task.ordinal,
                duplicate=True,
            )
            return StepResult.succeeded(name, output, ordinal=task.ordinal, duplicate=True)

        self._logger.debug("task.state", capability=name, state=TaskState.EXECUTING.value)
        try:
            outcome = await self._invoker.invoke(name, args)
        except BaseException:
            if dedup_key is not None:
                await self._ledger.release(session_id, dedup_key)
            raise
        if not outcome.success:
            if dedup_key is not None:
                await self._ledger.release(session_id, dedup_key)
            error = self._classifier.classify(name, outcome.error, args)
            return self._failed(task, error, session_id)

        if dedup_key is not None:
            await self._ledger.complete(session_id, dedup_key)

        self._progress.emit(
            ProgressEventType.SUCCEEDED, name, session_id=session_id, ordinal=task.ordinal
        )
        return StepResult.succeeded(name, outcome.output, ordinal=task.ordinal)

    def failure(self, task: Task, raw_error: Any) -> StepResult:
        """Classify an unexpected exception raised while running ``task``."""
        error = self._classifier.classify(task.capability_name, raw_error, {})
        return StepResult.failed(task.capability_name, error, ordinal=task.ordinal)

    def _failed(self, task: Task, error: ErrorRecord, session_id: str) -> StepResult:
        self._logger.warning(
            "task.failed",
            capability=task.capability_name,
            step=task.ordinal,
            category=error.category.value,
            detail=error.user_facing_detail,
        )
        self._progress.emit(
            ProgressEventType.FAILED,
            task.capability_name,
            session_id=session_id,
            ordinal=task.ordinal,
            category=error.category.value,
        )
        return StepResult.failed(task.capability_name, error, ordinal=task.ordinal)
