"""
Orchestrator

Entry point of the engine: selects an execution strategy for a plan, runs
it, and resumes suspended confirmations through ``approve`` / ``deny``.

``run`` never raises. Every failure, including a malformed plan or an
unexpected exception inside a strategy, comes back as a ``StepResult``.
"""

from __future__ import annotations

from typing import Any

import structlog

from taskrelay.application.strategies import (
    DEFAULT_TRUE_TOKEN,
    ConditionalStrategy,
    ExecutionStrategy,
    ParallelStrategy,
    SequentialChainedStrategy,
    SingleTaskStrategy,
)
from taskrelay.application.task_executor import TaskExecutor
from taskrelay.core.domain.enums import ErrorCategory, ExecutionPattern
from taskrelay.core.domain.errors import PlanValidationError
from taskrelay.core.domain.models import ErrorRecord, ExecutionPlan, StepResult, Task
from taskrelay.core.domain.output_accumulator import DEFAULT_MIN_OUTPUT_CHARS
from taskrelay.core.interfaces.collaborators import EvaluationOracleProtocol
from taskrelay.core.interfaces.logging import LoggerProtocol

DEFAULT_SESSION_ID = "default"
ORCHESTRATOR_STEP_NAME = "orchestrator"
CANCELLED_MESSAGE = "Action cancelled by user"


class Orchestrator:
    """Dispatch execution plans to strategies and collect step results."""

    def __init__(
        self,
        *,
        executor: TaskExecutor,
        oracle: EvaluationOracleProtocol | None = None,
        max_parallel_tasks: int = 4,
        min_output_chars: int = DEFAULT_MIN_OUTPUT_CHARS,
        true_token: str = DEFAULT_TRUE_TOKEN,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self._executor = executor
        self._logger = logger or structlog.get_logger(__name__)
        self._strategies: dict[ExecutionPattern, ExecutionStrategy] = {
            ExecutionPattern.SINGLE: SingleTaskStrategy(executor),
            ExecutionPattern.PARALLEL: ParallelStrategy(
                executor, max_concurrency=max_parallel_tasks
            ),
            ExecutionPattern.SEQUENTIAL_CHAINED: SequentialChainedStrategy(
                executor, min_output_chars=min_output_chars
            ),
            ExecutionPattern.CONDITIONAL: ConditionalStrategy(
                executor, oracle, true_token=true_token
            ),
        }

    @property
    def executor(self) -> TaskExecutor:
        return self._executor

    def select_strategy(self, plan: ExecutionPlan) -> ExecutionStrategy:
        """
        Pick the strategy for ``plan``.

        Raises:
            PlanValidationError: If the plan cannot be executed at all.
        """
        pattern = plan.pattern
        if pattern is ExecutionPattern.CONDITIONAL:
            if plan.conditional_spec is None:
                raise PlanValidationError("Conditional plan has no condition/then/else spec")
            return self._strategies[pattern]

        if not plan.tasks:
            raise PlanValidationError("Plan has no tasks to execute")

        if pattern is None or pattern is ExecutionPattern.SINGLE:
            pattern = (
                ExecutionPattern.SINGLE if len(plan.tasks) == 1 else ExecutionPattern.PARALLEL
            )
        return self._strategies[pattern]

    async def run(
        self, plan: ExecutionPlan, *, session_id: str = DEFAULT_SESSION_ID
    ) -> list[StepResult]:
        """Execute a plan and return one result per emitted step."""
        try:
            strategy = self.select_strategy(plan)
        except PlanValidationError as error:
            self._logger.warning("orchestrator.invalid_plan", error=error.message)
            return [self._plan_failure(plan, error)]

        self._logger.info(
            "orchestrator.strategy_selected",
            strategy=strategy.name,
            task_count=len(plan.tasks),
            session_id=session_id,
        )
        try:
            results = await strategy.execute(plan, session_id)
        except PlanValidationError as error:
            self._logger.warning("orchestrator.invalid_plan", error=error.message)
            return [self._plan_failure(plan, error)]
        except Exception as error:
            self._logger.error(
                "orchestrator.unexpected_error",
                strategy=strategy.name,
                error=str(error),
                error_type=type(error).__name__,
            )
            name = plan.tasks[0].capability_name if plan.tasks else ORCHESTRATOR_STEP_NAME
            return [StepResult.failed(name, self._executor.classifier.classify(name, error))]

        self._logger.info(
            "orchestrator.completed",
            strategy=strategy.name,
            results=len(results),
            failures=sum(1 for result in results if result.error is not None),
        )
        return results

    async def approve(
        self,
        capability_name: str,
        edited_args: dict[str, Any],
        *,
        session_id: str = DEFAULT_SESSION_ID,
    ) -> StepResult:
        """Invoke a confirmed capability with the (possibly edited) arguments."""
        self._logger.info("confirmation.approved", capability=capability_name)
        task = Task(capability_name=capability_name, ordinal=0)
        try:
            result = await self._executor.invoke(task, dict(edited_args), session_id=session_id)
        except Exception as error:
            result = self._executor.failure(task, error)
        await self._executor.gate.release(session_id, capability_name)
        return result

    async def deny(
        self,
        capability_name: str | None = None,
        *,
        session_id: str = DEFAULT_SESSION_ID,
    ) -> StepResult:
        """Cancel a pending confirmation."""
        self._logger.info("confirmation.denied", capability=capability_name)
        await self._executor.gate.release(session_id, capability_name)
        return StepResult.failed(
            capability_name or ORCHESTRATOR_STEP_NAME,
            ErrorRecord(
                category=ErrorCategory.EXECUTION_ERROR,
                raw_message=CANCELLED_MESSAGE,
                user_facing_detail=CANCELLED_MESSAGE,
                retryable=False,
            ),
        )

    @staticmethod
    def _plan_failure(plan: ExecutionPlan, error: PlanValidationError) -> StepResult:
        name = plan.tasks[0].capability_name if plan.tasks else ORCHESTRATOR_STEP_NAME
        return StepResult.failed(
            name,
            ErrorRecord(
                category=ErrorCategory.EXECUTION_ERROR,
                raw_message=error.message,
                user_facing_detail=f"The request could not be executed: {error.message}",
                retryable=False,
            ),
        )
