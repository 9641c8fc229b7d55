"""Execution strategies for plans.

Each strategy decides the order in which a plan's tasks run and which
instruction text each task sees; the per-task work is delegated to the
shared ``TaskExecutor``.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import structlog

from taskrelay.application.task_executor import TaskExecutor
from taskrelay.core.domain.enums import StepPhase
from taskrelay.core.domain.errors import PlanValidationError
from taskrelay.core.domain.models import (
    ConditionalBranch,
    ExecutionPlan,
    StepResult,
    Task,
)
from taskrelay.core.domain.output_accumulator import DEFAULT_MIN_OUTPUT_CHARS, OutputAccumulator
from taskrelay.core.interfaces.collaborators import EvaluationOracleProtocol

logger = structlog.get_logger(__name__)

EVALUATION_STEP_NAME = "conditional_evaluation"
DEFAULT_TRUE_TOKEN = "TRUE"


class ExecutionStrategy(Protocol):
    """Protocol for execution strategies."""

    name: str

    async def execute(self, plan: ExecutionPlan, session_id: str) -> list[StepResult]: ...


# --- Helpers ---


async def _run_guarded(
    executor: TaskExecutor,
    task: Task,
    text: str,
    *,
    session_id: str,
    context: str = "",
    track_confirmation: bool = False,
) -> StepResult | None:
    """Run a task, converting unexpected exceptions into a failed result."""
    try:
        return await executor.execute(
            task,
            text,
            session_id=session_id,
            context=context,
            track_confirmation=track_confirmation,
        )
    except Exception as error:
        logger.error(
            "task.unexpected_error",
            capability=task.capability_name,
            step=task.ordinal,
            error=str(error),
        )
        return executor.failure(task, error)


def _require(result: StepResult | None, executor: TaskExecutor, task: Task) -> StepResult:
    if result is None:
        return executor.failure(task, "task produced no result")
    return result


# --- Strategies ---


class SingleTaskStrategy:
    """Invoke the only task of a plan directly."""

    name = "single"

    def __init__(self, executor: TaskExecutor) -> None:
        self._executor = executor

    async def execute(self, plan: ExecutionPlan, session_id: str) -> list[StepResult]:
        task = plan.tasks[0]
        text = task.natural_language_slice or plan.original_request_text
        result = await _run_guarded(
            self._executor, task, text, session_id=session_id, context=plan.context
        )
        return [_require(result, self._executor, task)]


class ParallelStrategy:
    """
    Run independent tasks concurrently.

    Results are collected by original task index, so the returned list
    always has one entry per task in plan order. A failing task never
    cancels its siblings.
    """

    name = "parallel"

    def __init__(self, executor: TaskExecutor, *, max_concurrency: int = 4) -> None:
        self._executor = executor
        self._max_concurrency = max(1, max_concurrency)

    async def execute(self, plan: ExecutionPlan, session_id: str) -> list[StepResult]:
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(index: int, task: Task) -> StepResult:
            async with semaphore:
                try:
                    text = await self._executor.resolve_slice(plan, index)
                except Exception as error:
                    return self._executor.failure(task, error)
                result = await _run_guarded(
                    self._executor, task, text, session_id=session_id, context=plan.context
                )
                return _require(result, self._executor, task)

        logger.info("parallel.started", task_count=len(plan.tasks), session_id=session_id)
        results = await asyncio.gather(*(run(i, task) for i, task in enumerate(plan.tasks)))
        return list(results)


class SequentialChainedStrategy:
    """
    Run tasks in order, feeding each step's output into the next.

    From step 2 on, the instruction becomes the carried context followed by
    the part of the request that is still to be done.
    """

    name = "sequential_chained"

    def __init__(
        self,
        executor: TaskExecutor,
        *,
        min_output_chars: int = DEFAULT_MIN_OUTPUT_CHARS,
    ) -> None:
        self._executor = executor
        self._min_output_chars = min_output_chars

    async def execute(self, plan: ExecutionPlan, session_id: str) -> list[StepResult]:
        accumulator = OutputAccumulator(plan, min_output_chars=self._min_output_chars)
        results: list[StepResult] = []

        for index, task in enumerate(plan.tasks):
            step_number = index + 1
            try:
                text = await self._instruction_for(plan, index, step_number, accumulator)
            except Exception as error:
                results.append(self._executor.failure(task, error))
                continue

            logger.info(
                "chain.step_started",
                capability=task.capability_name,
                step=step_number,
                total=len(plan.tasks),
            )
            result = await _run_guarded(
                self._executor,
                task,
                text,
                session_id=session_id,
                context=accumulator.value,
                track_confirmation=True,
            )
            if result is None:
                continue
            results.append(result)

            if result.success and not result.duplicate:
                changed = accumulator.update(task.capability_name, result.output)
                logger.info(
                    "chain.step_completed",
                    capability=task.capability_name,
                    step=step_number,
                    context_updated=changed,
                    context_chars=len(accumulator.value),
                )

        return results

    async def _instruction_for(
        self,
        plan: ExecutionPlan,
        index: int,
        step_number: int,
        accumulator: OutputAccumulator,
    ) -> str:
        task = plan.tasks[index]
        if plan.occurrences(task.capability_name) > 1:
            return await self._executor.resolve_slice(plan, index)

        original = plan.original_request_text
        if step_number > 1 and accumulator.has_output:
            remaining = task.natural_language_slice or self._executor.segmenter.remaining_steps(
                original, step_number
            )
            return f"{accumulator.value} {remaining}"
        return task.natural_language_slice or original


class ConditionalStrategy:
    """
    Run condition tasks, ask the oracle, then run the matching branch.

    The oracle's answer counts as true iff it contains the true token
    (case-insensitive). Results are tagged with their phase.
    """

    name = "conditional"

    def __init__(
        self,
        executor: TaskExecutor,
        oracle: EvaluationOracleProtocol | None,
        *,
        true_token: str = DEFAULT_TRUE_TOKEN,
    ) -> None:
        self._executor = executor
        self._oracle = oracle
        self._true_token = true_token.upper()

    async def execute(self, plan: ExecutionPlan, session_id: str) -> list[StepResult]:
        spec = plan.conditional_spec
        if spec is None:
            raise PlanValidationError("Conditional plan has no condition/then/else spec")
        if self._oracle is None:
            raise PlanValidationError("No evaluation oracle configured for conditional plans")

        ordinal = 1
        condition_results = await self._run_branch(
            spec.condition, StepPhase.CONDITION, session_id, plan.context, ordinal
        )
        ordinal += len(spec.condition.capabilities)

        data = "\n".join(self._data_of(result) for result in condition_results)
        decision = await self._evaluate(spec.condition.text, data)
        verdict = "TRUE" if decision else "FALSE"
        logger.info("conditional.evaluated", condition=spec.condition.text, result=verdict)

        evaluation = StepResult.succeeded(
            EVALUATION_STEP_NAME,
            f'Condition "{spec.condition.text}" was {verdict}',
        ).with_phase(StepPhase.EVALUATION)

        branch = spec.then if decision else spec.otherwise
        phase = StepPhase.THEN if decision else StepPhase.ELSE
        branch_results: list[StepResult] = []
        if branch is not None and branch.capabilities:
            branch_results = await self._run_branch(
                branch, phase, session_id, plan.context, ordinal + 1
            )
        else:
            logger.info("conditional.no_branch", result=verdict)

        return [*condition_results, evaluation, *branch_results]

    async def _run_branch(
        self,
        branch: ConditionalBranch,
        phase: StepPhase,
        session_id: str,
        context: str,
        first_ordinal: int,
    ) -> list[StepResult]:
        results: list[StepResult] = []
        for offset, capability_name in enumerate(branch.capabilities):
            task = Task(
                capability_name=capability_name,
                ordinal=first_ordinal + offset,
                natural_language_slice=branch.text,
            )
            result = await _run_guarded(
                self._executor, task, branch.text, session_id=session_id, context=context
            )
            results.append(_require(result, self._executor, task).with_phase(phase))
        return results

    async def _evaluate(self, condition_text: str, data: str) -> bool:
        assert self._oracle is not None
        try:
            answer = await self._oracle.evaluate(condition_text, data)
        except Exception as error:
            logger.warning("conditional.oracle_failed", condition=condition_text, error=str(error))
            return False
        return self._true_token in str(answer or "").upper()

    @staticmethod
    def _data_of(result: StepResult) -> str:
        if result.success:
            return OutputAccumulator.extract_text(result.output)
        if result.error is not None:
            return result.error.user_facing_detail
        return ""
