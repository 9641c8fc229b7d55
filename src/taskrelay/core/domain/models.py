"""
Execution Data Types

Typed structures for plans, tasks and per-step results. Plans arrive from the
planner as plain dictionaries; ``ExecutionPlan.from_dict`` is the single
parsing point. Results leave the engine as ``StepResult`` objects and are
serialized with ``to_dict`` for transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from taskrelay.core.domain.enums import ErrorCategory, ExecutionPattern, StepPhase
from taskrelay.core.domain.errors import PlanValidationError


@dataclass(frozen=True)
class Task:
    """A single capability invocation requested by the planner.

    Attributes:
        capability_name: Name of the capability to invoke.
        ordinal: 1-based position of the task within its plan.
        natural_language_slice: Portion of the request this task covers.
            Empty when the planner did not segment the request.
    """

    capability_name: str
    ordinal: int
    natural_language_slice: str = ""


@dataclass(frozen=True)
class ConditionalBranch:
    """Instruction text plus the capabilities that implement it."""

    text: str
    capabilities: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ConditionalBranch | None":
        if not data:
            return None
        capabilities = data.get("capabilities", data.get("tools", []))
        return cls(text=str(data.get("text", "")), capabilities=tuple(capabilities or ()))

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "capabilities": list(self.capabilities)}


@dataclass(frozen=True)
class ConditionalSpec:
    """If/then/else description of a conditional plan."""

    condition: ConditionalBranch
    then: ConditionalBranch | None = None
    otherwise: ConditionalBranch | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConditionalSpec":
        condition = ConditionalBranch.from_dict(data.get("condition"))
        if condition is None:
            raise PlanValidationError("Conditional plan is missing its condition")
        return cls(
            condition=condition,
            then=ConditionalBranch.from_dict(data.get("then")),
            otherwise=ConditionalBranch.from_dict(data.get("else")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "condition": self.condition.to_dict(),
            "then": self.then.to_dict() if self.then else None,
            "else": self.otherwise.to_dict() if self.otherwise else None,
        }


@dataclass
class ExecutionPlan:
    """
    Structured description of tasks plus the strategy used to run them.

    Attributes:
        pattern: Declared execution pattern, or None to route by task count.
        tasks: Tasks in planner order. Empty only for conditional plans.
        original_request_text: The (pre-processed) request the plan came from.
        conditional_spec: Condition/then/else spec for conditional plans.
        context: Caller-supplied context (e.g. selected text) for extraction.
    """

    pattern: ExecutionPattern | None
    tasks: list[Task]
    original_request_text: str
    conditional_spec: ConditionalSpec | None = None
    context: str = ""

    @property
    def capability_names(self) -> list[str]:
        return [task.capability_name for task in self.tasks]

    def occurrences(self, capability_name: str) -> int:
        """Count how many tasks in the plan use ``capability_name``."""
        return sum(1 for task in self.tasks if task.capability_name == capability_name)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionPlan":
        """
        Build a plan from the planner's JSON shape.

        Tasks may be given as capability names or as objects with
        ``capability``/``capability_name`` and an optional ``slice``.

        Raises:
            PlanValidationError: If the task list is malformed.
        """
        raw_tasks = data.get("tasks", [])
        if not isinstance(raw_tasks, list):
            raise PlanValidationError("Plan 'tasks' must be a list")

        tasks: list[Task] = []
        for index, raw in enumerate(raw_tasks, start=1):
            if isinstance(raw, str):
                tasks.append(Task(capability_name=raw, ordinal=index))
            elif isinstance(raw, dict):
                name = raw.get("capability_name") or raw.get("capability")
                if not name:
                    raise PlanValidationError(
                        f"Task {index} has no capability name", details={"task": raw}
                    )
                tasks.append(
                    Task(
                        capability_name=str(name),
                        ordinal=int(raw.get("ordinal", index)),
                        natural_language_slice=str(
                            raw.get("natural_language_slice", raw.get("slice", "")) or ""
                        ),
                    )
                )
            else:
                raise PlanValidationError(f"Task {index} has unsupported type {type(raw).__name__}")

        conditional = data.get("conditional_spec") or data.get("conditional")
        return cls(
            pattern=ExecutionPattern.parse(data.get("pattern")),
            tasks=tasks,
            original_request_text=str(data.get("original_request_text", data.get("text", ""))),
            conditional_spec=ConditionalSpec.from_dict(conditional) if conditional else None,
            context=str(data.get("context", "") or ""),
        )


@dataclass
class ErrorRecord:
    """Classified failure with a user-facing explanation."""

    category: ErrorCategory
    raw_message: str
    user_facing_detail: str
    missing_fields: list[str] = field(default_factory=list)
    retryable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "raw_message": self.raw_message,
            "user_facing_detail": self.user_facing_detail,
            "missing_fields": list(self.missing_fields),
            "retryable": self.retryable,
        }


@dataclass
class ConfirmationPayload:
    """Proposed arguments for a sensitive capability awaiting approval."""

    capability_name: str
    proposed_arguments: dict[str, Any]
    human_summary: str
    context: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "capability_name": self.capability_name,
            "proposed_arguments": dict(self.proposed_arguments),
            "human_summary": self.human_summary,
            "context": self.context,
        }


@dataclass
class GateDecision:
    """Outcome of passing a task through the confirmation gate."""

    proceed: bool
    payload: ConfirmationPayload | None = None
    missing_fields_error: ErrorRecord | None = None


@dataclass
class StepResult:
    """
    Result of one task in a plan execution.

    Exactly one of ``output``, ``confirmation_payload`` and ``error`` is
    populated: ``output`` for successes, ``confirmation_payload`` for steps
    suspended on user approval, ``error`` for failures.
    """

    capability_name: str
    success: bool
    output: Any = None
    phase: StepPhase | None = None
    requires_confirmation: bool = False
    confirmation_payload: ConfirmationPayload | None = None
    error: ErrorRecord | None = None
    duplicate: bool = False
    ordinal: int | None = None

    def __post_init__(self) -> None:
        if self.success:
            consistent = self.error is None and self.confirmation_payload is None
        elif self.requires_confirmation:
            consistent = self.confirmation_payload is not None and self.error is None
        else:
            consistent = self.error is not None and self.confirmation_payload is None
        if not consistent or (self.success and self.requires_confirmation):
            raise ValueError(f"Inconsistent StepResult for {self.capability_name}")

    @classmethod
    def succeeded(
        cls,
        capability_name: str,
        output: Any,
        *,
        ordinal: int | None = None,
        duplicate: bool = False,
    ) -> "StepResult":
        return cls(
            capability_name=capability_name,
            success=True,
            output=output,
            ordinal=ordinal,
            duplicate=duplicate,
        )

    @classmethod
    def failed(
        cls, capability_name: str, error: ErrorRecord, *, ordinal: int | None = None
    ) -> "StepResult":
        return cls(capability_name=capability_name, success=False, error=error, ordinal=ordinal)

    @classmethod
    def confirmation(
        cls,
        capability_name: str,
        payload: ConfirmationPayload,
        *,
        ordinal: int | None = None,
    ) -> "StepResult":
        return cls(
            capability_name=capability_name,
            success=False,
            requires_confirmation=True,
            confirmation_payload=payload,
            ordinal=ordinal,
        )

    def with_phase(self, phase: StepPhase) -> "StepResult":
        """Tag the result with a conditional phase and return it."""
        self.phase = phase
        return self

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "capability_name": self.capability_name,
            "success": self.success,
        }
        if self.phase is not None:
            result["phase"] = self.phase.value
        if self.ordinal is not None:
            result["ordinal"] = self.ordinal
        if self.success:
            result["output"] = self.output
        if self.duplicate:
            result["duplicate"] = True
        if self.requires_confirmation and self.confirmation_payload:
            result["requires_confirmation"] = True
            result["confirmation_payload"] = self.confirmation_payload.to_dict()
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result
