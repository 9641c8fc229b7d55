"""
Core Domain Enums

Defines execution patterns, step phases, error categories and task states
to eliminate magic strings throughout the engine.
"""

from enum import Enum


class ExecutionPattern(str, Enum):
    """Strategy a plan declares for running its tasks."""

    SINGLE = "single"
    PARALLEL = "parallel"
    SEQUENTIAL_CHAINED = "sequential_chained"
    CONDITIONAL = "conditional"

    @classmethod
    def parse(cls, value: "str | ExecutionPattern | None") -> "ExecutionPattern | None":
        """Parse a planner-provided pattern name.

        Unknown or empty values return None so the orchestrator falls back
        to task-count routing. Plain ``sequential`` is accepted as an alias.
        """
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_")
        if not text:
            return None
        if text == "sequential":
            return cls.SEQUENTIAL_CHAINED
        try:
            return cls(text)
        except ValueError:
            return None


class StepPhase(str, Enum):
    """Phase tag for results of a conditional plan."""

    CONDITION = "condition"
    EVALUATION = "evaluation"
    THEN = "then"
    ELSE = "else"


class ErrorCategory(str, Enum):
    """Stable failure taxonomy surfaced to callers."""

    NETWORK_ERROR = "network_error"
    AUTHENTICATION_ERROR = "authentication_error"
    PERMISSION_ERROR = "permission_error"
    MISSING_PARAMETER = "missing_parameter"
    INVALID_FORMAT = "invalid_format"
    NOT_FOUND = "not_found"
    SERVICE_UNAVAILABLE = "service_unavailable"
    EXECUTION_ERROR = "execution_error"


class TaskState(str, Enum):
    """Lifecycle state of a single task."""

    PENDING = "pending"
    ARGUMENT_EXTRACTION = "argument_extraction"
    CONFIRMATION_REQUIRED = "confirmation_required"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ProgressEventType(str, Enum):
    """Lifecycle events emitted on the progress boundary."""

    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CONFIRMATION_REQUIRED = "confirmation_required"
