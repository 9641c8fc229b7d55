"""
Domain Models and Business Logic

This package contains the core domain of the orchestration engine:
- Execution plans, tasks and step results
- Capability specs (required and fingerprint fields)
- Confirmation gate, dedup ledger, output accumulator
- Error classification and configuration schemas
"""

from taskrelay.core.domain.enums import (
    ErrorCategory,
    ExecutionPattern,
    ProgressEventType,
    StepPhase,
    TaskState,
)
from taskrelay.core.domain.errors import (
    CapabilityError,
    ConfigError,
    ExtractionError,
    PlanValidationError,
    TaskrelayError,
)
from taskrelay.core.domain.models import (
    ConditionalBranch,
    ConditionalSpec,
    ConfirmationPayload,
    ErrorRecord,
    ExecutionPlan,
    GateDecision,
    StepResult,
    Task,
)

__all__ = [
    "CapabilityError",
    "ConditionalBranch",
    "ConditionalSpec",
    "ConfigError",
    "ConfirmationPayload",
    "ErrorCategory",
    "ErrorRecord",
    "ExecutionPattern",
    "ExecutionPlan",
    "ExtractionError",
    "GateDecision",
    "PlanValidationError",
    "ProgressEventType",
    "StepPhase",
    "StepResult",
    "Task",
    "TaskState",
    "TaskrelayError",
]
