"""Domain-specific exception types for taskrelay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class TaskrelayError(Exception):
    """Base exception for taskrelay domain errors."""

    message: str
    code: str = "taskrelay_error"
    details: Dict[str, Any] | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.details is None:
            self.details = {}


class PlanValidationError(TaskrelayError):
    """Error raised when an execution plan cannot be run as declared."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="plan_validation_error", details=details)


class CapabilityError(TaskrelayError):
    """Error raised when a capability call cannot be completed."""

    def __init__(
        self,
        message: str,
        *,
        capability_name: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if capability_name:
            details.setdefault("capability_name", capability_name)
        self.capability_name = capability_name
        super().__init__(message=message, code="capability_error", details=details)


class ExtractionError(TaskrelayError):
    """Error raised when arguments could not be extracted for a task."""

    def __init__(
        self,
        message: str,
        *,
        capability_name: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if capability_name:
            details.setdefault("capability_name", capability_name)
        self.capability_name = capability_name
        super().__init__(message=message, code="extraction_error", details=details)


class ConfigError(TaskrelayError):
    """Error raised for configuration failures."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="config_error", details=details)
