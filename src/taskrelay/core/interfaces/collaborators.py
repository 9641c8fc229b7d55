"""
External Collaborator Protocols

The orchestration engine delegates language understanding and the concrete
capability implementations to collaborators behind these narrow contracts.
All calls are asynchronous; the engine suspends at each one.

Collaborators:
    - PlannerProtocol: free text -> ExecutionPlan
    - ArgumentExtractorProtocol: task slice -> structured arguments
    - TaskSegmenterProtocol: fallback slicing of a combined instruction
    - EvaluationOracleProtocol: judges a condition against data
    - CapabilityInvokerProtocol: runs a named capability
    - ProgressListenerProtocol: receives fire-and-forget lifecycle events
"""

from __future__ import annotations

from typing import Any, Protocol

from taskrelay.core.domain.events import ProgressEvent
from taskrelay.core.domain.models import ExecutionPlan


class PlannerProtocol(Protocol):
    """Converts a request into an execution plan."""

    async def plan(self, text: str, context: str) -> ExecutionPlan:
        ...


class ArgumentExtractorProtocol(Protocol):
    """Maps a natural-language slice onto a capability's arguments."""

    async def extract(
        self,
        capability_name: str,
        natural_language_slice: str,
        context: str | None = None,
    ) -> dict[str, Any] | None:
        """
        Extract arguments for ``capability_name``.

        Returns:
            Argument mapping, or None when extraction failed.
        """
        ...


class TaskSegmenterProtocol(Protocol):
    """Picks the portion of a combined instruction that belongs to one task."""

    async def segment(self, full_text: str, task_list: list[str], target_index: int) -> str:
        ...


class EvaluationOracleProtocol(Protocol):
    """Judges a natural-language condition against collected data.

    The engine only looks for the token ``TRUE`` in the returned text.
    """

    async def evaluate(self, condition_text: str, data: str) -> str:
        ...


class CapabilityInvokerProtocol(Protocol):
    """
    Runs a named capability on the automation surface.

    Result Format:
        - success: bool
        - output (or result): Any - capability output on success
        - error: str - error message on failure

    Implementations should report failures in the result rather than raise;
    the invoker adapter still converts stray exceptions into failures.
    """

    async def invoke(self, capability_name: str, args: dict[str, Any]) -> dict[str, Any]:
        ...


class ProgressListenerProtocol(Protocol):
    """Subscriber on the progress boundary. May be sync or async."""

    def __call__(self, event: ProgressEvent) -> Any:
        ...
