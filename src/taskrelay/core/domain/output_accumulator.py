"""
Output Accumulator

Holds the carried context of one plan execution. Successful steps either
replace it, append to it (several runs of the same producer feeding a later
communication step), or leave it alone (communication steps consume the
context rather than produce it).
"""

from __future__ import annotations

import json
from typing import Any

from taskrelay.core.domain.capabilities import COMMUNICATION_CAPABILITIES, is_communication
from taskrelay.core.domain.models import ExecutionPlan

DEFAULT_MIN_OUTPUT_CHARS = 5
EMPTY_STRUCTURE_MARKER = "{}"


class OutputAccumulator:
    """Carried-context state for a single plan execution."""

    def __init__(
        self,
        plan: ExecutionPlan,
        *,
        min_output_chars: int = DEFAULT_MIN_OUTPUT_CHARS,
    ) -> None:
        self._initial = plan.context
        self._accumulated = ""
        self._min_output_chars = min_output_chars
        self._occurrences = {name: plan.occurrences(name) for name in plan.capability_names}
        self._plan_has_communication = any(
            name in COMMUNICATION_CAPABILITIES for name in plan.capability_names
        )

    @property
    def value(self) -> str:
        """Carried context: accumulated output, or the plan's original context."""
        return self._accumulated or self._initial

    @property
    def has_output(self) -> bool:
        return bool(self._accumulated)

    @staticmethod
    def extract_text(output: Any) -> str:
        """Return the textual form of a step output."""
        if output is None:
            return ""
        if isinstance(output, str):
            return output
        if isinstance(output, dict):
            for key in ("llm_response", "content"):
                value = output.get(key)
                if isinstance(value, str) and value:
                    return value
        try:
            return json.dumps(output, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return str(output)

    def is_usable(self, text: str) -> bool:
        stripped = text.strip()
        return (
            bool(stripped)
            and stripped != EMPTY_STRUCTURE_MARKER
            and len(stripped) > self._min_output_chars
        )

    def update(self, capability_name: str, output: Any) -> bool:
        """
        Fold a successful step's output into the carried context.

        Returns:
            True if the carried context changed.
        """
        text = self.extract_text(output)
        if not self.is_usable(text):
            return False

        communication = is_communication(capability_name)
        repeated = self._occurrences.get(capability_name, 0) > 1

        if not communication and repeated and self._plan_has_communication:
            self._accumulated = f"{self._accumulated}\n\n{text}" if self._accumulated else text
            return True
        if communication and self.value:
            return False
        self._accumulated = text
        return True
