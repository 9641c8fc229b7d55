"""Fake collaborators and plan builders shared by the test suite."""

from __future__ import annotations

from typing import Any

from taskrelay.core.domain.models import ExecutionPlan


class FakeInvoker:
    """Capability invoker that records calls and replays canned responses.

    A response may be a result dict, an exception to raise, or a callable
    taking the arguments and returning either.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def invoke(self, capability_name: str, args: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((capability_name, dict(args)))
        response = self.responses.get(
            capability_name, {"success": True, "output": f"{capability_name} completed"}
        )
        if callable(response):
            response = response(args)
        if isinstance(response, Exception):
            raise response
        return response

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeExtractor:
    """Argument extractor driven by a per-capability mapping.

    Values may be a dict (returned as-is), None (extraction failure) or a
    callable ``(slice, context) -> dict | None``.
    """

    def __init__(self, mapping: dict[str, Any] | None = None) -> None:
        self.mapping = dict(mapping or {})
        self.calls: list[tuple[str, str, str | None]] = []

    async def extract(
        self,
        capability_name: str,
        natural_language_slice: str,
        context: str | None = None,
    ) -> dict[str, Any] | None:
        self.calls.append((capability_name, natural_language_slice, context))
        value = self.mapping.get(capability_name, {})
        if callable(value):
            return value(natural_language_slice, context)
        return dict(value) if value is not None else None


class FakeOracle:
    def __init__(self, answer: str | Exception = "FALSE") -> None:
        self.answer = answer
        self.calls: list[tuple[str, str]] = []

    async def evaluate(self, condition_text: str, data: str) -> str:
        self.calls.append((condition_text, data))
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


def make_plan(
    tasks: list[Any],
    text: str = "",
    pattern: str | None = None,
    **extra: Any,
) -> ExecutionPlan:
    """Build an ExecutionPlan from the planner's dict shape."""
    data: dict[str, Any] = {"tasks": tasks, "original_request_text": text, **extra}
    if pattern is not None:
        data["pattern"] = pattern
    return ExecutionPlan.from_dict(data)
