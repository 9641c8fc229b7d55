"""Argument extractor that replays arguments declared alongside a plan."""

from __future__ import annotations

import copy
from collections import defaultdict, deque
from typing import Any

import structlog

from taskrelay.core.domain.errors import ExtractionError

logger = structlog.get_logger(__name__)


class ScriptedArgumentExtractor:
    """
    Serve pre-declared arguments instead of asking a language model.

    Arguments are looked up by (capability, slice) first, then taken in
    order from the capability's queue. Used by the CLI, where plan files
    carry each task's ``arguments``.
    """

    def __init__(self) -> None:
        self._by_slice: dict[tuple[str, str], dict[str, Any]] = {}
        self._queues: dict[str, deque[dict[str, Any]]] = defaultdict(deque)

    @classmethod
    def from_plan_dict(cls, data: dict[str, Any]) -> "ScriptedArgumentExtractor":
        """Collect ``arguments`` from task objects and conditional branches."""
        extractor = cls()
        for raw in data.get("tasks", []) or []:
            if not isinstance(raw, dict) or "arguments" not in raw:
                continue
            name = raw.get("capability_name") or raw.get("capability")
            slice_text = raw.get("natural_language_slice", raw.get("slice", "")) or ""
            extractor.add(str(name), raw["arguments"], slice_text=str(slice_text))

        for name, args in (data.get("arguments") or {}).items():
            for entry in args if isinstance(args, list) else [args]:
                extractor.add(name, entry)
        logger.debug("extractor.loaded", capabilities=sorted(extractor._queues))
        return extractor

    def add(self, capability_name: str, arguments: dict[str, Any], *, slice_text: str = "") -> None:
        if slice_text:
            self._by_slice[(capability_name, slice_text)] = dict(arguments)
        self._queues[capability_name].append(dict(arguments))

    async def extract(
        self,
        capability_name: str,
        natural_language_slice: str,
        context: str | None = None,
    ) -> dict[str, Any]:
        args = self._by_slice.get((capability_name, natural_language_slice))
        if args is None:
            queue = self._queues.get(capability_name)
            if not queue:
                raise ExtractionError(
                    "no arguments declared in the plan",
                    capability_name=capability_name,
                    details={"slice": natural_language_slice},
                )
            # The last entry is reused once the queue is down to one item
            args = queue.popleft() if len(queue) > 1 else queue[0]

        args = copy.deepcopy(args)
        if context:
            args.setdefault("context", context)
        return args
