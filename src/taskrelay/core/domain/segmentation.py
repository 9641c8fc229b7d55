"""
Connector Grammar

Splits a combined instruction into per-task segments using a small, fixed
connector vocabulary, and rewrites instructions for later steps of a chain.

Segment connectors: "and then", "and also", "then".
Chain connectors: "and then" or "then", else a bare "and".
"""

from __future__ import annotations

import re

_SEGMENT_SPLIT = re.compile(r"\s*,?\s+(?:and\s+then|and\s+also|then)\s+", re.IGNORECASE)

_CHAIN_CONNECTORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s+(?:and\s+then|then)\s+", re.IGNORECASE),
    re.compile(r"\s+and\s+", re.IGNORECASE),
)


class ConnectorSegmenter:
    """Deterministic segmentation over the connector vocabulary."""

    def split(self, text: str) -> list[str]:
        """Split ``text`` into ordered, non-empty segments."""
        parts = (part.strip(" ,.") for part in _SEGMENT_SPLIT.split(text.strip()))
        return [part for part in parts if part]

    def segment_for(self, text: str, task_count: int, target_index: int) -> str | None:
        """
        Return the segment for the task at ``target_index``.

        Only answers when the grammar yields exactly one segment per task;
        otherwise returns None so the caller can fall back.
        """
        segments = self.split(text)
        if len(segments) != task_count or not 0 <= target_index < task_count:
            return None
        return segments[target_index]

    def remaining_steps(self, text: str, step_number: int) -> str:
        """
        Drop the already-completed part of a chained instruction.

        Step 1 keeps the whole text; step ``k`` drops the first ``k - 1``
        connector-separated parts. If the text runs out of connectors the
        original text is returned.
        """
        remaining = text.strip()
        for _ in range(max(step_number - 1, 0)):
            tail = self._split_once(remaining)
            if tail is None:
                return text
            remaining = tail
        return remaining

    @staticmethod
    def _split_once(text: str) -> str | None:
        # "and then" / "then" win over a bare "and"; the leftmost match is cut
        for connector in _CHAIN_CONNECTORS:
            match = connector.search(text)
            if match and match.start() > 0 and text[match.end():].strip():
                return text[match.end():].strip()
        return None
