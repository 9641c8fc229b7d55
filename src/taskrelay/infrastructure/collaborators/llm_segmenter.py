"""LLM-backed fallback segmenter for combined instructions."""

from __future__ import annotations

import structlog

from taskrelay.core.interfaces.llm import LLMProviderProtocol
from taskrelay.core.prompts.collaborator_prompts import (
    SEGMENTER_SYSTEM_PROMPT,
    build_segmenter_request,
)

logger = structlog.get_logger(__name__)


class LLMTaskSegmenter:
    """
    Ask a language model for the portion of a request that belongs to one task.

    Used only when the connector grammar cannot split the request into one
    segment per task. Falls back to the full text when the model fails or
    answers with nothing.
    """

    def __init__(
        self,
        llm: LLMProviderProtocol,
        *,
        model: str | None = None,
        max_tokens: int = 200,
    ) -> None:
        self._llm = llm
        self._model = model
        self._max_tokens = max_tokens

    async def segment(self, full_text: str, task_list: list[str], target_index: int) -> str:
        messages = [
            {"role": "system", "content": SEGMENTER_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": build_segmenter_request(full_text, task_list, target_index),
            },
        ]
        result = await self._llm.complete(
            messages, model=self._model, max_tokens=self._max_tokens, temperature=0.1
        )
        if not result.get("success"):
            logger.warning(
                "segmenter.llm_failed",
                target_index=target_index,
                error=result.get("error"),
            )
            return full_text

        segment = (result.get("content") or "").strip().strip('"')
        logger.debug("segmenter.extracted", target_index=target_index, segment=segment)
        return segment or full_text
