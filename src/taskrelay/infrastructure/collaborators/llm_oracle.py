"""Evaluation oracle backed directly by the LLM service."""

from __future__ import annotations

import structlog

from taskrelay.core.domain.errors import CapabilityError
from taskrelay.core.interfaces.llm import LLMProviderProtocol
from taskrelay.core.prompts.collaborator_prompts import build_evaluation_prompt

logger = structlog.get_logger(__name__)


class LLMEvaluationOracle:
    """Judge a condition against collected data and answer TRUE or FALSE."""

    def __init__(self, llm: LLMProviderProtocol, *, model: str | None = None) -> None:
        self._llm = llm
        self._model = model

    async def evaluate(self, condition_text: str, data: str) -> str:
        """
        Return the model's raw answer.

        Raises:
            CapabilityError: If the completion failed.
        """
        prompt = build_evaluation_prompt(condition_text, data)
        result = await self._llm.complete(
            [{"role": "user", "content": prompt}],
            model=self._model,
            temperature=0,
            max_tokens=10,
        )
        if not result.get("success"):
            raise CapabilityError(
                f"Condition evaluation failed: {result.get('error')}",
                details={"condition": condition_text},
            )
        answer = (result.get("content") or "").strip()
        logger.debug("oracle.answered", condition=condition_text, answer=answer)
        return answer
