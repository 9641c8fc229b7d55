"""Evaluation oracle that routes through the ``call_llm`` capability."""

from __future__ import annotations

from typing import Any

import structlog

from taskrelay.core.domain.capabilities import CALL_LLM
from taskrelay.core.domain.errors import CapabilityError
from taskrelay.core.interfaces.collaborators import CapabilityInvokerProtocol
from taskrelay.core.prompts.collaborator_prompts import build_evaluation_prompt

logger = structlog.get_logger(__name__)


class InvokerEvaluationOracle:
    """
    Evaluate conditions on the automation surface.

    The prompt is sent as the ``prompt`` argument of ``call_llm`` and the
    answer is read from the result's ``llm_response`` field.
    """

    def __init__(self, invoker: CapabilityInvokerProtocol) -> None:
        self._invoker = invoker

    async def evaluate(self, condition_text: str, data: str) -> str:
        prompt = build_evaluation_prompt(condition_text, data)
        result = await self._invoker.invoke(CALL_LLM, {"prompt": prompt})
        if not result.get("success"):
            raise CapabilityError(
                str(result.get("error") or "call_llm failed"),
                capability_name=CALL_LLM,
                details={"condition": condition_text},
            )
        answer = self._answer_of(result.get("result", result.get("output")))
        logger.debug("oracle.answered", condition=condition_text, answer=answer)
        return answer

    @staticmethod
    def _answer_of(output: Any) -> str:
        if isinstance(output, dict):
            return str(output.get("llm_response") or "")
        return str(output or "")
