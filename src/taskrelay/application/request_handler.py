"""Full request pipeline: planner, then orchestrator."""

from __future__ import annotations

import structlog

from taskrelay.application.orchestrator import DEFAULT_SESSION_ID, Orchestrator
from taskrelay.core.domain.models import ExecutionPlan, StepResult
from taskrelay.core.interfaces.collaborators import PlannerProtocol

PLANNER_STEP_NAME = "planner"

logger = structlog.get_logger(__name__)


class RequestHandler:
    """Turn a free-text request into step results."""

    def __init__(self, *, planner: PlannerProtocol, orchestrator: Orchestrator) -> None:
        self._planner = planner
        self._orchestrator = orchestrator

    async def handle(
        self,
        text: str,
        context: str = "",
        *,
        session_id: str = DEFAULT_SESSION_ID,
    ) -> list[StepResult]:
        """Plan and run a request; never raises."""
        try:
            plan = await self._planner.plan(text, context)
            if isinstance(plan, dict):
                plan = ExecutionPlan.from_dict(plan)
        except Exception as error:
            logger.error("request.planning_failed", error=str(error))
            classifier = self._orchestrator.executor.classifier
            return [
                StepResult.failed(PLANNER_STEP_NAME, classifier.classify(PLANNER_STEP_NAME, error))
            ]

        if not plan.original_request_text:
            plan.original_request_text = text
        if context and not plan.context:
            plan.context = context

        logger.info(
            "request.planned",
            pattern=plan.pattern.value if plan.pattern else None,
            tasks=plan.capability_names,
            session_id=session_id,
        )
        return await self._orchestrator.run(plan, session_id=session_id)
