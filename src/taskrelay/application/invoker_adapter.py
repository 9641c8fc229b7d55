"""Uniform call boundary to the capability invoker."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import structlog

from taskrelay.core.interfaces.collaborators import CapabilityInvokerProtocol
from taskrelay.core.interfaces.logging import LoggerProtocol

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class InvocationOutcome:
    """Normalized capability result: output on success, error text on failure."""

    success: bool
    output: Any = None
    error: str | None = None


class CapabilityInvokerAdapter:
    """Call capabilities with a timeout and normalize their result shape."""

    def __init__(
        self,
        invoker: CapabilityInvokerProtocol,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self._invoker = invoker
        self._timeout_seconds = timeout_seconds
        self._logger = logger or structlog.get_logger(__name__)

    async def invoke(self, capability_name: str, args: dict[str, Any]) -> InvocationOutcome:
        """
        Invoke a capability and never raise.

        Timeouts, exceptions and malformed responses all come back as
        failed outcomes carrying a string error.
        """
        self._logger.info(
            "capability.invoke", capability=capability_name, args_keys=list(args.keys())
        )
        start_time = time.time()
        try:
            raw = await asyncio.wait_for(
                self._invoker.invoke(capability_name, args),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._logger.error(
                "capability.timeout",
                capability=capability_name,
                timeout_seconds=self._timeout_seconds,
            )
            return InvocationOutcome(
                success=False,
                error=f"Capability call timed out after {self._timeout_seconds:g}s",
            )
        except Exception as error:
            self._logger.error("capability.exception", capability=capability_name, error=str(error))
            return InvocationOutcome(success=False, error=str(error) or type(error).__name__)

        outcome = self._normalize(raw)
        self._logger.info(
            "capability.complete",
            capability=capability_name,
            success=outcome.success,
            latency_ms=int((time.time() - start_time) * 1000),
        )
        return outcome

    @staticmethod
    def _normalize(raw: Any) -> InvocationOutcome:
        if not isinstance(raw, dict):
            return InvocationOutcome(
                success=False,
                error=f"Malformed capability response of type {type(raw).__name__}",
            )
        if raw.get("success"):
            output = raw["output"] if "output" in raw else raw.get("result")
            return InvocationOutcome(success=True, output=output)
        error = raw.get("error") or "Unknown capability execution error"
        return InvocationOutcome(success=False, error=str(error))
