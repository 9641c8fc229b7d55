"""
Confirmation Gate

Communication-class capabilities never run straight from a plan. The gate
validates their required arguments and hands back a ``ConfirmationPayload``
for the user to approve or edit. It also remembers which (capability, step)
pairs already produced a confirmation in a session so a revisited step does
not prompt twice.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from taskrelay.core.domain.capabilities import get_spec, is_communication
from taskrelay.core.domain.error_classifier import ErrorClassifier
from taskrelay.core.domain.models import ConfirmationPayload, GateDecision
from taskrelay.core.interfaces.logging import LoggerProtocol
from taskrelay.core.interfaces.store import KeyValueStoreProtocol

_NAMESPACE_PREFIX = "confirmations"


class ConfirmationGate:
    """Intercept sensitive capabilities and build confirmation payloads."""

    def __init__(
        self,
        *,
        store: KeyValueStoreProtocol,
        classifier: ErrorClassifier | None = None,
        lock: asyncio.Lock | None = None,
        ttl_seconds: int = 0,
        logger: LoggerProtocol | None = None,
    ) -> None:
        """
        Args:
            store: Holds processed-confirmation keys per session.
            classifier: Builds missing-field errors.
            lock: Lock shared with the dedup ledger for state mutations.
            ttl_seconds: Lifetime of a processed-confirmation key (0 = session).
            logger: Structured logger.
        """
        self._store = store
        self._classifier = classifier or ErrorClassifier()
        self._lock = lock or asyncio.Lock()
        self._ttl_seconds = ttl_seconds
        self._logger = logger or structlog.get_logger(__name__)

    def gate(
        self,
        capability_name: str,
        extracted_args: dict[str, Any] | None,
        *,
        context: str = "",
    ) -> GateDecision:
        """
        Decide whether a capability may run immediately.

        Non-communication capabilities proceed. Communication capabilities
        fail fast with a ``missing_parameter`` error when required fields
        are absent, otherwise they are suspended with a confirmation payload.
        """
        if not is_communication(capability_name):
            return GateDecision(proceed=True)

        spec = get_spec(capability_name)
        args = dict(extracted_args or {})
        missing = spec.missing_fields(args)
        if missing:
            self._logger.warning(
                "confirmation.missing_fields",
                capability=capability_name,
                missing=missing,
            )
            return GateDecision(
                proceed=False,
                missing_fields_error=self._classifier.missing_fields_error(
                    capability_name, missing
                ),
            )

        self._logger.info("confirmation.required", capability=capability_name)
        return GateDecision(
            proceed=False,
            payload=ConfirmationPayload(
                capability_name=capability_name,
                proposed_arguments=args,
                human_summary=f"Ready to {spec.action_label} with the following details:",
                context=f'This action was triggered by: "{context}"' if context else "",
            ),
        )

    async def should_prompt(self, session_id: str, capability_name: str, ordinal: int) -> bool:
        """Record the (capability, step) key; False if it was already recorded."""
        namespace = self._namespace(session_id)
        key = f"{capability_name}-{ordinal}"
        async with self._lock:
            if self._store.contains(namespace, key):
                self._logger.info(
                    "confirmation.duplicate_skipped",
                    capability=capability_name,
                    step=ordinal,
                    session_id=session_id,
                )
                return False
            self._store.add(namespace, key, ttl=self._ttl_seconds)
            return True

    async def release(self, session_id: str, capability_name: str | None = None) -> int:
        """Forget processed confirmations of a session, optionally for one capability."""
        namespace = self._namespace(session_id)
        released = 0
        async with self._lock:
            for key in self._store.keys(namespace):
                if capability_name is None or key.rsplit("-", 1)[0] == capability_name:
                    if self._store.discard(namespace, key):
                        released += 1
        return released

    @staticmethod
    def _namespace(session_id: str) -> str:
        return f"{_NAMESPACE_PREFIX}:{session_id}"
