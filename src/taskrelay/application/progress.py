"""
Progress Emitter

Fire-and-forget delivery of task lifecycle events. Async listeners are
scheduled as tasks on the running loop. Sync listeners run on a single
worker thread, in emit order, so a slow subscriber never holds up plan
execution. Listener errors are logged and dropped.
"""

from __future__ import annotations

import asyncio
import inspect
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import structlog

from taskrelay.core.domain.enums import ProgressEventType
from taskrelay.core.domain.events import ProgressEvent
from taskrelay.core.interfaces.collaborators import ProgressListenerProtocol

logger = structlog.get_logger(__name__)


def _is_async_listener(listener: ProgressListenerProtocol) -> bool:
    return inspect.iscoroutinefunction(listener) or inspect.iscoroutinefunction(
        getattr(listener, "__call__", None)
    )


class ProgressEmitter:
    """Broadcast ``ProgressEvent`` values to registered listeners."""

    def __init__(self, listeners: list[ProgressListenerProtocol] | None = None) -> None:
        self._listeners: list[ProgressListenerProtocol] = list(listeners or [])
        self._pending: set[asyncio.Future[Any]] = set()
        self._worker: ThreadPoolExecutor | None = None

    def subscribe(self, listener: ProgressListenerProtocol) -> None:
        self._listeners.append(listener)

    def emit(
        self,
        event_type: ProgressEventType,
        capability_name: str,
        *,
        session_id: str,
        ordinal: int | None = None,
        **details: Any,
    ) -> None:
        """Queue an event for every listener and return immediately."""
        if not self._listeners:
            return
        event = ProgressEvent(
            event_type=event_type,
            capability_name=capability_name,
            session_id=session_id,
            ordinal=ordinal,
            details=details,
        )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            for listener in self._listeners:
                self._call_sync(listener, event)
            return

        for listener in self._listeners:
            if _is_async_listener(listener):
                future = asyncio.ensure_future(self._call_async(listener, event))
            else:
                future = loop.run_in_executor(
                    self._sync_worker(), self._call_sync, listener, event
                )
            self._track(future)

    async def drain(self) -> None:
        """Wait for in-flight listeners (used on shutdown and in tests)."""
        await asyncio.sleep(0)
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def close(self) -> None:
        """Stop the sync listener thread once queued deliveries finish."""
        if self._worker is not None:
            self._worker.shutdown(wait=True)
            self._worker = None

    def _sync_worker(self) -> ThreadPoolExecutor:
        if self._worker is None:
            self._worker = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="taskrelay-progress"
            )
        return self._worker

    def _track(self, future: asyncio.Future[Any]) -> None:
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    @staticmethod
    def _call_sync(listener: ProgressListenerProtocol, event: ProgressEvent) -> None:
        try:
            result = listener(event)
        except Exception as error:
            logger.warning(
                "progress.listener_failed",
                event_type=event.event_type.value,
                error=str(error),
            )
            return
        if inspect.iscoroutine(result):
            result.close()
            logger.warning("progress.awaitable_dropped", event_type=event.event_type.value)

    @staticmethod
    async def _call_async(listener: ProgressListenerProtocol, event: ProgressEvent) -> None:
        try:
            await listener(event)
        except Exception as error:
            logger.warning(
                "progress.listener_failed",
                event_type=event.event_type.value,
                error=str(error),
            )
