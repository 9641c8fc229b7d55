"""HTTP capability invoker for the automation surface's tools endpoint."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
import structlog

logger = structlog.get_logger(__name__)


class HttpCapabilityInvoker:
    """
    Invoke capabilities by POSTing ``{"tool", "inputs"}`` to the tools API.

    Every response is reported in the invoker result format; non-2xx
    statuses and client errors never raise.
    """

    def __init__(
        self,
        base_url: str,
        *,
        endpoint: str = "/api/tools",
        timeout_seconds: float = 30.0,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        self._timeout_seconds = timeout_seconds

    @property
    def url(self) -> str:
        return self._url

    async def invoke(self, capability_name: str, args: dict[str, Any]) -> dict[str, Any]:
        """
        Call a capability.

        Returns:
            Dictionary with:
            - success: bool - Whether the capability succeeded
            - result: Any - Capability output (if successful)
            - error: str - Error message (if failed)
        """
        payload = {"tool": capability_name, "inputs": args}
        timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self._url, json=payload) as response:
                    body = await self._read_body(response)
                    if response.status >= 400:
                        logger.warning(
                            "invoker.http_error",
                            capability=capability_name,
                            status=response.status,
                        )
                        return {
                            "success": False,
                            "error": self._error_text(body, response.status),
                        }
        except asyncio.TimeoutError:
            logger.error("invoker.timeout", capability=capability_name, url=self._url)
            return {
                "success": False,
                "error": f"Request timed out after {self._timeout_seconds:g}s",
            }
        except aiohttp.ClientError as exc:
            logger.error("invoker.client_error", capability=capability_name, error=str(exc))
            return {"success": False, "error": f"Network error: {exc}"}

        if not isinstance(body, dict):
            return {"success": False, "error": "Malformed response from capability server"}
        if body.get("success"):
            return {"success": True, "result": body.get("result", body.get("output"))}
        return {
            "success": False,
            "error": str(body.get("error") or "Unknown tool execution error"),
        }

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return await response.text()

    @staticmethod
    def _error_text(body: Any, status: int) -> str:
        if isinstance(body, dict) and body.get("error"):
            return f"HTTP {status}: {body['error']}"
        if isinstance(body, str) and body.strip():
            return f"HTTP {status}: {body.strip()[:200]}"
        return f"HTTP {status}"
