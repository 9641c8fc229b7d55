"""
Unit tests for HttpCapabilityInvoker.

Uses mocked aiohttp sessions to verify the request payload and the mapping
of HTTP outcomes onto the invoker result format.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from taskrelay.infrastructure.invoker.http_invoker import HttpCapabilityInvoker

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_response(*, json_data=None, text_data="", status=200, raise_on_json=False):
    """Create a mock aiohttp response context manager."""
    response = AsyncMock()
    response.status = status
    if raise_on_json:
        response.json = AsyncMock(side_effect=ValueError("not json"))
    else:
        response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text_data)

    ctx = AsyncMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return ctx


def _mock_session(response_ctx=None, *, post_error=None):
    """Create a mock aiohttp.ClientSession as an async context manager."""
    session = MagicMock()
    if post_error is not None:
        session.post = MagicMock(side_effect=post_error)
    else:
        session.post = MagicMock(return_value=response_ctx)

    session_ctx = AsyncMock()
    session_ctx.__aenter__ = AsyncMock(return_value=session)
    session_ctx.__aexit__ = AsyncMock(return_value=False)
    return session, session_ctx


@pytest.fixture
def invoker():
    return HttpCapabilityInvoker("http://localhost:3000/", timeout_seconds=5)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_url_joins_base_and_endpoint(invoker):
    assert invoker.url == "http://localhost:3000/api/tools"


async def test_posts_tool_and_inputs(invoker):
    session, session_ctx = _mock_session(
        _mock_response(json_data={"success": True, "result": {"events": 2}})
    )

    with patch("aiohttp.ClientSession", return_value=session_ctx):
        result = await invoker.invoke("calendar_list_events", {"day": "today"})

    assert result == {"success": True, "result": {"events": 2}}
    session.post.assert_called_once_with(
        "http://localhost:3000/api/tools",
        json={"tool": "calendar_list_events", "inputs": {"day": "today"}},
    )


async def test_tool_failure_is_reported(invoker):
    _, session_ctx = _mock_session(
        _mock_response(json_data={"success": False, "error": "Contact not found"})
    )

    with patch("aiohttp.ClientSession", return_value=session_ctx):
        result = await invoker.invoke("send_imessage", {})

    assert result == {"success": False, "error": "Contact not found"}


async def test_http_error_includes_status_and_body_error(invoker):
    _, session_ctx = _mock_session(
        _mock_response(json_data={"error": "Unauthorized"}, status=401)
    )

    with patch("aiohttp.ClientSession", return_value=session_ctx):
        result = await invoker.invoke("gmail_send_email", {})

    assert result == {"success": False, "error": "HTTP 401: Unauthorized"}


async def test_http_error_with_text_body(invoker):
    _, session_ctx = _mock_session(
        _mock_response(text_data="Service Unavailable", status=503, raise_on_json=True)
    )

    with patch("aiohttp.ClientSession", return_value=session_ctx):
        result = await invoker.invoke("search_web", {})

    assert result == {"success": False, "error": "HTTP 503: Service Unavailable"}


async def test_non_object_body_is_malformed(invoker):
    _, session_ctx = _mock_session(
        _mock_response(text_data="<html>ok</html>", raise_on_json=True)
    )

    with patch("aiohttp.ClientSession", return_value=session_ctx):
        result = await invoker.invoke("search_web", {})

    assert result["success"] is False
    assert "Malformed" in result["error"]


async def test_timeout(invoker):
    _, session_ctx = _mock_session(post_error=asyncio.TimeoutError())

    with patch("aiohttp.ClientSession", return_value=session_ctx):
        result = await invoker.invoke("search_web", {})

    assert result == {"success": False, "error": "Request timed out after 5s"}


async def test_client_error(invoker):
    _, session_ctx = _mock_session(post_error=aiohttp.ClientConnectionError("ECONNREFUSED"))

    with patch("aiohttp.ClientSession", return_value=session_ctx):
        result = await invoker.invoke("search_web", {})

    assert result == {"success": False, "error": "Network error: ECONNREFUSED"}
