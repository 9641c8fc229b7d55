"""Tests for CapabilityInvokerAdapter normalization."""

import asyncio

from taskrelay.application.invoker_adapter import CapabilityInvokerAdapter

from fakes import FakeInvoker


class SlowInvoker:
    async def invoke(self, capability_name, args):
        await asyncio.sleep(1)
        return {"success": True, "output": "late"}


class TestInvoke:
    async def test_success_with_output(self):
        adapter = CapabilityInvokerAdapter(
            FakeInvoker({"search_web": {"success": True, "output": "sunny"}})
        )

        outcome = await adapter.invoke("search_web", {"query": "weather"})

        assert outcome.success is True
        assert outcome.output == "sunny"
        assert outcome.error is None

    async def test_success_with_result_field(self):
        adapter = CapabilityInvokerAdapter(
            FakeInvoker({"call_llm": {"success": True, "result": {"llm_response": "42"}}})
        )

        outcome = await adapter.invoke("call_llm", {"prompt": "x"})

        assert outcome.output == {"llm_response": "42"}

    async def test_failure_keeps_error_text(self):
        adapter = CapabilityInvokerAdapter(
            FakeInvoker({"open_app": {"success": False, "error": "application not found"}})
        )

        outcome = await adapter.invoke("open_app", {"app_name": "Foo"})

        assert outcome.success is False
        assert outcome.error == "application not found"

    async def test_failure_without_error_text(self):
        adapter = CapabilityInvokerAdapter(FakeInvoker({"open_app": {"success": False}}))

        outcome = await adapter.invoke("open_app", {})

        assert outcome.error == "Unknown capability execution error"

    async def test_exception_becomes_failure(self):
        adapter = CapabilityInvokerAdapter(
            FakeInvoker({"search_web": ConnectionRefusedError("Connection refused")})
        )

        outcome = await adapter.invoke("search_web", {})

        assert outcome.success is False
        assert outcome.error == "Connection refused"

    async def test_timeout_becomes_failure(self):
        adapter = CapabilityInvokerAdapter(SlowInvoker(), timeout_seconds=0.01)

        outcome = await adapter.invoke("search_web", {})

        assert outcome.success is False
        assert outcome.error == "Capability call timed out after 0.01s"

    async def test_malformed_response(self):
        adapter = CapabilityInvokerAdapter(FakeInvoker({"search_web": ["not", "a", "dict"]}))

        outcome = await adapter.invoke("search_web", {})

        assert outcome.success is False
        assert "Malformed capability response" in outcome.error
