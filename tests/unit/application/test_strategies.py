"""
Tests for the execution strategies.

Covers:
- Parallel ordering and failure isolation
- Context carry and instruction rewriting in chained plans
- Single-fire confirmations in chained plans
- Conditional branching on the oracle's answer
"""

import asyncio

from taskrelay.application.invoker_adapter import CapabilityInvokerAdapter
from taskrelay.core.domain.enums import ErrorCategory, StepPhase

from fakes import FakeOracle, make_plan

BOB_MESSAGE = {"contact_name": "Bob", "message": "Hi Bob"}
EVENT_ARGS = {"summary": "Film A", "start": "2026-10-17T18:00", "end": "2026-10-17T20:00"}


class DelayedInvoker:
    """Invoker whose capabilities finish after a per-name delay."""

    def __init__(self, delays):
        self.delays = delays
        self.completed = []

    async def invoke(self, capability_name, args):
        await asyncio.sleep(self.delays.get(capability_name, 0))
        self.completed.append(capability_name)
        return {"success": True, "output": f"{capability_name} done"}


class TestParallelStrategy:
    async def test_results_follow_plan_order(self, make_orchestrator):
        invoker = DelayedInvoker({"search_web": 0.05, "search_youtube": 0.02})
        orchestrator = make_orchestrator(invoker=CapabilityInvokerAdapter(invoker))
        plan = make_plan(
            ["search_web", "open_app", "search_youtube"],
            text="search cats and also open Safari and also find cat videos",
            pattern="parallel",
        )

        results = await orchestrator.run(plan, session_id="s1")

        assert invoker.completed == ["open_app", "search_youtube", "search_web"]
        assert [result.capability_name for result in results] == [
            "search_web",
            "open_app",
            "search_youtube",
        ]
        assert [result.ordinal for result in results] == [1, 2, 3]

    async def test_failure_does_not_cancel_siblings(self, make_orchestrator, invoker):
        invoker.responses["open_app"] = RuntimeError("application not found")
        orchestrator = make_orchestrator()
        plan = make_plan(["search_web", "open_app", "search_youtube"], pattern="parallel")

        results = await orchestrator.run(plan, session_id="s1")

        assert [result.success for result in results] == [True, False, True]
        assert results[1].error.category is ErrorCategory.NOT_FOUND

    async def test_identical_side_effects_run_once(self, make_orchestrator, invoker, extractor):
        extractor.mapping["calendar_create_event"] = EVENT_ARGS
        orchestrator = make_orchestrator()
        plan = make_plan(["calendar_create_event", "calendar_create_event"], pattern="parallel")

        results = await orchestrator.run(plan, session_id="s1")

        assert all(result.success for result in results)
        assert sorted(result.duplicate for result in results) == [False, True]
        assert invoker.names() == ["calendar_create_event"]

    async def test_duplicate_of_failed_side_effect_is_not_reported_done(
        self, make_orchestrator, extractor
    ):
        calls = []

        class SlowFailingInvoker:
            async def invoke(self, capability_name, args):
                calls.append(capability_name)
                await asyncio.sleep(0.02)
                return {"success": False, "error": "Service unavailable"}

        extractor.mapping["calendar_create_event"] = EVENT_ARGS
        orchestrator = make_orchestrator(invoker=CapabilityInvokerAdapter(SlowFailingInvoker()))
        plan = make_plan(["calendar_create_event", "calendar_create_event"], pattern="parallel")

        results = await orchestrator.run(plan, session_id="s1")

        assert [result.success for result in results] == [False, False]
        assert [result.duplicate for result in results] == [False, False]
        assert all(
            result.error.category is ErrorCategory.SERVICE_UNAVAILABLE for result in results
        )
        assert calls == ["calendar_create_event", "calendar_create_event"]

    async def test_duplicate_waits_for_slow_side_effect(self, make_orchestrator, extractor):
        invoker = DelayedInvoker({"calendar_create_event": 0.02})
        extractor.mapping["calendar_create_event"] = EVENT_ARGS
        orchestrator = make_orchestrator(invoker=CapabilityInvokerAdapter(invoker))
        plan = make_plan(["calendar_create_event", "calendar_create_event"], pattern="parallel")

        results = await orchestrator.run(plan, session_id="s1")

        assert all(result.success for result in results)
        assert sorted(result.duplicate for result in results) == [False, True]
        assert invoker.completed == ["calendar_create_event"]

    async def test_confirmations_are_not_tracked(self, make_orchestrator, extractor):
        extractor.mapping["send_imessage"] = BOB_MESSAGE
        orchestrator = make_orchestrator()
        plan = make_plan(["search_web", "send_imessage"], pattern="parallel")

        first = await orchestrator.run(plan, session_id="s1")
        second = await orchestrator.run(plan, session_id="s1")

        assert first[1].requires_confirmation is True
        assert second[1].requires_confirmation is True

    async def test_concurrency_limit(self, make_orchestrator):
        running = 0
        peak = 0

        class CountingInvoker:
            async def invoke(self, capability_name, args):
                nonlocal running, peak
                running += 1
                peak = max(peak, running)
                await asyncio.sleep(0.01)
                running -= 1
                return {"success": True, "output": "done"}

        orchestrator = make_orchestrator(
            invoker=CapabilityInvokerAdapter(CountingInvoker()), max_parallel_tasks=2
        )
        plan = make_plan(["search_web", "open_app", "search_youtube", "find_contact"])

        results = await orchestrator.run(plan, session_id="s1")

        assert len(results) == 4
        assert peak == 2


class TestSequentialChainedStrategy:
    async def test_output_is_carried_into_next_step(self, make_orchestrator, invoker, extractor):
        invoker.responses["search_web"] = {"success": True, "output": "weather: sunny and mild"}
        orchestrator = make_orchestrator()
        plan = make_plan(
            ["search_web", "call_llm"],
            text="search the weather and then summarize it",
            pattern="sequential_chained",
        )

        results = await orchestrator.run(plan, session_id="s1")

        assert [result.success for result in results] == [True, True]
        assert extractor.calls[1] == (
            "call_llm",
            "weather: sunny and mild summarize it",
            "weather: sunny and mild",
        )

    async def test_short_output_is_not_carried(self, make_orchestrator, invoker, extractor):
        invoker.responses["search_web"] = {"success": True, "output": "ok"}
        orchestrator = make_orchestrator()
        text = "search the weather and then summarize it"
        plan = make_plan(["search_web", "call_llm"], text=text, pattern="sequential_chained")

        await orchestrator.run(plan, session_id="s1")

        assert extractor.calls[1] == ("call_llm", text, None)

    async def test_analysis_feeds_confirmation(self, make_orchestrator, invoker, extractor):
        invoker.responses["call_llm"] = {"success": True, "output": "Result: 42"}

        def email_args(text, context):
            return {
                "to": "bob@example.com",
                "subject": "Analysis",
                "body": text.split(" email ")[0],
            }

        extractor.mapping["call_llm"] = {"prompt": "analyze the numbers"}
        extractor.mapping["gmail_send_email"] = email_args
        orchestrator = make_orchestrator()
        plan = make_plan(
            ["call_llm", "gmail_send_email"],
            text="analyze the numbers and then email the result to bob@example.com",
            pattern="sequential_chained",
        )

        results = await orchestrator.run(plan, session_id="s1")

        assert len(results) == 2
        assert results[0].success is True
        assert results[0].output == "Result: 42"
        assert results[1].requires_confirmation is True
        payload = results[1].confirmation_payload
        assert payload.proposed_arguments["body"] == "Result: 42"
        assert invoker.names() == ["call_llm"]

    async def test_missing_fields_short_circuit(self, make_orchestrator, invoker, extractor):
        extractor.mapping["gmail_send_email"] = {"to": "bob@example.com"}
        orchestrator = make_orchestrator()
        plan = make_plan(
            ["call_llm", "gmail_send_email"],
            text="analyze the numbers and then email bob",
            pattern="sequential_chained",
        )

        results = await orchestrator.run(plan, session_id="s1")

        error = results[1].error
        assert results[1].requires_confirmation is False
        assert error.category is ErrorCategory.MISSING_PARAMETER
        assert error.missing_fields == ["subject", "body"]
        assert invoker.names() == ["call_llm"]

    async def test_confirmation_fires_once_per_session(self, make_orchestrator, extractor):
        extractor.mapping["send_imessage"] = BOB_MESSAGE
        orchestrator = make_orchestrator()
        plan = make_plan(
            ["search_web", "send_imessage"],
            text="look up the score and then text Bob",
            pattern="sequential_chained",
        )

        first = await orchestrator.run(plan, session_id="s1")
        second = await orchestrator.run(plan, session_id="s1")
        other_session = await orchestrator.run(plan, session_id="s2")

        assert first[1].requires_confirmation is True
        assert [result.capability_name for result in second] == ["search_web"]
        assert other_session[1].requires_confirmation is True

    async def test_repeated_capability_uses_own_segment(self, make_orchestrator, extractor):
        orchestrator = make_orchestrator()
        plan = make_plan(
            ["search_web", "search_web"],
            text="search the weather and then search the traffic",
            pattern="sequential_chained",
        )

        await orchestrator.run(plan, session_id="s1")

        assert [call[1] for call in extractor.calls] == [
            "search the weather",
            "search the traffic",
        ]

    async def test_duplicate_step_does_not_replace_context(
        self, make_orchestrator, invoker, extractor
    ):
        extractor.mapping["calendar_create_event"] = EVENT_ARGS
        invoker.responses["search_web"] = {"success": True, "output": "Film A starts at 6pm"}
        orchestrator = make_orchestrator()
        plan = make_plan(["calendar_create_event"], pattern="single")
        await orchestrator.run(plan, session_id="s1")

        chained = make_plan(
            ["search_web", "calendar_create_event", "call_llm"],
            text="find the showtime then add it to my calendar and then summarize",
            pattern="sequential_chained",
        )
        results = await orchestrator.run(chained, session_id="s1")

        assert results[1].duplicate is True
        assert extractor.calls[-1][2] == "Film A starts at 6pm"


class TestConditionalStrategy:
    MUSIC_PLAN = {
        "conditional_spec": {
            "condition": {"text": "if music is playing", "capabilities": ["get_music_status"]},
            "then": {"text": "pause the music", "capabilities": ["pause_music"]},
            "else": {"text": "play some jazz", "capabilities": ["play_music"]},
        }
    }

    def _plan(self):
        return make_plan(
            [],
            text="if music is playing pause it, otherwise play some jazz",
            pattern="conditional",
            **self.MUSIC_PLAN,
        )

    async def test_false_runs_else_branch_only(self, make_orchestrator, invoker):
        invoker.responses["get_music_status"] = {"success": True, "output": "Music is paused"}
        oracle = FakeOracle("FALSE")
        orchestrator = make_orchestrator(oracle=oracle)

        results = await orchestrator.run(self._plan(), session_id="s1")

        assert invoker.names() == ["get_music_status", "play_music"]
        assert [result.phase for result in results] == [
            StepPhase.CONDITION,
            StepPhase.EVALUATION,
            StepPhase.ELSE,
        ]
        assert results[1].capability_name == "conditional_evaluation"
        assert results[1].output == 'Condition "if music is playing" was FALSE'
        assert results[2].ordinal == 3
        assert oracle.calls == [("if music is playing", "Music is paused")]

    async def test_true_token_is_case_insensitive(self, make_orchestrator, invoker):
        orchestrator = make_orchestrator(oracle=FakeOracle("the answer is true"))

        results = await orchestrator.run(self._plan(), session_id="s1")

        assert invoker.names() == ["get_music_status", "pause_music"]
        assert results[-1].phase is StepPhase.THEN

    async def test_oracle_failure_counts_as_false(self, make_orchestrator, invoker):
        orchestrator = make_orchestrator(oracle=FakeOracle(RuntimeError("model offline")))

        results = await orchestrator.run(self._plan(), session_id="s1")

        assert results[1].output.endswith("was FALSE")
        assert invoker.names() == ["get_music_status", "play_music"]

    async def test_failed_condition_task_feeds_error_detail(self, make_orchestrator, invoker):
        invoker.responses["get_music_status"] = {"success": False, "error": "403 Forbidden"}
        oracle = FakeOracle("FALSE")
        orchestrator = make_orchestrator(oracle=oracle)

        await orchestrator.run(self._plan(), session_id="s1")

        assert oracle.calls[0][1] == (
            "Permission denied - check account permissions for this service"
        )

    async def test_missing_branch_emits_no_branch_results(self, make_orchestrator, invoker):
        plan = make_plan(
            [],
            pattern="conditional",
            conditional_spec={
                "condition": {"text": "if it is raining", "capabilities": ["get_weather"]},
                "then": {"text": "text Bob to bring an umbrella", "capabilities": []},
            },
        )
        orchestrator = make_orchestrator(oracle=FakeOracle("TRUE"))

        results = await orchestrator.run(plan, session_id="s1")

        assert [result.phase for result in results] == [
            StepPhase.CONDITION,
            StepPhase.EVALUATION,
        ]

    async def test_branch_tasks_see_branch_text(self, make_orchestrator, extractor):
        orchestrator = make_orchestrator(oracle=FakeOracle("FALSE"))

        await orchestrator.run(self._plan(), session_id="s1")

        assert [call[1] for call in extractor.calls] == ["if music is playing", "play some jazz"]


async def test_single_strategy_prefers_slice(make_orchestrator, extractor):
    orchestrator = make_orchestrator()
    plan = make_plan(
        [{"capability": "search_web", "slice": "weather in Paris"}],
        text="what's the weather in Paris today",
    )

    results = await orchestrator.run(plan, session_id="s1")

    assert results[0].success is True
    assert extractor.calls == [("search_web", "weather in Paris", None)]


async def test_unexpected_task_error_becomes_failure(make_orchestrator, monkeypatch):
    orchestrator = make_orchestrator()

    async def explode(*args, **kwargs):
        raise RuntimeError("connection refused by peer")

    monkeypatch.setattr(orchestrator.executor, "execute", explode)

    results = await orchestrator.run(make_plan(["search_web"]), session_id="s1")

    assert results[0].success is False
    assert results[0].error.category is ErrorCategory.NETWORK_ERROR

