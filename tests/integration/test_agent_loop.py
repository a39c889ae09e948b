"""Integration tests for the agent turn loop with scripted models."""

import asyncio

import pytest

from tether import (
    Agent, AgentConfig, AgentState, CompactionConfig, Context, Executor, Message, Observer,
    PromptMachine, ToolCall, define_tool,
)
from tether.agent import TOOL_RESULTS_TEXT, failure_instruction
from tether.errors import AbortError
from tether.types import TEXT_DELTA, TOOL_USE, TOOL_USE_RESULT

from fixtures.mock_providers import ScriptedModel, flaky, text_reply, tool_reply


def build_agent(store, model, bus, tools=(), agent_config=None, compaction=None, max_retries=0):
    context = Context(store)
    pm = PromptMachine(model, "You are a test agent.", bus)
    executor = Executor(max_retries=max_retries, store=store, events=bus)
    for tool in tools:
        executor.register_tool(tool)
    observer = Observer(store, context, pm, compaction or CompactionConfig())
    return Agent(store, executor, context, observer, pm, agent_config or AgentConfig())


def ask(text):
    return Message(sender="user", text=text)


def echo(text, call_id="c1"):
    return ToolCall(tool_name="echo", input_args={"text": text}, id=call_id)


class TestEchoRoundTrip:
    async def test_tool_then_answer(self, store, bus, recorder, echo_tool):
        model = ScriptedModel([tool_reply(echo("hi")), text_reply("hi")])
        agent = build_agent(store, model, bus, [echo_tool])

        result = await agent.ask(ask("say hi"))

        assert [m.text for m in result.messages] == ["hi"]
        (tool_result,) = recorder.of(TOOL_USE_RESULT)
        assert tool_result.result.data == "hi"
        assert tool_result.call_id == "c1"
        assert agent.state == AgentState.DONE

        history = await store.get_messages()
        assert [m.sender for m in history] == ["user", "agent", "user", "agent"]
        assert history[2].text == TOOL_RESULTS_TEXT
        assert history[2].tool_results[0].call_id == history[1].tool_calls[0].id

        # The second model call saw the tool result.
        assert model.requests[1].messages[-1].tool_results[0].result.data == "hi"

    async def test_streaming_events(self, store, bus, recorder, echo_tool):
        model = ScriptedModel([tool_reply(echo("yo"), text="let me echo"), text_reply("yo")])
        agent = build_agent(store, model, bus, [echo_tool])
        await agent.ask(ask("echo yo"))

        kinds = [t for t, _ in recorder.events]
        assert kinds.index(TOOL_USE) < kinds.index(TOOL_USE_RESULT)
        assert recorder.of(TEXT_DELTA) == [{"text": "let me echo"}, {"text": "yo"}]

    async def test_tools_declared_to_model(self, store, bus, echo_tool):
        model = ScriptedModel([text_reply("no tools needed")])
        agent = build_agent(store, model, bus, [echo_tool])
        await agent.ask(ask("hello"))
        assert [t.name for t in model.requests[0].tools] == ["echo"]

    async def test_counters_accumulate(self, store, bus, echo_tool):
        model = ScriptedModel([
            tool_reply(echo("a"), tokens_in=100, tokens_out=20),
            text_reply("a", tokens_in=130, tokens_out=10),
        ])
        agent = build_agent(store, model, bus, [echo_tool])
        await agent.ask(ask("go"))
        assert await store.get_token_count() == 260
        assert await store.get_turn_count() == 2


class TestTurnLimit:
    async def test_stops_after_max_turns(self, store, bus, echo_tool):
        model = ScriptedModel([tool_reply(echo("again"))])
        agent = build_agent(store, model, bus, [echo_tool], AgentConfig(max_turns=3))

        result = await agent.ask(ask("loop forever"))

        assert len(model.requests) == 3
        assert agent.state == AgentState.TURN_LIMIT_STOPPED
        assert "maximum number of turns (3)" in result.messages[0].text
        history = await store.get_messages()
        assert history[-1].sender == "agent"
        assert history[-1].text == result.messages[0].text

    async def test_limit_is_per_request(self, store, bus, echo_tool):
        model = ScriptedModel([tool_reply(echo("x")), text_reply("done")])
        agent = build_agent(store, model, bus, [echo_tool], AgentConfig(max_turns=2))
        await agent.ask(ask("first"))
        assert agent.state == AgentState.DONE

        model.script = [tool_reply(echo("y")), text_reply("done again")]
        model._i = 0
        result = await agent.ask(ask("second"))
        assert agent.state == AgentState.DONE
        assert result.messages[0].text == "done again"


class TestCircuitBreaker:
    async def test_injects_instruction_after_consecutive_failures(self, store, bus):
        broken = define_tool("broken", "Always fails", {"type": "object"}, flaky(100))
        model = ScriptedModel([
            tool_reply(ToolCall(tool_name="broken", input_args={}, id="b1")),
            tool_reply(ToolCall(tool_name="broken", input_args={}, id="b2")),
            text_reply("Sorry, the tool is down."),
        ])
        agent = build_agent(store, model, bus, [broken], AgentConfig(max_consecutive_errors=2))

        result = await agent.ask(ask("use the broken tool"))

        assert result.messages[0].text == "Sorry, the tool is down."
        history = await store.get_messages()
        results_msgs = [m for m in history if m.tool_results]
        assert results_msgs[0].text == TOOL_RESULTS_TEXT
        assert results_msgs[1].text == failure_instruction(2)
        assert all(r.result.status == "error" for m in results_msgs for r in m.tool_results)

    async def test_success_resets_counter(self, store, bus, echo_tool):
        broken = define_tool("broken", "Always fails", {"type": "object"}, flaky(100))

        def bad(i):
            return tool_reply(ToolCall(tool_name="broken", input_args={}, id=f"b{i}"))

        model = ScriptedModel([
            bad(1),
            tool_reply(echo("ok", "e1")),
            bad(2),
            text_reply("done"),
        ])
        agent = build_agent(store, model, bus, [echo_tool, broken], AgentConfig(max_consecutive_errors=2))
        await agent.ask(ask("mixed"))

        texts = [m.text for m in await store.get_messages() if m.tool_results]
        assert texts == [TOOL_RESULTS_TEXT] * 3

    async def test_mixed_batch_is_not_a_failure(self, store, bus, echo_tool):
        broken = define_tool("broken", "Always fails", {"type": "object"}, flaky(100))
        mixed = tool_reply(echo("fine", "e1"), ToolCall(tool_name="broken", input_args={}, id="b1"))
        model = ScriptedModel([mixed, mixed, text_reply("done")])
        agent = build_agent(store, model, bus, [echo_tool, broken], AgentConfig(max_consecutive_errors=1))
        await agent.ask(ask("mixed"))
        texts = [m.text for m in await store.get_messages() if m.tool_results]
        assert texts == [TOOL_RESULTS_TEXT, TOOL_RESULTS_TEXT]


class TestAbort:
    async def test_signal_before_first_call(self, store, bus, echo_tool):
        model = ScriptedModel([text_reply("never")])
        agent = build_agent(store, model, bus, [echo_tool])
        signal = asyncio.Event()
        signal.set()

        with pytest.raises(AbortError):
            await agent.ask(ask("hi"), signal=signal)

        assert model.requests == []
        assert agent.state == AgentState.ABORTED
        assert [m.text for m in await store.get_messages()] == ["hi"]

    async def test_response_under_signal_is_dropped(self, store, bus, echo_tool):
        signal = asyncio.Event()

        def reply_and_abort(request):
            signal.set()
            return tool_reply(echo("late"))

        model = ScriptedModel([reply_and_abort])
        agent = build_agent(store, model, bus, [echo_tool])

        with pytest.raises(AbortError):
            await agent.ask(ask("hi"), signal=signal)

        assert [m.sender for m in await store.get_messages()] == ["user"]

    async def test_abort_during_tools_keeps_results(self, store, bus, recorder):
        signal = asyncio.Event()

        async def slow(input, handover=None):
            signal.set()
            await asyncio.sleep(1)
            return "unreachable"

        slow_tool = define_tool("slow", "Slow tool", {"type": "object"}, slow)
        model = ScriptedModel([
            tool_reply(
                ToolCall(tool_name="slow", input_args={}, id="s1"),
                ToolCall(tool_name="slow", input_args={}, id="s2"),
            ),
            text_reply("never"),
        ])
        agent = build_agent(store, model, bus, [slow_tool])

        with pytest.raises(AbortError):
            await agent.ask(ask("go"), signal=signal)

        assert len(model.requests) == 1
        history = await store.get_messages()
        assert [m.sender for m in history] == ["user", "agent", "user"]
        statuses = [r.result.status for r in history[-1].tool_results]
        assert statuses == ["aborted", "aborted"]
        assert len(recorder.of(TOOL_USE_RESULT)) == 2

    async def test_task_cancellation(self, store, bus, echo_tool):
        model = ScriptedModel([text_reply("slow")], delay=1)
        agent = build_agent(store, model, bus, [echo_tool])
        task = asyncio.ensure_future(agent.ask(ask("hi")))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert agent.state == AgentState.ABORTED

    async def test_no_compaction_after_abort_during_tools(self, store, bus):
        signal = asyncio.Event()

        async def stop(input, handover=None):
            signal.set()
            return "stopped"

        stop_tool = define_tool("stop", "Fires the signal", {"type": "object"}, stop, unabortable=True)
        model = ScriptedModel([
            tool_reply(ToolCall(tool_name="stop", input_args={}, id="s1")),
            text_reply("summary"),
        ])
        agent = build_agent(
            store, model, bus, [stop_tool], compaction=CompactionConfig(token_limit=1)
        )

        with pytest.raises(AbortError):
            await agent.ask(ask("go"), signal=signal)

        assert len(model.requests) == 1
        history = await store.get_messages()
        assert [m.is_compaction for m in history] == [False, False, False]
        assert history[-1].tool_results[0].result.data == "stopped"


class TestCompactionInLoop:
    async def test_compacts_after_results_are_stored(self, store, bus, echo_tool):
        model = ScriptedModel([
            tool_reply(echo("a"), tokens_in=60, tokens_out=10),
            text_reply("Summary: echoed a.", tokens_in=30, tokens_out=5),
            text_reply("all done"),
        ])
        agent = build_agent(
            store, model, bus, [echo_tool], compaction=CompactionConfig(token_limit=50)
        )

        result = await agent.ask(ask("echo a"))

        assert result.messages[0].text == "all done"
        summary_request = model.requests[1]
        assert summary_request.tools is None
        assert summary_request.messages[-2].tool_results[0].result.data == "a"

        final_request = model.requests[2]
        assert final_request.messages[0].is_compaction
        assert "Summary: echoed a." in final_request.messages[0].text
        assert len(final_request.messages) == 1

        everything = await store.get_messages()
        assert [m.sender for m in everything] == ["user", "agent", "user", "user", "agent"]
        assert await store.get_turn_count() == 1
        assert await store.get_token_count() == 35 + 15
