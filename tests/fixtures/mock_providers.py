"""
Mock collaborators for testing: a scripted model backend and a recording subscriber.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from tether.types import (
    MODEL_RESPONSE_COMPLETE,
    TEXT_DELTA,
    TOOL_USE,
    Message,
    ModelPromptResult,
    PromptRequest,
    ToolCall,
)


def text_reply(text: str, tokens_in: int = 10, tokens_out: int = 5) -> ModelPromptResult:
    return ModelPromptResult(
        messages=[Message(sender="agent", text=text)], tokens_in=tokens_in, tokens_out=tokens_out
    )


def tool_reply(
    *calls: ToolCall, text: str = "", tokens_in: int = 10, tokens_out: int = 5
) -> ModelPromptResult:
    return ModelPromptResult(
        messages=[Message(sender="agent", text=text, tool_calls=list(calls))],
        tokens_in=tokens_in,
        tokens_out=tokens_out,
    )


class ScriptedModel:
    """Model backend that replays a fixed list of results.

    Items may be ``ModelPromptResult`` or callables taking the request and
    returning one. Text and tool calls are streamed through ``notify`` the
    way a streaming backend would. Once the script runs out the last item
    is repeated.
    """

    name = "scripted"

    def __init__(self, script: list[Any], delay: float = 0.0) -> None:
        self.script = list(script)
        self.delay = delay
        self.requests: list[PromptRequest] = []
        self.system_prompt = ""
        self._i = 0

    def set_system_prompt(self, system_prompt: str) -> None:
        self.system_prompt = system_prompt

    async def prompt(self, request: PromptRequest, notify, signal: Any = None) -> ModelPromptResult:
        self.requests.append(
            PromptRequest(messages=list(request.messages), tools=request.tools)
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.script[min(self._i, len(self.script) - 1)]
        self._i += 1
        result = item(request) if callable(item) else item
        for m in result.messages:
            if m.text:
                await notify(TEXT_DELTA, {"text": m.text})
            for tc in m.tool_calls or []:
                await notify(TOOL_USE, {"id": tc.id, "name": tc.tool_name, "input": tc.input_args})
        await notify(MODEL_RESPONSE_COMPLETE, result)
        return result


class RecordingSubscriber:
    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    async def record(self, event_type: str, data: Any) -> None:
        self.events.append((event_type, data))

    def of(self, event_type: str) -> list[Any]:
        return [d for t, d in self.events if t == event_type]


def flaky(failures: int, value: Any = "ok") -> Callable[..., Any]:
    """Run function that raises ``failures`` times before returning ``value``."""
    calls = {"n": 0}

    async def run(input: Any, handover: Any = None) -> Any:
        calls["n"] += 1
        if calls["n"] <= failures:
            raise RuntimeError(f"boom {calls['n']}")
        return {"status": "success", "data": value}

    run.calls = calls
    return run
