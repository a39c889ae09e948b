"""Model backend types."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from .messages import Message
from .tools import Tool

NotifyFunction = Callable[[str, Any], Awaitable[None]]


@dataclass
class PromptRequest:
    messages: list[Message]
    tools: list[Tool] | None = None


@dataclass
class ModelPromptResult:
    messages: list[Message] = field(default_factory=list)
    tokens_in: int = 0
    tokens_out: int = 0

    @property
    def total_tokens(self) -> int:
        return self.tokens_in + self.tokens_out

    @property
    def text(self) -> str:
        return "\n".join(m.text for m in self.messages if m.sender == "agent" and m.text)


@runtime_checkable
class ModelAdapter(Protocol):
    name: str

    async def prompt(
        self,
        request: PromptRequest,
        notify: NotifyFunction,
        signal: Any = None,
    ) -> ModelPromptResult: ...

    def set_system_prompt(self, system_prompt: str) -> None: ...
