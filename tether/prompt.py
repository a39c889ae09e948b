"""PromptMachine — thin wrapper around model calls."""

from __future__ import annotations

import logging
from typing import Any

from .events import EventBus
from .types import Message, ModelAdapter, ModelPromptResult, PromptRequest, Subscriber, Tool

logger = logging.getLogger(__name__)


class PromptMachine:
    """Invokes the model with the system prompt, history and tool declarations.

    Streaming is the model's job: it receives ``events.notify`` and calls it
    for ``text_delta``, ``tool_use`` and ``model_response_complete`` as they
    happen. This class only plumbs the channel through.
    """

    def __init__(
        self, model: ModelAdapter, system_prompt: str, events: EventBus | None = None
    ) -> None:
        self.model = model
        self.events = events or EventBus()
        self.system_prompt = system_prompt
        model.set_system_prompt(system_prompt)

    def set_system_prompt(self, system_prompt: str) -> None:
        self.system_prompt = system_prompt
        self.model.set_system_prompt(system_prompt)

    def add_subscriber(self, subscriber: Subscriber) -> None:
        self.events.add_subscriber(subscriber)

    def remove_subscriber(self, subscriber: Subscriber) -> None:
        self.events.remove_subscriber(subscriber)

    async def run(
        self,
        messages: list[Message],
        tools: list[Tool] | None = None,
        signal: Any = None,
    ) -> ModelPromptResult:
        logger.debug(
            "Prompting %s with %d messages, %d tools",
            getattr(self.model, "name", "model"), len(messages), len(tools or []),
        )
        return await self.model.prompt(
            PromptRequest(messages=messages, tools=tools), self.events.notify, signal
        )
