"""Orchestrator — wires store, model, display and tools from one config object."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Type

from pydantic import BaseModel

from .agent import Agent
from .config import AgentConfig, CompactionConfig
from .context import Context
from .display import DisplayManager
from .events import EventBus
from .executor import Executor
from .observer import Observer
from .prompt import PromptMachine
from .tools import define_tool
from .tools.task import create_task_tool
from .types import (
    ContentPart,
    Message,
    ModelAdapter,
    ModelPromptResult,
    StoreAdapter,
    Subscriber,
    TaskStore,
    Tool,
)

logger = logging.getLogger(__name__)

GENERIC_RENDERER = "generic"

DisplayRun = Callable[[Any, DisplayManager], Any | Awaitable[Any]]


@dataclass
class OrchestratorConfig:
    store: StoreAdapter
    model: ModelAdapter
    system_prompt: str
    display: DisplayManager | None = None
    tools: list[Tool] = field(default_factory=list)
    compaction: CompactionConfig = field(default_factory=CompactionConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    max_retries: int = 3
    subscribers: list[Subscriber] = field(default_factory=list)


def display_tool(
    name: str,
    description: str,
    parameters: Type[BaseModel] | dict[str, Any],
    run: DisplayRun,
    display: DisplayManager,
    *,
    requires_permission: bool = False,
    unabortable: bool = False,
) -> Tool:
    """Build a tool whose run function receives ``(input, display)``."""

    async def _run(input: Any, handover: Any = None) -> Any:
        result = run(input, display)
        if inspect.isawaitable(result):
            result = await result
        return result

    return define_tool(
        name,
        description,
        parameters,
        _run,
        requires_permission=requires_permission,
        unabortable=unabortable,
    )


class Orchestrator:
    def __init__(self, config: OrchestratorConfig) -> None:
        self.config = config
        self.store = config.store
        self.display = config.display or DisplayManager()
        self.events = EventBus()

        self.context = Context(self.store)
        self.prompt_machine = PromptMachine(config.model, config.system_prompt, self.events)
        self.executor = Executor(config.max_retries, self.store, self.events)
        self.observer = Observer(self.store, self.context, self.prompt_machine, config.compaction)
        self.agent = Agent(
            self.store,
            self.executor,
            self.context,
            self.observer,
            self.prompt_machine,
            config.agent,
        )

        if isinstance(self.store, TaskStore):
            self.executor.register_tool(create_task_tool(self.context))
        for tool in config.tools:
            self.executor.register_tool(tool)
        for subscriber in config.subscribers:
            self.add_subscriber(subscriber)

    def add_tool(
        self,
        name: str,
        description: str,
        parameters: Type[BaseModel] | dict[str, Any],
        run: DisplayRun,
        *,
        requires_permission: bool = False,
        unabortable: bool = False,
    ) -> Tool:
        tool = display_tool(
            name,
            description,
            parameters,
            run,
            self.display,
            requires_permission=requires_permission,
            unabortable=unabortable,
        )
        self.executor.register_tool(tool)
        return tool

    def add_subscriber(self, subscriber: Subscriber) -> None:
        self.events.add_subscriber(subscriber)

    def remove_subscriber(self, subscriber: Subscriber) -> None:
        self.events.remove_subscriber(subscriber)

    async def handover(self, request: Any) -> Any:
        renderer = request.get("renderer") if isinstance(request, dict) else None
        if not isinstance(renderer, str):
            renderer = GENERIC_RENDERER
        return await self.display.push_and_wait(renderer, request)

    async def process_request(
        self,
        text: str,
        signal: Any = None,
        content: list[ContentPart] | None = None,
    ) -> ModelPromptResult:
        logger.debug("Processing request for session %s", self.store.identifier)
        return await self.agent.ask(
            Message(sender="user", text=text, content=content), self.handover, signal
        )
