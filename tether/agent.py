"""Agent — the turn loop tying context, model, tools and compaction together."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from enum import Enum
from typing import Any

from .cancellation import raise_if_aborted
from .config import AgentConfig
from .context import Context
from .errors import AbortError
from .executor import Executor
from .observer import Observer
from .prompt import PromptMachine
from .types import HandOver, Message, ModelPromptResult, StoreAdapter, ToolResult

logger = logging.getLogger(__name__)

TOOL_RESULTS_TEXT = "tool results"


class AgentState(str, Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    AWAITING_TOOLS = "awaiting_tools"
    DONE = "done"
    TURN_LIMIT_STOPPED = "turn_limit_stopped"
    ERROR_STOPPED = "error_stopped"
    ABORTED = "aborted"


def failure_instruction(count: int) -> str:
    return (
        f"Tool calls have failed {count} times in a row. "
        "Stop calling tools and explain what went wrong to the user."
    )


class Agent:
    """Call the model, run requested tools, feed results back, repeat.

    A session must not have two ``ask`` calls in flight at once; callers
    serialize requests. One ``signal`` governs the whole request: it stops
    the next model call and any abortable tool still running. Messages stored
    before the abort stay in the context.
    """

    def __init__(
        self,
        store: StoreAdapter,
        executor: Executor,
        context: Context,
        observer: Observer,
        prompt_machine: PromptMachine,
        config: AgentConfig | None = None,
    ) -> None:
        self.store = store
        self.executor = executor
        self.context = context
        self.observer = observer
        self.prompt_machine = prompt_machine
        self.config = config or AgentConfig()
        self.state = AgentState.IDLE

    async def ask(
        self,
        message: Message,
        handover: HandOver | None = None,
        signal: Any = None,
    ) -> ModelPromptResult:
        await self.context.append([message])

        # Per-request counter; the observer's session counter keeps running for stats.
        request_turns = 0
        consecutive_errors = 0

        try:
            while True:
                raise_if_aborted(signal)

                if request_turns >= self.config.max_turns:
                    return await self._stop_at_turn_limit()

                self.state = AgentState.AWAITING_MODEL
                messages = await self.context.get_messages()
                result = await self.prompt_machine.run(messages, self.executor.tools, signal)
                # Dropping the response keeps unanswered tool calls out of the history.
                raise_if_aborted(signal)

                await self.context.append(result.messages)
                await self.observer.add_tokens_consumed(result.tokens_in + result.tokens_out)
                await self.observer.turn_complete()
                request_turns += 1

                calls = [tc for m in result.messages for tc in (m.tool_calls or [])]
                if not calls:
                    await self._auto_complete_tasks()
                    self.state = AgentState.DONE
                    logger.debug("Request finished after %d turn(s)", request_turns)
                    return result

                self.state = AgentState.AWAITING_TOOLS
                for call in calls:
                    self.executor.add_tool_call_to_stack(call)
                results = await self.executor.execute_tool_stack(handover, signal)

                text = TOOL_RESULTS_TEXT
                if results and all(r.result.status == "error" for r in results):
                    consecutive_errors += 1
                    if consecutive_errors >= self.config.max_consecutive_errors:
                        logger.warning(
                            "%d consecutive failed tool batches; telling the model to stop",
                            consecutive_errors,
                        )
                        self.state = AgentState.ERROR_STOPPED
                        text = failure_instruction(consecutive_errors)
                else:
                    consecutive_errors = 0

                # Results go in before compaction so no tool call is left unanswered.
                await self.context.append([self._results_message(text, results)])
                raise_if_aborted(signal)
                await self.observer.try_compaction(signal)
        except (AbortError, asyncio.CancelledError):
            self.state = AgentState.ABORTED
            raise

    @staticmethod
    def _results_message(text: str, results: list[ToolResult]) -> Message:
        return Message(sender="user", text=text, tool_results=results)

    async def _stop_at_turn_limit(self) -> ModelPromptResult:
        msg = Message(
            sender="agent",
            text=(
                f"Reached the maximum number of turns ({self.config.max_turns}) for this request. "
                "Please send a new message to continue."
            ),
        )
        await self.context.append([msg])
        self.state = AgentState.TURN_LIMIT_STOPPED
        logger.info("Request stopped at the turn limit (%d)", self.config.max_turns)
        return ModelPromptResult(messages=[msg])

    async def _auto_complete_tasks(self) -> None:
        """Mark tasks left in_progress as completed once the agent stops talking."""
        tasks = await self.context.get_tasks()
        if not any(t.status == "in_progress" for t in tasks):
            return
        await self.context.add_tasks(
            [replace(t, status="completed") if t.status == "in_progress" else t for t in tasks]
        )
