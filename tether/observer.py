"""Observer — owns session counters and the compaction decision."""

from __future__ import annotations

import logging
from typing import Any

from .cancellation import raise_if_aborted
from .config import CompactionConfig
from .context import Context
from .prompt import PromptMachine
from .tools.task import TASK_TOOL_NAME
from .types import Message, StoreAdapter

logger = logging.getLogger(__name__)

SUMMARY_HEADER = "[Conversation summary from compaction]"
SUMMARY_FOOTER = "[End of summary - the conversation continues from here]"
NO_SUMMARY = "No summary was generated"


class Observer:
    def __init__(
        self,
        store: StoreAdapter,
        context: Context,
        prompt: PromptMachine,
        config: CompactionConfig | None = None,
    ) -> None:
        self.store = store
        self.context = context
        self.prompt = prompt
        self.config = config or CompactionConfig()

    def set_config(self, **updates: Any) -> None:
        self.config = CompactionConfig.model_validate({**self.config.model_dump(), **updates})

    async def turn_complete(self) -> None:
        await self.store.increment_turn()

    async def get_current_turns(self) -> int:
        return await self.store.get_turn_count() or 0

    async def add_tokens_consumed(self, count: int) -> None:
        await self.store.add_tokens(count)

    async def get_current_token_consumption(self) -> int:
        return await self.store.get_token_count() or 0

    async def try_compaction(self, signal: Any = None) -> bool:
        """Summarize and restart the context window once the token limit is reached.

        The summary becomes a single user message flagged as a compaction
        boundary so the next model call still starts with a user turn. The
        counters are reset and then charged with the summarization call itself.
        A summary that comes back after ``signal`` fired is discarded and
        AbortError raised, leaving the history and counters untouched.
        """
        tokens = await self.get_current_token_consumption()
        if tokens < self.config.token_limit:
            return False

        logger.info(
            "Compacting session %s at %d tokens (limit %d)",
            self.store.identifier, tokens, self.config.token_limit,
        )
        history = await self.context.get_messages()
        request = Message(sender="user", text=self.config.instructions)
        result = await self.prompt.run([*history, request], signal=signal)
        raise_if_aborted(signal)

        summary = "\n".join(m.text for m in result.messages if m.sender == "agent" and m.text)
        summary = summary or NO_SUMMARY

        tasks = await self.context.get_tasks()
        task_block = ""
        if tasks:
            lines = "\n".join(f"- [{t.status}] {t.content}" for t in tasks)
            task_block = (
                f"\n\n[Current task list - keep it updated with the {TASK_TOOL_NAME} tool as you continue]\n"
                f"{lines}\n"
            )

        await self.context.replace_with_summary([
            Message(
                sender="user",
                text=f"{SUMMARY_HEADER}\n\n{summary}{task_block}\n\n{SUMMARY_FOOTER}",
                is_compaction=True,
            )
        ])
        await self.store.reset_counters()
        await self.store.add_tokens(result.tokens_in + result.tokens_out)
        return True
