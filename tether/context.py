"""Context — single owner of the message history, append-only with guarantees."""

from __future__ import annotations

import logging
from dataclasses import replace

from .types import Message, StoreAdapter, Task, TaskStore

logger = logging.getLogger(__name__)


def split_at_last_compaction(messages: list[Message]) -> list[Message]:
    """Messages from the most recent compaction marker onward.

    The store keeps the full history for replay; the model only sees the
    post-compaction window.
    """
    for i in range(len(messages) - 1, -1, -1):
        if messages[i].is_compaction:
            return messages[i:]
    return messages


def merge_messages(a: Message, b: Message) -> Message:
    """Fold ``b`` into ``a``. Both must share a sender."""

    def cat(x: list | None, y: list | None) -> list | None:
        if x is None and y is None:
            return None
        return [*(x or []), *(y or [])]

    return replace(
        a,
        text="\n".join(t for t in (a.text, b.text) if t),
        content=cat(a.content, b.content),
        tool_calls=cat(a.tool_calls, b.tool_calls),
        tool_results=cat(a.tool_results, b.tool_results),
    )


def _collapse(msgs: list[Message]) -> list[Message]:
    out: list[Message] = []
    for m in msgs:
        if out and out[-1].sender == m.sender and not m.is_compaction:
            out[-1] = merge_messages(out[-1], m)
        else:
            out.append(m)
    return out


class Context:
    def __init__(self, store: StoreAdapter) -> None:
        self.store = store

    async def append(self, msgs: list[Message]) -> None:
        """Append messages, merging at the boundary so no two adjacent stored
        messages share a sender."""
        if not msgs:
            return
        msgs = _collapse(msgs)
        existing = await self.store.get_messages()
        if existing and existing[-1].sender == msgs[0].sender:
            merged = merge_messages(existing[-1], msgs[0])
            logger.debug("Merging %s message into stored tail", merged.sender)
            await self.store.replace_messages([*existing[:-1], merged, *msgs[1:]])
        else:
            await self.store.append_messages(msgs)

    async def get_messages(self) -> list[Message]:
        return split_at_last_compaction(await self.store.get_messages())

    async def get_all_messages(self) -> list[Message]:
        return list(await self.store.get_messages())

    async def replace_with_summary(self, msgs: list[Message]) -> None:
        """Start a new context window at ``msgs[0]``. Used only by compaction.

        Older messages stay in the store; ``get_messages`` stops returning them.
        The head is never merged into the stored tail, so the physical history
        may hold two user messages side by side at a compaction boundary. No
        such pair exists inside any window ``get_messages`` returns.
        """
        if not msgs:
            return
        head = msgs[0] if msgs[0].is_compaction else replace(msgs[0], is_compaction=True)
        await self.store.append_messages(_collapse([head, *msgs[1:]]))

    # -- Tasks --

    async def get_tasks(self) -> list[Task]:
        if not isinstance(self.store, TaskStore):
            return []
        return list(await self.store.get_tasks())

    async def add_tasks(self, tasks: list[Task]) -> None:
        if isinstance(self.store, TaskStore):
            await self.store.add_tasks(tasks)

    async def update_task(self, task_id: str, **updates: str) -> None:
        if isinstance(self.store, TaskStore):
            await self.store.update_task(task_id, **updates)
