"""Display manager — the stack of interactive UI slots requested by tools.

Tools push slots onto the stack; a rendering layer subscribes to stack
snapshots and settles blocking slots through ``resolve`` / ``reject``.
Renderers are declarative: the manager records them for the UI layer but
never interprets them.

While ``has_pending`` is true some tool is suspended on ``push_and_wait``.
A voice or interrupt layer should not tear the session down in that window,
otherwise the waiting tool is orphaned. The manager does not enforce this.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Listener = Callable[[list["Slot"]], Awaitable[None]]
Unsubscribe = Callable[[], None]


@dataclass
class Renderer:
    name: str
    input_schema: type[BaseModel] | None = None
    output_schema: type[BaseModel] | None = None


@dataclass
class Slot:
    id: str
    renderer: str
    input: Any = None


class DisplayManager:
    def __init__(self) -> None:
        self._slot_count = 0
        self._stack: list[Slot] = []
        self._listeners: list[Listener] = []
        self._resolvers: dict[str, asyncio.Future] = {}
        self.renderers: dict[str, Renderer] = {}

    @property
    def stack(self) -> list[Slot]:
        return list(self._stack)

    @property
    def pending_ids(self) -> list[str]:
        return list(self._resolvers)

    @property
    def has_pending(self) -> bool:
        return bool(self._resolvers)

    def _next_slot_id(self) -> str:
        self._slot_count += 1
        return f"slot_{self._slot_count}"

    def register_renderer(self, renderer: Renderer) -> None:
        self.renderers[renderer.name] = renderer

    def get_slot(self, slot_id: str) -> Slot | None:
        return next((s for s in self._stack if s.id == slot_id), None)

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def notify(self) -> None:
        for listener in list(self._listeners):
            await listener(self.stack)

    async def push_and_forget(self, renderer: str, input: Any = None) -> str:
        slot = Slot(id=self._next_slot_id(), renderer=renderer, input=input)
        self._stack.append(slot)
        await self.notify()
        return slot.id

    async def push_and_wait(self, renderer: str, input: Any = None) -> Any:
        slot = Slot(id=self._next_slot_id(), renderer=renderer, input=input)
        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        # Registered before listeners run so a listener may settle it synchronously.
        self._resolvers[slot.id] = fut
        self._stack.append(slot)
        try:
            await self.notify()
            return await fut
        finally:
            # An unsettled waiter (cancelled or aborted) takes its slot with it.
            if self._resolvers.get(slot.id) is fut:
                del self._resolvers[slot.id]
                await self._drop(slot.id)

    async def resolve(self, slot_id: str, value: Any = None) -> None:
        fut = self._resolvers.pop(slot_id, None)
        if fut is None:
            logger.debug("resolve ignored for unknown slot %s", slot_id)
            return
        if not fut.done():
            fut.set_result(value)
        await self._drop(slot_id)

    async def reject(self, slot_id: str, error: Any = None) -> None:
        fut = self._resolvers.pop(slot_id, None)
        if fut is None:
            logger.debug("reject ignored for unknown slot %s", slot_id)
            return
        if not fut.done():
            exc = error if isinstance(error, BaseException) else RuntimeError(str(error))
            fut.set_exception(exc)
        await self._drop(slot_id)

    async def remove_slot(self, slot_id: str) -> None:
        await self._drop(slot_id)

    async def clear_stack(self) -> None:
        self._stack = []
        await self.notify()

    async def _drop(self, slot_id: str) -> None:
        self._stack = [s for s in self._stack if s.id != slot_id]
        await self.notify()
