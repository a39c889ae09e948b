"""Persistence contracts consumed by the engine."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .messages import Message
from .tasks import PermissionStatus, Task


@runtime_checkable
class StoreAdapter(Protocol):
    identifier: str

    async def get_messages(self) -> list[Message]: ...
    async def append_messages(self, msgs: list[Message]) -> None: ...
    async def replace_messages(self, msgs: list[Message]) -> None: ...
    async def get_token_count(self) -> int: ...
    async def add_tokens(self, count: int) -> None: ...
    async def get_turn_count(self) -> int: ...
    async def increment_turn(self) -> None: ...
    async def reset_counters(self) -> None: ...


@runtime_checkable
class TaskStore(Protocol):
    async def get_tasks(self) -> list[Task]: ...
    async def add_tasks(self, tasks: list[Task]) -> None: ...
    async def update_task(self, task_id: str, **updates: str) -> None: ...


@runtime_checkable
class PermissionStore(Protocol):
    async def get_permission(self, tool_name: str) -> PermissionStatus: ...
    async def set_permission(self, tool_name: str, status: PermissionStatus) -> None: ...
