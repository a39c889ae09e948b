"""In-memory store for tests, prototypes and short-lived sessions."""

from __future__ import annotations

from dataclasses import replace

from ..types import Message, PermissionStatus, Task


class MemoryStore:
    """Implements messages, counters, tasks and permissions. Nothing is persisted."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        self._messages: list[Message] = []
        self._token_count = 0
        self._turn_count = 0
        self._tasks: list[Task] = []
        self._permissions: dict[str, PermissionStatus] = {}

    # -- Messages --

    async def get_messages(self) -> list[Message]:
        return list(self._messages)

    async def append_messages(self, msgs: list[Message]) -> None:
        self._messages.extend(msgs)

    async def replace_messages(self, msgs: list[Message]) -> None:
        self._messages = list(msgs)

    # -- Counters --

    async def get_token_count(self) -> int:
        return self._token_count

    async def add_tokens(self, count: int) -> None:
        self._token_count += count

    async def get_turn_count(self) -> int:
        return self._turn_count

    async def increment_turn(self) -> None:
        self._turn_count += 1

    async def reset_counters(self) -> None:
        self._token_count = 0
        self._turn_count = 0

    # -- Tasks --

    async def get_tasks(self) -> list[Task]:
        return [replace(t) for t in self._tasks]

    async def add_tasks(self, tasks: list[Task]) -> None:
        self._tasks = [replace(t) for t in tasks]

    async def update_task(self, task_id: str, **updates: str) -> None:
        self._tasks = [replace(t, **updates) if t.id == task_id else t for t in self._tasks]

    # -- Permissions --

    async def get_permission(self, tool_name: str) -> PermissionStatus:
        return self._permissions.get(tool_name, "unset")

    async def set_permission(self, tool_name: str, status: PermissionStatus) -> None:
        self._permissions[tool_name] = status
