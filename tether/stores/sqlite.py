"""
SQLite store.

Each session's messages, counters, tasks and permissions live in their own
rows keyed by ``session_id``, so many sessions can share one database file.
Message parts are stored as JSON columns.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

from pydantic import TypeAdapter

from ..errors import StoreError
from ..types import ContentPart, Message, PermissionStatus, Task, ToolCall, ToolResult

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    session_id  TEXT PRIMARY KEY,
    token_count INTEGER NOT NULL DEFAULT 0,
    turn_count  INTEGER NOT NULL DEFAULT 0,
    created_at  TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS messages (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id    TEXT NOT NULL,
    sender        TEXT NOT NULL,
    msg_id        TEXT,
    text          TEXT NOT NULL,
    content       TEXT,
    tool_calls    TEXT,
    tool_results  TEXT,
    is_compaction INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (session_id) REFERENCES sessions(session_id)
);

CREATE INDEX IF NOT EXISTS idx_messages_session ON messages(session_id);

CREATE TABLE IF NOT EXISTS tasks (
    id          TEXT NOT NULL,
    session_id  TEXT NOT NULL,
    position    INTEGER NOT NULL DEFAULT 0,
    content     TEXT NOT NULL,
    active_form TEXT NOT NULL,
    status      TEXT NOT NULL DEFAULT 'pending',
    PRIMARY KEY (session_id, id),
    FOREIGN KEY (session_id) REFERENCES sessions(session_id)
);

CREATE TABLE IF NOT EXISTS permissions (
    session_id TEXT NOT NULL,
    tool_name  TEXT NOT NULL,
    status     TEXT NOT NULL DEFAULT 'unset',
    PRIMARY KEY (session_id, tool_name),
    FOREIGN KEY (session_id) REFERENCES sessions(session_id)
);
"""

_content = TypeAdapter(list[ContentPart])
_calls = TypeAdapter(list[ToolCall])
_results = TypeAdapter(list[ToolResult])


def _dump(adapter: TypeAdapter, value: Any) -> str | None:
    if value is None:
        return None
    return adapter.dump_json(value).decode()


def _load(adapter: TypeAdapter, raw: str | None) -> Any:
    if raw is None:
        return None
    return adapter.validate_json(raw)


class SqliteStore:
    def __init__(self, db_path: str, session_id: str) -> None:
        self.identifier = session_id
        self.db_path = db_path
        try:
            self._conn = sqlite3.connect(db_path)
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.executescript(_SCHEMA)
            self._conn.execute(
                "INSERT OR IGNORE INTO sessions (session_id) VALUES (?)", (session_id,)
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(session_id, f"Failed to open {db_path}: {e}", e) from e

    def close(self) -> None:
        self._conn.close()

    # -- Messages --

    async def get_messages(self) -> list[Message]:
        rows = self._conn.execute(
            "SELECT sender, msg_id, text, content, tool_calls, tool_results, is_compaction "
            "FROM messages WHERE session_id = ? ORDER BY id",
            (self.identifier,),
        ).fetchall()
        return [
            Message(
                sender=sender,
                id=msg_id,
                text=text,
                content=_load(_content, content),
                tool_calls=_load(_calls, calls),
                tool_results=_load(_results, results),
                is_compaction=bool(is_compaction),
            )
            for sender, msg_id, text, content, calls, results, is_compaction in rows
        ]

    async def append_messages(self, msgs: list[Message]) -> None:
        with self._conn:
            self._insert(msgs)

    async def replace_messages(self, msgs: list[Message]) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM messages WHERE session_id = ?", (self.identifier,))
            self._insert(msgs)

    def _insert(self, msgs: list[Message]) -> None:
        self._conn.executemany(
            "INSERT INTO messages (session_id, sender, msg_id, text, content, tool_calls, "
            "tool_results, is_compaction) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (
                    self.identifier,
                    m.sender,
                    m.id,
                    m.text,
                    _dump(_content, m.content),
                    _dump(_calls, m.tool_calls),
                    _dump(_results, m.tool_results),
                    int(m.is_compaction),
                )
                for m in msgs
            ],
        )

    # -- Counters --

    def _counter(self, column: str) -> int:
        row = self._conn.execute(
            f"SELECT {column} FROM sessions WHERE session_id = ?", (self.identifier,)
        ).fetchone()
        return row[0] if row else 0

    async def get_token_count(self) -> int:
        return self._counter("token_count")

    async def add_tokens(self, count: int) -> None:
        with self._conn:
            self._conn.execute(
                "UPDATE sessions SET token_count = token_count + ? WHERE session_id = ?",
                (count, self.identifier),
            )

    async def get_turn_count(self) -> int:
        return self._counter("turn_count")

    async def increment_turn(self) -> None:
        with self._conn:
            self._conn.execute(
                "UPDATE sessions SET turn_count = turn_count + 1 WHERE session_id = ?",
                (self.identifier,),
            )

    async def reset_counters(self) -> None:
        with self._conn:
            self._conn.execute(
                "UPDATE sessions SET token_count = 0, turn_count = 0 WHERE session_id = ?",
                (self.identifier,),
            )

    # -- Tasks --

    async def get_tasks(self) -> list[Task]:
        rows = self._conn.execute(
            "SELECT id, content, active_form, status FROM tasks "
            "WHERE session_id = ? ORDER BY position",
            (self.identifier,),
        ).fetchall()
        return [Task(id=i, content=c, active_form=a, status=s) for i, c, a, s in rows]

    async def add_tasks(self, tasks: list[Task]) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM tasks WHERE session_id = ?", (self.identifier,))
            self._conn.executemany(
                "INSERT INTO tasks (id, session_id, position, content, active_form, status) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (t.id, self.identifier, pos, t.content, t.active_form, t.status)
                    for pos, t in enumerate(tasks)
                ],
            )

    async def update_task(self, task_id: str, **updates: str) -> None:
        allowed = {k: v for k, v in updates.items() if k in ("content", "active_form", "status")}
        if not allowed:
            return
        assignments = ", ".join(f"{k} = ?" for k in allowed)
        with self._conn:
            self._conn.execute(
                f"UPDATE tasks SET {assignments} WHERE session_id = ? AND id = ?",
                (*allowed.values(), self.identifier, task_id),
            )

    # -- Permissions --

    async def get_permission(self, tool_name: str) -> PermissionStatus:
        row = self._conn.execute(
            "SELECT status FROM permissions WHERE session_id = ? AND tool_name = ?",
            (self.identifier, tool_name),
        ).fetchone()
        return row[0] if row else "unset"

    async def set_permission(self, tool_name: str, status: PermissionStatus) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO permissions (session_id, tool_name, status) VALUES (?, ?, ?) "
                "ON CONFLICT(session_id, tool_name) DO UPDATE SET status = excluded.status",
                (self.identifier, tool_name, status),
            )
