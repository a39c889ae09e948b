"""Built-in task list tool, registered automatically for stores that keep tasks."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from ..types import Task, Tool, ToolResultData
from . import define_tool

if TYPE_CHECKING:
    from ..context import Context

TASK_TOOL_NAME = "update_tasks"

_DESCRIPTION = (
    "Use this tool to create and manage a structured task list for the current session. "
    "Call this tool with the FULL updated list of tasks each time. Each task has:\n"
    '- content: imperative form describing the task ("Fix the bug", "Run tests")\n'
    '- active_form: present continuous form shown during execution ("Fixing the bug", "Running tests")\n'
    '- status: "pending", "in_progress", or "completed"\n\n'
    "Only one task should be in_progress at a time. Mark tasks completed immediately after finishing them."
)


class TaskItem(BaseModel):
    content: str = Field(..., min_length=1)
    active_form: str = Field(..., min_length=1)
    status: Literal["pending", "in_progress", "completed"]


class TaskToolInput(BaseModel):
    todos: list[TaskItem]


def create_task_tool(context: Context) -> Tool:
    async def run(input: TaskToolInput, handover=None) -> ToolResultData:
        current = {t.content: t for t in await context.get_tasks()}
        tasks = [
            Task(
                id=current[todo.content].id if todo.content in current else f"task_{uuid.uuid4().hex[:12]}",
                content=todo.content,
                active_form=todo.active_form,
                status=todo.status,
            )
            for todo in input.todos
        ]
        await context.add_tasks(tasks)
        return ToolResultData(
            status="success",
            data={"tasks": [{"id": t.id, "content": t.content, "status": t.status} for t in tasks]},
        )

    return define_tool(TASK_TOOL_NAME, _DESCRIPTION, TaskToolInput, run)
