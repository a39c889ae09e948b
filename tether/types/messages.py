"""Message types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

Sender = Literal["user", "agent"]
ResultStatus = Literal["success", "error", "aborted"]


@dataclass
class ContentSource:
    type: Literal["base64", "url"]
    media_type: str
    data: str | None = None
    url: str | None = None


@dataclass
class ContentPart:
    type: Literal["text", "image", "video", "document"] = "text"
    text: str | None = None
    source: ContentSource | None = None


@dataclass
class ToolCall:
    tool_name: str
    input_args: Any = None
    id: str | None = None


@dataclass
class ToolResultData:
    """Result envelope returned by a tool run.

    ``render_data`` is kept in history for rebuilding UI after a reload but
    model backends must never forward it to the model.
    """

    status: ResultStatus
    data: Any = None
    message: str | None = None
    render_data: Any = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass
class ToolResult:
    tool_name: str
    result: ToolResultData
    call_id: str | None = None


@dataclass
class Message:
    sender: Sender
    text: str = ""
    id: str | None = None
    content: list[ContentPart] | None = None
    tool_calls: list[ToolCall] | None = None
    tool_results: list[ToolResult] | None = None
    is_compaction: bool = False

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


def user_message(text: str, **kwargs: Any) -> Message:
    return Message(sender="user", text=text, **kwargs)


def agent_message(text: str, **kwargs: Any) -> Message:
    return Message(sender="agent", text=text, **kwargs)
