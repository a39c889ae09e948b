"""Core type definitions — re-exported from sub-modules."""

from .messages import (
    Message, ContentPart, ContentSource, ToolCall, ToolResult, ToolResultData,
    Sender, ResultStatus, user_message, agent_message,
)
from .tools import Tool, ToolSchema, HandOver
from .tasks import Task, TaskStatus, PermissionStatus
from .llm import PromptRequest, ModelPromptResult, ModelAdapter, NotifyFunction
from .store import StoreAdapter, TaskStore, PermissionStore
from .events import (
    Subscriber, TEXT_DELTA, TOOL_USE, TOOL_USE_RESULT, MODEL_RESPONSE, MODEL_RESPONSE_COMPLETE,
)

__all__ = [
    "Message", "ContentPart", "ContentSource", "ToolCall", "ToolResult", "ToolResultData",
    "Sender", "ResultStatus", "user_message", "agent_message",
    "Tool", "ToolSchema", "HandOver",
    "Task", "TaskStatus", "PermissionStatus",
    "PromptRequest", "ModelPromptResult", "ModelAdapter", "NotifyFunction",
    "StoreAdapter", "TaskStore", "PermissionStore",
    "Subscriber", "TEXT_DELTA", "TOOL_USE", "TOOL_USE_RESULT",
    "MODEL_RESPONSE", "MODEL_RESPONSE_COMPLETE",
]
