"""tether — agent orchestration: turn loop, tool execution, compaction and display slots."""

from .agent import Agent, AgentState
from .config import AgentConfig, CompactionConfig
from .context import Context
from .display import DisplayManager, Renderer, Slot
from .errors import (
    AbortError, DuplicateToolError, StoreError, TetherError, ToolError, ToolValidationError,
)
from .events import EventBus
from .executor import Executor
from .observer import Observer
from .orchestrator import Orchestrator, OrchestratorConfig, display_tool
from .prompt import PromptMachine
from .stores import MemoryStore, SqliteStore
from .tools import DictSchema, PydanticSchema, define_tool
from .types import (
    ContentPart, ContentSource, Message, ModelAdapter, ModelPromptResult, PromptRequest,
    StoreAdapter, Subscriber, Task, Tool, ToolCall, ToolResult, ToolResultData,
)

__version__ = "0.1.0"

__all__ = [
    "Agent", "AgentState", "AgentConfig", "CompactionConfig", "Context",
    "DisplayManager", "Renderer", "Slot",
    "TetherError", "AbortError", "ToolError", "DuplicateToolError", "ToolValidationError", "StoreError",
    "EventBus", "Executor", "Observer", "Orchestrator", "OrchestratorConfig", "display_tool",
    "PromptMachine", "MemoryStore", "SqliteStore", "define_tool", "PydanticSchema", "DictSchema",
    "ContentPart", "ContentSource", "Message", "ModelAdapter", "ModelPromptResult", "PromptRequest",
    "StoreAdapter", "Subscriber", "Task", "Tool", "ToolCall", "ToolResult", "ToolResultData",
]
