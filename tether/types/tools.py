"""Tool types."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

HandOver = Callable[[Any], Awaitable[Any]]


@runtime_checkable
class ToolSchema(Protocol):
    def parse(self, raw: Any) -> Any: ...
    def to_json_schema(self) -> dict: ...


@dataclass
class Tool:
    name: str
    description: str
    input_schema: ToolSchema
    run: Any  # (input, handover) -> ToolResultData | Awaitable[ToolResultData]
    requires_permission: bool = False
    unabortable: bool = False

    def declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema.to_json_schema(),
        }
