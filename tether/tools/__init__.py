"""Tool definition helpers."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Type

from pydantic import BaseModel

from ..types import Tool
from .schema import DictSchema, PydanticSchema


def define_tool(
    name: str,
    description: str,
    parameters: Type[BaseModel] | PydanticSchema | DictSchema | dict[str, Any],
    run: Callable[..., Any | Awaitable[Any]],
    *,
    requires_permission: bool = False,
    unabortable: bool = False,
) -> Tool:
    if isinstance(parameters, (PydanticSchema, DictSchema)):
        schema = parameters
    elif isinstance(parameters, dict):
        schema = DictSchema(parameters, name=name)
    else:
        schema = PydanticSchema(parameters)
    return Tool(
        name=name,
        description=description,
        input_schema=schema,
        run=run,
        requires_permission=requires_permission,
        unabortable=unabortable,
    )


__all__ = ["define_tool", "PydanticSchema", "DictSchema"]
