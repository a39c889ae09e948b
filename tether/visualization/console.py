"""
Rich console subscriber - prints streaming text and tool activity to a terminal.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..types import (
    MODEL_RESPONSE,
    MODEL_RESPONSE_COMPLETE,
    TEXT_DELTA,
    TOOL_USE,
    TOOL_USE_RESULT,
    ToolResult,
)

_STATUS_STYLE = {"success": "green", "error": "red", "aborted": "yellow"}


def _field(data: Any, name: str, default: Any = None) -> Any:
    if isinstance(data, dict):
        return data.get(name, default)
    return getattr(data, name, default)


class ConsoleSubscriber:
    """Subscriber that renders engine events with rich and keeps simple counters."""

    def __init__(self, console: Console | None = None, show_input: bool = True) -> None:
        self.console = console or Console()
        self.show_input = show_input
        self._streaming = False
        self.stats = {"model_calls": 0, "tool_calls": 0, "errors": 0, "aborted": 0}

    async def record(self, event_type: str, data: Any) -> None:
        if event_type == TEXT_DELTA:
            self._streaming = True
            self.console.print(_field(data, "text", ""), end="", markup=False, highlight=False)
        elif event_type == TOOL_USE:
            self._end_stream()
            label = Text.assemble(("tool ", "bold cyan"), (str(_field(data, "name", "?")), "cyan"))
            if self.show_input:
                label.append(f" {_field(data, 'input')}", style="dim")
            self.console.print(label)
        elif event_type == TOOL_USE_RESULT:
            self._on_result(data)
        elif event_type in (MODEL_RESPONSE, MODEL_RESPONSE_COMPLETE):
            self._end_stream()
            self.stats["model_calls"] += 1

    def _on_result(self, result: ToolResult) -> None:
        self._end_stream()
        self.stats["tool_calls"] += 1
        status = result.result.status
        if status == "error":
            self.stats["errors"] += 1
        elif status == "aborted":
            self.stats["aborted"] += 1
        body = result.result.message or str(result.result.data)
        self.console.print(
            Panel(
                Text(body),
                title=Text(f"{result.tool_name} [{status}]"),
                border_style=_STATUS_STYLE.get(status, "white"),
                expand=False,
            )
        )

    def _end_stream(self) -> None:
        if self._streaming:
            self.console.print()
            self._streaming = False

    def print_summary(self) -> None:
        table = Table(title="Session activity")
        table.add_column("metric")
        table.add_column("count", justify="right")
        for name, count in self.stats.items():
            table.add_row(name, str(count))
        self.console.print(table)
