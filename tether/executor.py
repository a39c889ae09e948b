"""Executor — tool registry plus sequential batch execution.

Every queued call yields exactly one ``ToolResult`` (success, error or
aborted), in queue order, so each tool call id the model issued gets a
matching result no matter how execution went.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any

from pydantic import ValidationError

from .cancellation import abortable, is_aborted, raise_if_aborted
from .errors import AbortError, DuplicateToolError, ToolValidationError
from .events import EventBus
from .types import (
    TOOL_USE_RESULT,
    HandOver,
    PermissionStore,
    Subscriber,
    Tool,
    ToolCall,
    ToolResult,
    ToolResultData,
)

logger = logging.getLogger(__name__)

ABORTED_MESSAGE = "Tool execution was aborted by the user."
SKIPPED_MESSAGE = "Tool call was not attempted because the batch was aborted."
PERMISSION_RENDERER = "permission_request"

_ENVELOPE_KEYS = {"status", "data", "message", "render_data"}


def _envelope(value: Any) -> ToolResultData:
    if isinstance(value, ToolResultData):
        return value
    if (
        isinstance(value, dict)
        and value.get("status") in ("success", "error", "aborted")
        and set(value) <= _ENVELOPE_KEYS
    ):
        return ToolResultData(**value)
    return ToolResultData(status="success", data=value)


def _is_self_cancelled() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class Executor:
    def __init__(
        self,
        max_retries: int = 3,
        store: Any = None,
        events: EventBus | None = None,
    ) -> None:
        self.max_retries = max_retries
        self.store = store
        self.events = events or EventBus()
        self._tools: dict[str, Tool] = {}
        self._queue: list[ToolCall] = []

    @property
    def tools(self) -> list[Tool]:
        return list(self._tools.values())

    @property
    def pending_calls(self) -> list[ToolCall]:
        return list(self._queue)

    def register_tool(self, tool: Tool) -> None:
        key = tool.name.lower()
        if key in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[key] = tool

    def get_tool(self, name: str) -> Tool | None:
        return self._tools.get(name.lower())

    def add_subscriber(self, subscriber: Subscriber) -> None:
        self.events.add_subscriber(subscriber)

    def remove_subscriber(self, subscriber: Subscriber) -> None:
        self.events.remove_subscriber(subscriber)

    def add_tool_call_to_stack(self, call: ToolCall) -> None:
        self._queue.append(call)

    async def execute_tool_stack(
        self, handover: HandOver | None = None, signal: Any = None
    ) -> list[ToolResult]:
        calls = list(self._queue)
        results: list[ToolResult] = []
        try:
            for i, call in enumerate(calls):
                result = await self._execute(call, handover, signal)
                await self._record(results, result)
                if result.result.status == "aborted":
                    for rest in calls[i + 1:]:
                        await self._record(results, self._aborted(rest, SKIPPED_MESSAGE))
                    break
        finally:
            self._queue = []
        return results

    async def _record(self, results: list[ToolResult], result: ToolResult) -> None:
        results.append(result)
        await self.events.notify(TOOL_USE_RESULT, result)

    async def _execute(
        self, call: ToolCall, handover: HandOver | None, signal: Any
    ) -> ToolResult:
        tool = self.get_tool(call.tool_name)

        # unabortable tools (e.g. a submitted checkout) still run under an active signal
        if is_aborted(signal) and not (tool and tool.unabortable):
            return self._aborted(call)

        if tool is None:
            known = ", ".join(t.name for t in self._tools.values())
            return self._error(
                call, f"No tool called {call.tool_name} exists. Available tools: {known}"
            )

        try:
            permitted = await self._check_permission(tool, call.input_args, handover, signal)
        except AbortError:
            return self._aborted(call)
        if not permitted:
            return self._error(
                call,
                f'Permission denied for tool "{tool.name}". '
                "The user has not granted permission to run this tool.",
            )

        try:
            parsed = tool.input_schema.parse(call.input_args)
        except ValidationError as e:
            return self._invalid(call, json.loads(e.json(include_url=False)))
        except ToolValidationError as e:
            return self._invalid(call, e.errors)

        return await self._run_with_retry(tool, call, parsed, handover, signal)

    async def _check_permission(
        self, tool: Tool, tool_input: Any, handover: HandOver | None, signal: Any
    ) -> bool:
        if not tool.requires_permission:
            return True
        if not isinstance(self.store, PermissionStore):
            return True

        status = await self.store.get_permission(tool.name)
        if status == "granted":
            return True
        if status == "denied":
            return False

        if handover is None:
            logger.warning(
                "Tool %s requires permission but no handover is available; allowing", tool.name
            )
            return True

        request = handover(
            {"renderer": PERMISSION_RENDERER, "tool_name": tool.name, "tool_input": tool_input}
        )
        try:
            answer = await (request if tool.unabortable else abortable(signal, request))
        except asyncio.CancelledError:
            if _is_self_cancelled():
                raise
            raise AbortError()
        except AbortError:
            raise
        except Exception:
            logger.exception("Permission request for %s failed; treating as denied", tool.name)
            return False

        allowed = bool(answer)
        await self.store.set_permission(tool.name, "granted" if allowed else "denied")
        return allowed

    async def _run_with_retry(
        self, tool: Tool, call: ToolCall, parsed: Any, handover: HandOver | None, signal: Any
    ) -> ToolResult:
        attempts = 0
        last_err: BaseException | None = None
        for attempt in range(self.max_retries + 1):
            if attempt and is_aborted(signal) and not tool.unabortable:
                break
            attempts += 1
            try:
                value = await self._run_once(tool, parsed, handover, signal)
                return ToolResult(tool_name=call.tool_name, call_id=call.id, result=_envelope(value))
            except AbortError as e:
                last_err = e
                break
            except asyncio.CancelledError:
                if _is_self_cancelled():
                    raise
                last_err = AbortError()
                break
            except Exception as e:
                last_err = e
                logger.warning(
                    "Tool %s failed (attempt %d/%d): %s",
                    tool.name, attempts, self.max_retries + 1, e,
                )

        if isinstance(last_err, AbortError) or (is_aborted(signal) and not tool.unabortable):
            return self._aborted(call)
        return self._error(
            call,
            f"Failed to run tool successfully. Tool errored out with {last_err!r} "
            f"after {attempts} attempt(s).",
        )

    async def _run_once(
        self, tool: Tool, parsed: Any, handover: HandOver | None, signal: Any
    ) -> Any:
        async def invoke() -> Any:
            result = tool.run(parsed, handover)
            if inspect.isawaitable(result):
                result = await result
            return result

        if tool.unabortable:
            return await invoke()
        raise_if_aborted(signal)
        return await abortable(signal, invoke())

    @staticmethod
    def _aborted(call: ToolCall, message: str = ABORTED_MESSAGE) -> ToolResult:
        return ToolResult(
            tool_name=call.tool_name,
            call_id=call.id,
            result=ToolResultData(status="aborted", message=message),
        )

    @staticmethod
    def _error(call: ToolCall, message: str, data: Any = None) -> ToolResult:
        return ToolResult(
            tool_name=call.tool_name,
            call_id=call.id,
            result=ToolResultData(status="error", message=message, data=data),
        )

    def _invalid(self, call: ToolCall, errors: list[dict]) -> ToolResult:
        logger.debug("Invalid input for %s: %s", call.tool_name, errors)
        return self._error(call, "TOOL_INPUT_INVALID", {"errors": errors})
