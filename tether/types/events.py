"""Event names and subscriber contract."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

TEXT_DELTA = "text_delta"
TOOL_USE = "tool_use"
TOOL_USE_RESULT = "tool_use_result"
MODEL_RESPONSE = "model_response"
MODEL_RESPONSE_COMPLETE = "model_response_complete"


@runtime_checkable
class Subscriber(Protocol):
    async def record(self, event_type: str, data: Any) -> None: ...
