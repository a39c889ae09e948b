"""Structured error hierarchy for the orchestration engine."""

from __future__ import annotations


class TetherError(Exception):
    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause

    @classmethod
    def wrap(cls, err: Exception) -> TetherError:
        if isinstance(err, TetherError):
            return err
        return TetherError("UNKNOWN", str(err), err)


class AbortError(TetherError):
    """Raised when a cancellation signal stops a turn or a tool run."""

    def __init__(self, message: str = "Operation aborted") -> None:
        super().__init__("AGENT_ABORT", message)


class ToolError(TetherError):
    def __init__(
        self, code: str, tool_name: str, message: str, cause: Exception | None = None
    ) -> None:
        super().__init__(code, message, cause)
        self.tool_name = tool_name


class DuplicateToolError(ToolError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(
            "TOOL_DUPLICATE", tool_name, f'Tool "{tool_name}" is already registered.'
        )


class ToolValidationError(ToolError):
    def __init__(self, tool_name: str, errors: list[dict], cause: Exception | None = None) -> None:
        super().__init__(
            "TOOL_INPUT_INVALID",
            tool_name,
            f'Failed to validate the input args provided for tool "{tool_name}"',
            cause,
        )
        self.errors = errors


class StoreError(TetherError):
    def __init__(self, store_id: str, message: str, cause: Exception | None = None) -> None:
        super().__init__("STORE_ERROR", message, cause)
        self.store_id = store_id
