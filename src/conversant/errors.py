"""Error taxonomy for conversational agent sessions.

Tool failures (ToolNotFoundError, ToolExecutionFailedError) are absorbed
into the conversation as error tool results. OutputDecodingError is retried
a bounded number of times. Everything else ends a run in the failed phase.
"""

from __future__ import annotations


class ConversationalAgentError(Exception):
    """Base class for all session errors."""


class SessionAlreadyRunningError(ConversationalAgentError):
    """run() or resume() was called while the session is not in a startable state."""

    def __init__(self) -> None:
        super().__init__("Session is already running. Wait for completion or cancel first.")


class MaxStepsExceededError(ConversationalAgentError):
    """The loop used up its step budget without producing a result."""

    def __init__(self, steps: int) -> None:
        self.steps = steps
        super().__init__(f"Agent exceeded maximum steps limit ({steps})")


class ToolNotFoundError(ConversationalAgentError):
    """A tool call named a tool that is not in the tool set."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool not found: {name}")


class ToolExecutionFailedError(ConversationalAgentError):
    """A tool raised while executing."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        self.message = message
        super().__init__(f"Tool execution failed ({name}): {message}")


class OutputDecodingError(ConversationalAgentError):
    """The model's final text could not be decoded as the output type."""

    def __init__(self, cause: Exception | str) -> None:
        self.cause = cause
        super().__init__(f"Failed to decode output: {cause}")


class ModelClientError(ConversationalAgentError):
    """The model client failed to execute an agent step."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"LLM error: {cause}")


class InvalidStateError(ConversationalAgentError):
    """Catch-all for conditions that indicate a programming error."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid session state: {message}")
