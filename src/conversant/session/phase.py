"""Session status, stream phases, agent steps and the internal loop phase.

Every union here is a closed set of frozen dataclasses: a value is exactly
one variant, and the variant carries only its own payload.

    SessionPhase                 (what the stream yields)
      SessionStatus              (what the session owns; no output payload)
        Idle | Running(step) | AwaitingUserInput(question) | Paused | Failed(error)
      Completed(output)          (stream only)

    AgentStep                    (payload of Running)
      UserMessageStep | ThinkingStep | ToolCallStep | ToolResultStep
      | InterruptedStep | AskingUserStep

    LoopPhase                    (private to the loop)
      ToolUsePhase | FinalOutputPhase(retry_count)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from conversant.core.messages import ToolCall, ToolResponse

OutputT = TypeVar("OutputT")

PREVIEW_LENGTH = 30


def _preview(text: str) -> str:
    if len(text) <= PREVIEW_LENGTH:
        return text
    return text[:PREVIEW_LENGTH] + "..."


# -----------------------------------------------------------------------------
# Agent steps
# -----------------------------------------------------------------------------


class AgentStep:
    """One unit of progress inside a running session."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class UserMessageStep(AgentStep):
    text: str

    def __str__(self) -> str:
        return f"userMessage({_preview(self.text)})"


@dataclass(frozen=True, slots=True)
class ThinkingStep(AgentStep):
    """The model is being called."""

    def __str__(self) -> str:
        return "thinking"


@dataclass(frozen=True, slots=True)
class ToolCallStep(AgentStep):
    call: ToolCall

    def __str__(self) -> str:
        return f"toolCall({self.call.name})"


@dataclass(frozen=True, slots=True)
class ToolResultStep(AgentStep):
    response: ToolResponse

    def __str__(self) -> str:
        prefix = "error: " if self.response.is_error else ""
        return f"toolResult({prefix}{_preview(self.response.output)})"


@dataclass(frozen=True, slots=True)
class InterruptedStep(AgentStep):
    """A queued interrupt was spliced into the history."""

    text: str

    def __str__(self) -> str:
        return f"interrupted({_preview(self.text)})"


@dataclass(frozen=True, slots=True)
class AskingUserStep(AgentStep):
    question: str

    def __str__(self) -> str:
        return f"askingUser({_preview(self.question)})"


# -----------------------------------------------------------------------------
# Phases and status
# -----------------------------------------------------------------------------


class SessionPhase:
    """An element of a run's phase stream."""

    __slots__ = ()

    @property
    def is_terminal(self) -> bool:
        """True for the phases that end a stream."""
        return isinstance(self, (Completed, Failed, Paused, Idle))


class SessionStatus(SessionPhase):
    """Session lifecycle state; decides which operations are legal."""

    __slots__ = ()

    @property
    def can_run(self) -> bool:
        return isinstance(self, Idle)

    @property
    def can_resume(self) -> bool:
        """Resume is legal from idle (history permitting), paused or failed."""
        return isinstance(self, (Idle, Paused, Failed))

    @property
    def can_interrupt(self) -> bool:
        return isinstance(self, Running)

    @property
    def can_reply(self) -> bool:
        return isinstance(self, AwaitingUserInput)

    @property
    def can_cancel(self) -> bool:
        return isinstance(self, (Running, AwaitingUserInput))

    @property
    def can_clear(self) -> bool:
        return isinstance(self, (Paused, Failed))

    @property
    def is_active(self) -> bool:
        return isinstance(self, (Running, AwaitingUserInput))


@dataclass(frozen=True, slots=True)
class Idle(SessionStatus):
    def __str__(self) -> str:
        return "idle"


@dataclass(frozen=True, slots=True)
class Running(SessionStatus):
    step: AgentStep

    def __str__(self) -> str:
        return f"running({self.step})"


@dataclass(frozen=True, slots=True)
class AwaitingUserInput(SessionStatus):
    question: str

    def __str__(self) -> str:
        return f"awaitingUserInput({_preview(self.question)})"


@dataclass(frozen=True, slots=True)
class Paused(SessionStatus):
    def __str__(self) -> str:
        return "paused"


@dataclass(frozen=True, slots=True)
class Failed(SessionStatus):
    error: str

    def __str__(self) -> str:
        return f"failed({_preview(self.error)})"


@dataclass(frozen=True)
class Completed(SessionPhase, Generic[OutputT]):
    """A run finished with an output.

    Attributes:
        output: Decoded output, or the raw text when ``decoded`` is False
        raw_text: The model text the output came from
        decoded: False when the raw text was returned without decoding
    """

    output: OutputT
    raw_text: str = ""
    decoded: bool = True

    def __str__(self) -> str:
        return f"completed({_preview(repr(self.output))})"


# -----------------------------------------------------------------------------
# Loop phase
# -----------------------------------------------------------------------------


class LoopPhase:
    """Which kind of model call the loop makes next."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class ToolUsePhase(LoopPhase):
    """Tools offered, free text allowed, interrupts drained."""


@dataclass(frozen=True, slots=True)
class FinalOutputPhase(LoopPhase):
    """No tools; the model must answer in the output schema."""

    retry_count: int = 0

    def retried(self) -> FinalOutputPhase:
        return FinalOutputPhase(self.retry_count + 1)


def status_to_dict(status: SessionStatus) -> dict[str, Any]:
    """Flatten a status for event payloads and logs."""
    if isinstance(status, Running):
        return {"status": "running", "step": str(status.step)}
    if isinstance(status, AwaitingUserInput):
        return {"status": "awaiting_user_input", "question": status.question}
    if isinstance(status, Failed):
        return {"status": "failed", "error": status.error}
    if isinstance(status, Paused):
        return {"status": "paused"}
    return {"status": "idle"}
