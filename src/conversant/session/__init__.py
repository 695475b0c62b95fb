"""Conversational agent sessions."""

from conversant.session.engine import (
    CONTINUE_MESSAGE,
    INTERRUPTED_TOOL_RESULT,
    MAX_DECODE_RETRIES,
    ConversationalAgentSession,
)
from conversant.session.events import (
    EventDispatcher,
    SessionEvent,
    SessionEventKind,
    SessionListener,
)
from conversant.session.phase import (
    AgentStep,
    AskingUserStep,
    AwaitingUserInput,
    Completed,
    Failed,
    FinalOutputPhase,
    Idle,
    InterruptedStep,
    LoopPhase,
    Paused,
    Running,
    SessionPhase,
    SessionStatus,
    ThinkingStep,
    ToolCallStep,
    ToolResultStep,
    ToolUsePhase,
    UserMessageStep,
)
from conversant.session.rendezvous import AnswerRendezvous
from conversant.session.stream import PhaseStream

__all__ = [
    "CONTINUE_MESSAGE",
    "INTERRUPTED_TOOL_RESULT",
    "MAX_DECODE_RETRIES",
    "AgentStep",
    "AnswerRendezvous",
    "AskingUserStep",
    "AwaitingUserInput",
    "Completed",
    "ConversationalAgentSession",
    "EventDispatcher",
    "Failed",
    "FinalOutputPhase",
    "Idle",
    "InterruptedStep",
    "LoopPhase",
    "Paused",
    "PhaseStream",
    "Running",
    "SessionEvent",
    "SessionEventKind",
    "SessionListener",
    "SessionPhase",
    "SessionStatus",
    "ThinkingStep",
    "ToolCallStep",
    "ToolResultStep",
    "ToolUsePhase",
    "UserMessageStep",
]
