"""Conversant: multi-turn, tool-using agent sessions with typed results."""

__version__ = "0.1.0"

# Public API
from conversant.config import AgentConfig, Config, get_config, load_config
from conversant.core import (
    LiteLLMClient,
    Message,
    ModelClient,
    ModelResponse,
    Role,
    ToolCall,
    ToolChoice,
    ToolResponse,
)
from conversant.errors import (
    ConversationalAgentError,
    InvalidStateError,
    MaxStepsExceededError,
    ModelClientError,
    OutputDecodingError,
    SessionAlreadyRunningError,
    ToolExecutionFailedError,
    ToolNotFoundError,
)
from conversant.mcp import MCPClientManager, MCPTool
from conversant.session import (
    AgentStep,
    AwaitingUserInput,
    Completed,
    ConversationalAgentSession,
    Failed,
    Idle,
    Paused,
    PhaseStream,
    Running,
    SessionEvent,
    SessionEventKind,
    SessionPhase,
    SessionStatus,
)
from conversant.tools import AskUserTool, FunctionTool, Tool, ToolResult, ToolSet, tool

__all__ = [
    # Session
    "ConversationalAgentSession",
    "PhaseStream",
    "SessionEvent",
    "SessionEventKind",
    # Phases
    "AgentStep",
    "AwaitingUserInput",
    "Completed",
    "Failed",
    "Idle",
    "Paused",
    "Running",
    "SessionPhase",
    "SessionStatus",
    # Model clients
    "LiteLLMClient",
    "Message",
    "ModelClient",
    "ModelResponse",
    "Role",
    "ToolCall",
    "ToolChoice",
    "ToolResponse",
    # Tools
    "AskUserTool",
    "FunctionTool",
    "Tool",
    "ToolResult",
    "ToolSet",
    "tool",
    # MCP
    "MCPClientManager",
    "MCPTool",
    # Config
    "AgentConfig",
    "Config",
    "get_config",
    "load_config",
    # Errors
    "ConversationalAgentError",
    "InvalidStateError",
    "MaxStepsExceededError",
    "ModelClientError",
    "OutputDecodingError",
    "SessionAlreadyRunningError",
    "ToolExecutionFailedError",
    "ToolNotFoundError",
]
