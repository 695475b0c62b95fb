"""Core types: conversation history, output contract, model clients."""

from conversant.core.llm import LiteLLMClient, ModelClient, ModelResponse, ToolChoice
from conversant.core.messages import (
    Message,
    MessageContent,
    Role,
    TextContent,
    ToolCall,
    ToolResponse,
    ToolResultContent,
    ToolUseContent,
)
from conversant.core.output import StructuredOutput, decode_output, output_schema

__all__ = [
    # LLM
    "LiteLLMClient",
    "ModelClient",
    "ModelResponse",
    "ToolChoice",
    # Messages
    "Message",
    "MessageContent",
    "Role",
    "TextContent",
    "ToolCall",
    "ToolResponse",
    "ToolResultContent",
    "ToolUseContent",
    # Output
    "StructuredOutput",
    "decode_output",
    "output_schema",
]
