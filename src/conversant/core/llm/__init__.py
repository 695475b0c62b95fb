"""Model client abstraction."""

from conversant.core.llm.litellm_client import LiteLLMClient, create_client
from conversant.core.llm.provider import ModelClient, ModelResponse, ToolChoice

__all__ = [
    "LiteLLMClient",
    "ModelClient",
    "ModelResponse",
    "ToolChoice",
    "create_client",
]
