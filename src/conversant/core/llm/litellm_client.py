"""LiteLLM model client.

Supports 100+ LLM providers through litellm's OpenAI-compatible interface:
- Anthropic: "claude-sonnet-4-5-20250929"
- OpenAI: "gpt-4o"
- Local: "ollama/llama3"

See https://docs.litellm.ai/docs/providers for full list.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import litellm

from conversant.config.secrets import fetch_secret
from conversant.core.llm.provider import ModelResponse, ResponseBlock, ToolChoice
from conversant.core.messages import (
    Message,
    Role,
    TextContent,
    ToolResultContent,
    ToolUseContent,
)
from conversant.logging import TRACE, get_logger

if TYPE_CHECKING:
    from conversant.tools.base import ToolSet

log = get_logger("llm")

RESPONSE_SCHEMA_NAME = "final_output"


def to_openai_messages(
    messages: list[Message], system_prompt: str | None = None
) -> list[dict[str, Any]]:
    """Convert conversation history to OpenAI chat messages.

    Tool results become ``tool`` role messages; any text that shares a
    user message with tool results follows them as a separate user message.
    """
    result: list[dict[str, Any]] = []
    if system_prompt:
        result.append({"role": "system", "content": system_prompt})

    for message in messages:
        if message.role == Role.ASSISTANT:
            entry: dict[str, Any] = {"role": "assistant", "content": message.text or None}
            uses = message.tool_uses
            if uses:
                entry["tool_calls"] = [
                    {
                        "id": u.id,
                        "type": "function",
                        "function": {"name": u.name, "arguments": u.arguments},
                    }
                    for u in uses
                ]
            result.append(entry)
            continue

        for content in message.contents:
            if isinstance(content, ToolResultContent):
                result.append(
                    {
                        "role": "tool",
                        "tool_call_id": content.call_id,
                        "name": content.name,
                        "content": content.output,
                    }
                )
        if message.text:
            result.append({"role": "user", "content": message.text})

    return result


def parse_response(response: Any) -> ModelResponse:
    """Convert a litellm completion response into a ModelResponse."""
    choice = response.choices[0]
    message = choice.message
    blocks: list[ResponseBlock] = []

    if message.content:
        blocks.append(TextContent(message.content))
    for call in getattr(message, "tool_calls", None) or []:
        blocks.append(
            ToolUseContent(
                id=call.id,
                name=call.function.name,
                arguments=call.function.arguments or "{}",
            )
        )

    usage: dict[str, int] = {}
    if getattr(response, "usage", None):
        usage = {
            "prompt_tokens": response.usage.prompt_tokens,
            "completion_tokens": response.usage.completion_tokens,
            "total_tokens": response.usage.total_tokens,
        }

    return ModelResponse(content=blocks, stop_reason=choice.finish_reason, usage=usage)


class LiteLLMClient:
    """Model client using litellm for multi-provider support.

    Usage:
        client = LiteLLMClient()
        session = ConversationalAgentSession(client, tools)
        session.run("...", model="gpt-4o", output_type=Answer)

        # With custom base URL
        client = LiteLLMClient(api_base="http://localhost:8000/v1")
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_key_env: str | None = None,
        api_base: str | None = None,
        max_tokens: int = 4096,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: API key (uses provider env vars if not provided)
            api_key_env: Secret name to read the key from when api_key is None
            api_base: Custom API base URL
            max_tokens: Maximum tokens per model call
            temperature: Sampling temperature (omitted when None)
            **kwargs: Additional litellm options
        """
        if api_key is None and api_key_env:
            api_key = fetch_secret(api_key_env)
        self._api_key = api_key
        self._api_base = api_base
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._kwargs = kwargs

    def _build_kwargs(
        self,
        messages: list[Message],
        *,
        model: str,
        system_prompt: str | None,
        tools: ToolSet,
        tool_choice: ToolChoice | None,
        response_schema: dict[str, Any] | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": to_openai_messages(messages, system_prompt),
            "max_tokens": self._max_tokens,
            **self._kwargs,
        }

        if not tools.is_empty:
            kwargs["tools"] = [d.to_openai() for d in tools.definitions]
            if tool_choice is not None:
                kwargs["tool_choice"] = tool_choice.to_openai()
        if response_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": RESPONSE_SCHEMA_NAME, "schema": response_schema},
            }
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base

        return kwargs

    async def execute_agent_step(
        self,
        messages: list[Message],
        *,
        model: str,
        system_prompt: str | None = None,
        tools: ToolSet,
        tool_choice: ToolChoice | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> ModelResponse:
        kwargs = self._build_kwargs(
            messages,
            model=model,
            system_prompt=system_prompt,
            tools=tools,
            tool_choice=tool_choice,
            response_schema=response_schema,
        )
        log.log(TRACE, "litellm request: model=%s messages=%d", model, len(kwargs["messages"]))

        response = await litellm.acompletion(**kwargs)
        return parse_response(response)


def create_client(**kwargs: Any) -> LiteLLMClient:
    """Create a LiteLLMClient from the loaded config, with overrides.

    Args:
        **kwargs: Values overriding ``config.llm`` settings
    """
    from conversant.config import get_config

    llm = get_config().llm
    options: dict[str, Any] = {
        "api_base": llm.api_base,
        "max_tokens": llm.max_tokens or 4096,
        "temperature": llm.temperature,
        "api_key_env": llm.api_key_env,
    }
    options.update(kwargs)
    return LiteLLMClient(**options)
