"""Structured output contract.

An output type exposes a JSON schema and can be built from JSON text.
pydantic models satisfy the contract as-is; ``str`` is accepted as the
plain-text output type and skips decoding entirely.
"""

from __future__ import annotations

import re
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import ValidationError

from conversant.errors import OutputDecodingError

OutputT = TypeVar("OutputT")

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL)

FINAL_OUTPUT_REQUEST = "Please provide your final response in the required JSON format."


@runtime_checkable
class StructuredOutput(Protocol):
    """Protocol for types the session can decode model output into."""

    @classmethod
    def model_json_schema(cls) -> dict[str, Any]:
        """Return the JSON schema describing the type."""
        ...

    @classmethod
    def model_validate_json(cls, json_data: str | bytes) -> Any:
        """Construct an instance from JSON text, raising on invalid input."""
        ...


def is_text_output(output_type: type) -> bool:
    return output_type is str


def output_schema(output_type: type) -> dict[str, Any] | None:
    """Schema to request from the model, or None for plain text output."""
    if is_text_output(output_type):
        return None
    if not hasattr(output_type, "model_json_schema"):
        raise TypeError(
            f"{output_type.__name__} does not provide model_json_schema(); "
            "use a pydantic model or str"
        )
    return output_type.model_json_schema()


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json fence if the model added one."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def decode_output(output_type: type[OutputT], text: str) -> OutputT:
    """Decode model text as ``output_type``.

    Raises:
        OutputDecodingError: If the text is empty or does not validate.
    """
    if not text.strip():
        raise OutputDecodingError("Response contains no text")
    if is_text_output(output_type):
        return text  # type: ignore[return-value]
    try:
        return output_type.model_validate_json(strip_code_fence(text))  # type: ignore[attr-defined]
    except (ValidationError, ValueError) as e:
        raise OutputDecodingError(e) from e
