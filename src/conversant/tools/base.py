"""Tool protocol and the name-keyed ToolSet.

A tool has a name, a description, a JSON input schema, and an async
execute operation that returns a ToolResult or raises. ToolSet looks tools
up by name and decodes the JSON arguments before dispatching.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from conversant.errors import ToolExecutionFailedError, ToolNotFoundError
from conversant.logging import get_logger

log = get_logger("tools")

EMPTY_OBJECT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Outcome of a tool execution as seen by the model."""

    output: str
    is_error: bool = False

    @classmethod
    def text(cls, value: str) -> ToolResult:
        return cls(output=value)

    @classmethod
    def json(cls, value: Any) -> ToolResult:
        if isinstance(value, BaseModel):
            return cls(output=value.model_dump_json())
        return cls(output=json.dumps(value, sort_keys=True, default=str))

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(output=f"Error: {message}", is_error=True)


def to_tool_result(value: Any) -> ToolResult:
    """Coerce a tool function's return value into a ToolResult."""
    if isinstance(value, ToolResult):
        return value
    if value is None:
        return ToolResult.text("")
    if isinstance(value, str):
        return ToolResult.text(value)
    if isinstance(value, (bool, int, float)):
        return ToolResult.text(str(value))
    return ToolResult.json(value)


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Provider-neutral description of a tool."""

    name: str
    description: str
    input_schema: dict[str, Any]

    def to_openai(self) -> dict[str, Any]:
        """OpenAI function-calling format (also accepted by litellm)."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


@runtime_checkable
class Tool(Protocol):
    """Protocol for callable tools."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        """Run the tool with decoded arguments."""
        ...


class FunctionTool:
    """Tool backed by a plain (sync or async) Python function.

    When ``args_model`` is a pydantic model, the arguments are validated
    with it, the schema is taken from it, and the function receives the
    model instance as its single argument. Otherwise the function is called
    with the arguments as keyword arguments.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
        input_schema: dict[str, Any] | None = None,
        args_model: type[BaseModel] | None = None,
    ) -> None:
        self._func = func
        self._name = name or func.__name__
        self._description = description or inspect.getdoc(func) or ""
        self._args_model = args_model
        if input_schema is not None:
            self._input_schema = input_schema
        elif args_model is not None:
            self._input_schema = args_model.model_json_schema()
        else:
            self._input_schema = dict(EMPTY_OBJECT_SCHEMA)

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> dict[str, Any]:
        return self._input_schema

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        if self._args_model is not None:
            result = self._func(self._args_model.model_validate(arguments))
        else:
            result = self._func(**arguments)
        if inspect.isawaitable(result):
            result = await result
        return to_tool_result(result)

    def __repr__(self) -> str:
        return f"FunctionTool({self._name!r})"


def tool(
    name: str | None = None,
    *,
    description: str | None = None,
    input_schema: dict[str, Any] | None = None,
    args_model: type[BaseModel] | None = None,
) -> Callable[[Callable[..., Any]], FunctionTool]:
    """Decorator turning a function into a FunctionTool.

    Example:
        @tool(description="Look up a fact", input_schema={...})
        async def lookup(query: str) -> str:
            ...
    """

    def decorator(func: Callable[..., Any]) -> FunctionTool:
        return FunctionTool(
            func,
            name=name,
            description=description,
            input_schema=input_schema,
            args_model=args_model,
        )

    return decorator


class ToolSet:
    """Ordered, name-keyed collection of tools. May be empty."""

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for t in tools:
            if t.name in self._tools:
                raise ValueError(f"Duplicate tool name: {t.name}")
            self._tools[t.name] = t

    @property
    def is_empty(self) -> bool:
        return not self._tools

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    @property
    def definitions(self) -> list[ToolDefinition]:
        return [
            ToolDefinition(name=t.name, description=t.description, input_schema=t.input_schema)
            for t in self._tools.values()
        ]

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def appending(self, *tools: Tool) -> ToolSet:
        """Return a new ToolSet with ``tools`` added at the end."""
        return ToolSet([*self._tools.values(), *tools])

    def __add__(self, other: ToolSet) -> ToolSet:
        return self.appending(*other)

    async def execute(self, name: str, arguments: str) -> ToolResult:
        """Execute the named tool with JSON-encoded arguments.

        Raises:
            ToolNotFoundError: If no tool has that name.
            ToolExecutionFailedError: If the arguments are not a JSON object
                or the tool itself raises.
        """
        found = self._tools.get(name)
        if found is None:
            raise ToolNotFoundError(name)

        try:
            decoded = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise ToolExecutionFailedError(name, f"invalid arguments JSON: {e}") from e
        if not isinstance(decoded, dict):
            raise ToolExecutionFailedError(name, "arguments must be a JSON object")

        log.debug("Executing tool %s", name)
        try:
            return await found.execute(decoded)
        except Exception as e:
            raise ToolExecutionFailedError(name, str(e)) from e

    def __repr__(self) -> str:
        return f"ToolSet({len(self._tools)} tools: {', '.join(self._tools)})"
