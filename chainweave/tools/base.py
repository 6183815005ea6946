"""Structured tools built from plain functions or pydantic models."""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from pydantic import BaseModel, ValidationError

from ..core.errors import ToolExecutionError
from ..core.runnable import maybe_await
from ..interfaces import Tool
from .schema import docstring_summary, function_parameters, model_parameters

logger = logging.getLogger(__name__)

# Schema of a tool that takes one free-form string.
DEFAULT_ARGS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "input": {"type": "string", "description": "The input to the tool"},
    },
    "required": ["input"],
}


@dataclass(frozen=True)
class ToolDefinition:
    """What a model needs to know to call a tool."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the OpenAI-style function tool payload."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class StructuredTool:
    """A named tool whose function receives the raw string input.

    Failures inside the function surface as ``ToolExecutionError``.

    Example:
        echo = StructuredTool("echo", "Repeat the input", lambda s: s)
        await echo.run("hi")  # "hi"
    """

    def __init__(
        self,
        name: str,
        description: str,
        fn: Callable[[str], Any],
        args_schema: dict[str, Any] | None = None,
    ):
        if not name:
            raise ValueError("Tool name must not be empty")
        self._name = name
        self._description = description
        self._fn = fn
        self._args_schema = args_schema if args_schema is not None else DEFAULT_ARGS_SCHEMA

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def args_schema(self) -> dict[str, Any]:
        return self._args_schema

    async def run(self, input: str) -> str:
        try:
            result = await maybe_await(self._fn, input)
        except ToolExecutionError:
            raise
        except Exception as exc:
            raise ToolExecutionError(self._name, exc) from exc
        return result if isinstance(result, str) else str(result)

    @classmethod
    def from_function(
        cls,
        fn: Callable,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> "StructuredTool":
        """Build a tool that calls ``fn(**arguments)`` with JSON-decoded input.

        The argument schema comes from the signature; the description and
        per-argument descriptions come from a Google-style docstring. A
        function with a single parameter also accepts a bare, non-JSON input.

        Example:
            async def add(a: int, b: int) -> int:
                \"\"\"Add two numbers.

                Args:
                    a: First addend
                    b: Second addend
                \"\"\"
                return a + b

            calc = StructuredTool.from_function(add)
            await calc.run('{"a": 1, "b": 2}')  # "3"
        """
        tool_name = name or getattr(fn, "__name__", "tool")
        doc = inspect.getdoc(fn) or ""
        parameters = function_parameters(fn)
        param_names = list(parameters["properties"])

        async def call(input: str) -> Any:
            kwargs = _decode_arguments(tool_name, input, param_names)
            return await maybe_await(fn, **kwargs)

        return cls(
            tool_name,
            description or docstring_summary(doc) or tool_name,
            call,
            parameters,
        )

    @classmethod
    def from_model(
        cls,
        args_model: type[BaseModel],
        fn: Callable[[Any], Any],
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> "StructuredTool":
        """Build a tool whose JSON input is validated by a pydantic model.

        ``fn`` receives the validated model instance.
        """
        tool_name = name or getattr(fn, "__name__", "tool")
        # Only the model's own docstring; getdoc would fall back to BaseModel's
        doc = inspect.getdoc(fn) or inspect.cleandoc(args_model.__dict__.get("__doc__") or "")

        async def call(input: str) -> Any:
            try:
                args = args_model.model_validate_json(input or "{}")
            except ValidationError as exc:
                raise ToolExecutionError(tool_name, f"invalid arguments: {exc}") from exc
            return await maybe_await(fn, args)

        return cls(
            tool_name,
            description or docstring_summary(doc) or tool_name,
            call,
            model_parameters(args_model),
        )

    def __repr__(self) -> str:
        return f"StructuredTool(name={self._name!r})"


def _decode_arguments(tool_name: str, raw: str, param_names: list[str]) -> dict[str, Any]:
    if not raw.strip():
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        if len(param_names) == 1:
            return {param_names[0]: raw}
        raise ToolExecutionError(tool_name, f"failed to parse tool input: {exc}") from exc
    if isinstance(decoded, dict):
        return decoded
    if len(param_names) == 1:
        return {param_names[0]: decoded}
    raise ToolExecutionError(
        tool_name, f"expected a JSON object of arguments, got {type(decoded).__name__}"
    )


def tool(
    _fn: Callable | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    args_model: type[BaseModel] | None = None,
):
    """Decorator that turns a function into a StructuredTool.

    Example:
        @tool
        async def get_weather(city: str) -> str:
            \"\"\"Look up the current weather.

            Args:
                city: City name
            \"\"\"
            return f"Sunny in {city}"

        @tool(name="search", args_model=SearchArgs)
        def search(args: SearchArgs) -> str:
            return f"results for {args.query}"
    """

    def wrapper(fn: Callable) -> StructuredTool:
        if args_model is not None:
            return StructuredTool.from_model(
                args_model, fn, name=name, description=description
            )
        return StructuredTool.from_function(fn, name=name, description=description)

    if _fn is None:
        return wrapper

    return wrapper(_fn)


def to_definition(t: Tool) -> ToolDefinition:
    return ToolDefinition(
        name=t.name, description=t.description, parameters=dict(t.args_schema)
    )


def to_definitions(tools: Iterable[Tool]) -> list[ToolDefinition]:
    return [to_definition(t) for t in tools]


def build_tool_map(tools: Iterable[Tool]) -> dict[str, Tool]:
    """Build a name -> tool mapping, rejecting duplicate names."""
    tool_map: dict[str, Tool] = {}
    for t in tools:
        if t.name in tool_map:
            raise ValueError(f"Duplicate tool name: {t.name}")
        tool_map[t.name] = t
    return tool_map
