"""Tools agents can call, and their model-facing definitions."""

from .base import (
    DEFAULT_ARGS_SCHEMA,
    StructuredTool,
    ToolDefinition,
    build_tool_map,
    to_definition,
    to_definitions,
    tool,
)
from .runnable import ToolRunnable

__all__ = [
    "DEFAULT_ARGS_SCHEMA",
    "StructuredTool",
    "ToolDefinition",
    "ToolRunnable",
    "build_tool_map",
    "to_definition",
    "to_definitions",
    "tool",
]
