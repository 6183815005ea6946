"""Tool-using agents: planners and the plan-act executor."""

from .executor import AgentExecutor
from .protocols import Planner
from .react import ReActPlanner, format_react_scratchpad, parse_react_output
from .tool_calling import ToolCallingPlanner, format_tool_calling_scratchpad
from .types import (
    AgentAction,
    AgentFinish,
    AgentOutput,
    AgentRun,
    AgentState,
    AgentStep,
)

__all__ = [
    # Executor
    "AgentExecutor",
    "AgentRun",
    "AgentState",
    # Decisions
    "AgentAction",
    "AgentFinish",
    "AgentOutput",
    "AgentStep",
    # Planners
    "Planner",
    "ReActPlanner",
    "ToolCallingPlanner",
    "format_react_scratchpad",
    "format_tool_calling_scratchpad",
    "parse_react_output",
]
