"""Agent decision and bookkeeping types."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping

from ..core.errors import InvalidAgentOutputError
from ..core.messages import Message


@dataclass(frozen=True)
class AgentAction:
    """A request from the planner to run one tool.

    Args:
        tool: Name of the tool to run
        tool_input: Raw input for the tool (often a JSON string)
        log: The planner's reasoning that led to this action
        message_log: Model messages that produced this action
    """

    tool: str
    tool_input: str = ""
    log: str = ""
    message_log: tuple[Message, ...] = ()


@dataclass(frozen=True)
class AgentFinish:
    """The planner's final answer.

    Args:
        return_values: Output values, usually ``{"output": ...}``
        log: Raw model text behind the answer
        message_log: Model messages that produced the answer
    """

    return_values: Mapping[str, Any]
    log: str = ""
    message_log: tuple[Message, ...] = ()


@dataclass(frozen=True)
class AgentStep:
    """An executed action and what came back from it."""

    action: AgentAction
    observation: str


@dataclass(frozen=True)
class AgentOutput:
    """One planning decision: a non-empty list of actions, or a finish.

    Exactly one of the two is populated; anything else raises
    ``InvalidAgentOutputError``.

    Example:
        AgentOutput(actions=[AgentAction("search", "weather in Paris")])
        AgentOutput(finish=AgentFinish({"output": "Sunny"}))
    """

    actions: tuple[AgentAction, ...] = ()
    finish: AgentFinish | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "actions", tuple(self.actions))
        if self.actions and self.finish is not None:
            raise InvalidAgentOutputError("AgentOutput cannot hold both actions and a finish")
        if not self.actions and self.finish is None:
            raise InvalidAgentOutputError("AgentOutput needs at least one action or a finish")

    @property
    def is_finish(self) -> bool:
        return self.finish is not None


class AgentState(enum.Enum):
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"
    ITERATION_LIMIT_EXCEEDED = "iteration_limit_exceeded"


@dataclass
class AgentRun:
    """Outcome of one executor run, successful or not.

    Args:
        state: Terminal state of the loop
        output: Return values when the run finished, else None
        steps: Every executed step in order
        iterations: Iterations consumed, parsing retries included
        error: The failure when the run did not finish
    """

    state: AgentState = AgentState.RUNNING
    output: dict[str, Any] | None = None
    steps: list[AgentStep] = field(default_factory=list)
    iterations: int = 0
    error: BaseException | None = None

    @property
    def finished(self) -> bool:
        return self.state is AgentState.FINISHED
