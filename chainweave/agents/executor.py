"""Plan-act loop that drives a planner and its tools to a final answer."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Iterable

from ..callbacks.manager import CallbackManager
from ..core.config import RunConfig, ensure_config
from ..core.context import check_cancelled, enter_scope, run_context, scoped_run_id
from ..core.errors import (
    IterationLimitExceededError,
    PlanningError,
    RunCancelledError,
    ToolExecutionError,
)
from ..core.runnable import Runnable
from ..interfaces import Tool
from ..tools.base import build_tool_map
from .protocols import Planner
from .types import AgentAction, AgentFinish, AgentRun, AgentState, AgentStep

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 15

# Tool name recorded on the synthetic step added for a retried planning error.
PARSING_ERROR_TOOL = "_error"


class AgentExecutor(Runnable[Mapping, dict]):
    """Runs plan, act, observe until the planner finishes.

    Each iteration asks the planner for a decision given every step so far.
    Actions run sequentially in the order returned; each produces a step whose
    observation is the tool output, or an error message when the tool is
    unknown or fails. Tool failures never abort the run.

    The loop ends when the planner returns a finish, the planner fails (and
    parsing errors are not handled), the run is cancelled, or
    ``max_iterations`` is reached.

    Args:
        planner: Decides the next actions or the final answer.
        tools: Tools the planner may call, looked up by exact name.
        max_iterations: Iteration budget, parsing retries included.
        return_intermediate_steps: Add ``intermediate_steps`` to the output.
        handle_parsing_errors: Feed planner failures back as an observation
            and retry instead of failing the run.
        name: Name reported to callbacks.

    Example:
        executor = AgentExecutor(
            ReActPlanner(model, tools),
            tools,
            max_iterations=5,
            handle_parsing_errors=True,
        )
        result = await executor.invoke({"input": "What is 15 * 234?"})
        print(result["output"])
    """

    input_type = Mapping
    output_type = dict

    def __init__(
        self,
        planner: Planner,
        tools: Iterable[Tool] = (),
        *,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        return_intermediate_steps: bool = False,
        handle_parsing_errors: bool = False,
        name: str | None = None,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self.planner = planner
        self.tools: list[Tool] = list(tools)
        self._tool_map = build_tool_map(self.tools)
        self.max_iterations = max_iterations
        self.return_intermediate_steps = return_intermediate_steps
        self.handle_parsing_errors = handle_parsing_errors
        self._name = name

    @property
    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]

    async def invoke(self, input: Mapping, config: RunConfig | None = None) -> dict:
        """Run the loop to completion and return the finish values."""
        return await self._execute(input, config, AgentRun())

    async def run(self, inputs: Mapping, config: RunConfig | None = None) -> AgentRun:
        """Run the loop and report the outcome instead of raising.

        The returned ``AgentRun`` carries the terminal state, the output or
        the error, and every executed step.
        """
        record = AgentRun()
        try:
            await self._execute(inputs, config, record)
        except Exception as exc:
            logger.debug("%s: run ended in %s: %s", self.name, record.state.value, exc)
        return record

    async def _execute(
        self, inputs: Mapping, config: RunConfig | None, record: AgentRun
    ) -> dict:
        config = ensure_config(config)
        with enter_scope(config, self.name) as depth:
            run_id = scoped_run_id(config, depth)
            callbacks = CallbackManager.for_run(config)
            callbacks.on_chain_start(dict(inputs), run_id=run_id, extras={"name": self.name})
            try:
                with run_context(run_id):
                    return await self._loop(inputs, config, record, callbacks, run_id)
            except Exception as exc:
                if record.state is AgentState.RUNNING:
                    record.state = AgentState.FAILED
                record.error = exc
                callbacks.on_chain_error(exc, run_id=run_id)
                raise

    async def _loop(
        self,
        inputs: Mapping,
        config: RunConfig,
        record: AgentRun,
        callbacks: CallbackManager,
        run_id: str,
    ) -> dict:
        steps = record.steps
        while record.iterations < self.max_iterations:
            check_cancelled(config, f"{self.name} iteration {record.iterations}")
            logger.debug("%s: iteration %d", self.name, record.iterations)

            try:
                output = await self.planner.plan(tuple(steps), inputs, config)
            except RunCancelledError:
                raise
            except Exception as exc:
                if not self.handle_parsing_errors:
                    raise PlanningError(exc) from exc
                logger.debug("%s: retrying after planning error: %s", self.name, exc)
                steps.append(
                    AgentStep(
                        action=AgentAction(tool=PARSING_ERROR_TOOL, tool_input="", log=str(exc)),
                        observation=f"Error: {exc}. Please try again with valid output.",
                    )
                )
                record.iterations += 1
                continue

            if output.finish is not None:
                return self._finish(output.finish, record, callbacks, run_id)

            for action in output.actions:
                steps.append(await self._take_action(action, callbacks, run_id))
            record.iterations += 1

        record.state = AgentState.ITERATION_LIMIT_EXCEEDED
        raise IterationLimitExceededError(self.max_iterations)

    def _finish(
        self,
        finish: AgentFinish,
        record: AgentRun,
        callbacks: CallbackManager,
        run_id: str,
    ) -> dict:
        result: dict[str, Any] = dict(finish.return_values)
        if self.return_intermediate_steps:
            result["intermediate_steps"] = list(record.steps)
        callbacks.on_agent_finish(
            dataclasses.replace(finish, return_values=result), run_id=run_id
        )
        callbacks.on_chain_end(result, run_id=run_id)
        record.state = AgentState.FINISHED
        record.output = result
        return result

    async def _take_action(
        self, action: AgentAction, callbacks: CallbackManager, run_id: str
    ) -> AgentStep:
        callbacks.on_agent_action(action, run_id=run_id)

        tool = self._tool_map.get(action.tool)
        if tool is None:
            logger.warning("%s: planner requested unknown tool %r", self.name, action.tool)
            return AgentStep(
                action=action,
                observation=(
                    f'Tool "{action.tool}" not found. '
                    f"Available tools: {', '.join(self.tool_names)}"
                ),
            )

        tool_run_id = str(uuid.uuid4())
        callbacks.on_tool_start(
            action.tool, action.tool_input, run_id=tool_run_id, parent_run_id=run_id
        )
        try:
            with run_context(tool_run_id):
                observation = await tool.run(action.tool_input)
        except RunCancelledError:
            raise
        except Exception as exc:
            detail = exc.cause if isinstance(exc, ToolExecutionError) else exc
            logger.warning("%s: tool %s failed: %s", self.name, action.tool, detail)
            callbacks.on_tool_error(exc, run_id=tool_run_id)
            observation = f"Error executing tool {action.tool}: {detail}"
        else:
            callbacks.on_tool_end(observation, run_id=tool_run_id)
        return AgentStep(action=action, observation=observation)

    def __repr__(self) -> str:
        return (
            f"AgentExecutor(tools=[{', '.join(self.tool_names)}], "
            f"max_iterations={self.max_iterations})"
        )
