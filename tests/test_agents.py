"""Tests for the plan-act agent executor."""

import pytest
from conftest import RecordingHandler, ScriptedPlanner

from chainweave import AgentExecutor, Sequence, StructuredTool
from chainweave.agents import AgentAction, AgentFinish, AgentOutput, AgentRun, AgentState, AgentStep
from chainweave.core import (
    CancelToken,
    InvalidAgentOutputError,
    IterationLimitExceededError,
    OutputParserError,
    PlanningError,
    RunCancelledError,
    build_config,
    with_callbacks,
    with_cancel_token,
)


def _act(tool, tool_input=""):
    return AgentOutput(actions=[AgentAction(tool=tool, tool_input=tool_input, log=f"use {tool}")])


def _finish(text):
    return AgentOutput(finish=AgentFinish(return_values={"output": text}, log=text))


@pytest.mark.asyncio
async def test_calculator_then_finish(calculator):
    """One tool call followed by a final answer takes exactly two plans."""
    planner = ScriptedPlanner(_act("calculator", "6 * 7"), _finish("The answer is 42"))
    executor = AgentExecutor(planner, [calculator])

    result = await executor.invoke({"input": "What is 6 * 7?"})

    assert result == {"output": "The answer is 42"}
    assert len(planner.calls) == 2
    assert calculator.calls == ["6 * 7"]
    assert planner.calls[0] == ()
    [step] = planner.calls[1]
    assert step.observation == "42"
    assert step.action.tool == "calculator"


@pytest.mark.asyncio
async def test_iteration_limit(calculator):
    planner = ScriptedPlanner(_act("calculator"))
    executor = AgentExecutor(planner, [calculator], max_iterations=3)

    with pytest.raises(IterationLimitExceededError) as exc_info:
        await executor.invoke({"input": "loop forever"})

    assert exc_info.value.max_iterations == 3
    assert len(planner.calls) == 3
    assert len(calculator.calls) == 3


@pytest.mark.asyncio
async def test_run_reports_iteration_limit(calculator):
    executor = AgentExecutor(ScriptedPlanner(_act("calculator")), [calculator], max_iterations=2)

    record = await executor.run({"input": "loop"})

    assert isinstance(record, AgentRun)
    assert record.state is AgentState.ITERATION_LIMIT_EXCEEDED
    assert record.iterations == 2
    assert len(record.steps) == 2
    assert isinstance(record.error, IterationLimitExceededError)
    assert not record.finished


@pytest.mark.asyncio
async def test_run_reports_finish(calculator):
    executor = AgentExecutor(ScriptedPlanner(_finish("done")), [calculator])

    record = await executor.run({"input": "hi"})

    assert record.finished
    assert record.output == {"output": "done"}
    assert record.error is None
    assert record.steps == []


@pytest.mark.asyncio
async def test_unknown_tool_becomes_observation(calculator):
    planner = ScriptedPlanner(_act("weather", "Paris"), _finish("no weather tool"))
    executor = AgentExecutor(planner, [calculator])

    result = await executor.invoke({"input": "weather?"})

    assert result == {"output": "no weather tool"}
    [step] = planner.calls[1]
    assert step.observation == 'Tool "weather" not found. Available tools: calculator'
    assert calculator.calls == []


@pytest.mark.asyncio
async def test_tool_failure_becomes_observation(failing_tool):
    planner = ScriptedPlanner(_act("broken", "x"), _finish("gave up"))
    handler = RecordingHandler()
    executor = AgentExecutor(planner, [failing_tool])

    result = await executor.invoke({"input": "try"}, build_config(with_callbacks(handler)))

    assert result == {"output": "gave up"}
    [step] = planner.calls[1]
    assert step.observation == "Error executing tool broken: disk on fire"
    assert "tool_error" in handler.names


@pytest.mark.asyncio
async def test_multiple_actions_run_in_order():
    order = []

    def make(name):
        def run(input):
            order.append(name)
            return name.upper()

        return StructuredTool(name, name, run)

    both = AgentOutput(actions=[AgentAction("first", "1"), AgentAction("second", "2")])
    planner = ScriptedPlanner(both, _finish("ok"))
    executor = AgentExecutor(planner, [make("first"), make("second")])

    await executor.invoke({"input": "go"})

    assert order == ["first", "second"]
    assert [s.observation for s in planner.calls[1]] == ["FIRST", "SECOND"]


@pytest.mark.asyncio
async def test_callback_order(calculator):
    handler = RecordingHandler()
    planner = ScriptedPlanner(_act("calculator", "6 * 7"), _finish("42"))
    config = build_config(with_callbacks(handler))

    await AgentExecutor(planner, [calculator]).invoke({"input": "q"}, config)

    assert handler.names == [
        "chain_start",
        "agent_action",
        "tool_start",
        "tool_end",
        "agent_finish",
        "chain_end",
    ]
    assert handler.events[0][1] == {"input": "q"}
    assert handler.events[2][1] == ("calculator", "6 * 7")
    run_ids = dict(handler.run_ids)
    assert run_ids["chain_start"] == config.run_id
    assert run_ids["tool_start"] != config.run_id


@pytest.mark.asyncio
async def test_planning_error_fails_run():
    bad = OutputParserError("Could not parse LLM output: 'hmm'", llm_output="hmm")
    handler = RecordingHandler()
    executor = AgentExecutor(ScriptedPlanner(bad))

    with pytest.raises(PlanningError) as exc_info:
        await executor.invoke({"input": "q"}, build_config(with_callbacks(handler)))

    assert exc_info.value.cause is bad
    assert handler.names == ["chain_start", "chain_error"]


@pytest.mark.asyncio
async def test_handled_parsing_error_is_retried():
    bad = OutputParserError("Could not parse LLM output: 'hmm'", llm_output="hmm")
    planner = ScriptedPlanner(bad, _finish("recovered"))
    executor = AgentExecutor(planner, handle_parsing_errors=True)

    record = await executor.run({"input": "q"})

    assert record.output == {"output": "recovered"}
    assert record.iterations == 1
    [step] = planner.calls[1]
    assert step.action.tool == "_error"
    assert step.observation.startswith("Error: Could not parse LLM output")
    assert step.observation.endswith("Please try again with valid output.")


@pytest.mark.asyncio
async def test_parsing_retries_count_against_limit():
    bad = OutputParserError("garbled", llm_output="garbled")
    planner = ScriptedPlanner(bad)
    executor = AgentExecutor(planner, max_iterations=2, handle_parsing_errors=True)

    with pytest.raises(IterationLimitExceededError):
        await executor.invoke({"input": "q"})
    assert len(planner.calls) == 2


@pytest.mark.asyncio
async def test_intermediate_steps(calculator):
    planner = ScriptedPlanner(_act("calculator", "1 + 1"), _finish("2"))
    executor = AgentExecutor(planner, [calculator], return_intermediate_steps=True)

    result = await executor.invoke({"input": "q"})

    [step] = result["intermediate_steps"]
    assert isinstance(step, AgentStep)
    assert step.observation == "42"
    assert result["output"] == "2"


@pytest.mark.asyncio
async def test_planner_receives_snapshots(calculator):
    """Steps handed to the planner are not mutated by later iterations."""
    planner = ScriptedPlanner(_act("calculator"), _act("calculator"), _finish("done"))

    await AgentExecutor(planner, [calculator]).invoke({"input": "q"})

    assert [len(steps) for steps in planner.calls] == [0, 1, 2]
    assert all(isinstance(steps, tuple) for steps in planner.calls)


@pytest.mark.asyncio
async def test_cancelled_run(calculator):
    token = CancelToken()
    token.cancel("user aborted")
    planner = ScriptedPlanner(_finish("never"))

    with pytest.raises(RunCancelledError):
        await AgentExecutor(planner, [calculator]).invoke(
            {"input": "q"}, build_config(with_cancel_token(token))
        )
    assert planner.calls == []


@pytest.mark.asyncio
async def test_cancelled_between_iterations():
    token = CancelToken()

    def cancel_after(input):
        token.cancel()
        return "ok"

    canceller = StructuredTool("canceller", "Cancels the run", cancel_after)
    planner = ScriptedPlanner(_act("canceller"))
    executor = AgentExecutor(planner, [canceller])

    record = await executor.run({"input": "q"}, build_config(with_cancel_token(token)))

    assert record.state is AgentState.FAILED
    assert isinstance(record.error, RunCancelledError)
    assert len(planner.calls) == 1


def test_duplicate_tools_rejected(calculator):
    with pytest.raises(ValueError):
        AgentExecutor(ScriptedPlanner(_finish("x")), [calculator, calculator])


def test_invalid_max_iterations():
    with pytest.raises(ValueError):
        AgentExecutor(ScriptedPlanner(_finish("x")), max_iterations=0)


def test_agent_output_requires_one_kind():
    with pytest.raises(InvalidAgentOutputError):
        AgentOutput()
    with pytest.raises(InvalidAgentOutputError):
        AgentOutput(actions=[AgentAction("a")], finish=AgentFinish({"output": "x"}))
    assert _finish("x").is_finish


@pytest.mark.asyncio
async def test_executor_composes_in_pipeline(calculator):
    planner = ScriptedPlanner(_finish("composed"))
    chain = Sequence(lambda q: {"input": q}, AgentExecutor(planner, [calculator]), lambda r: r["output"])

    assert await chain.invoke("question") == "composed"
    assert planner.calls == [()]
