"""Tests for the ReAct and tool-calling planners."""

import json

import pytest
from conftest import FakeChatModel

from chainweave import AgentExecutor
from chainweave.agents import (
    AgentAction,
    AgentStep,
    ReActPlanner,
    ToolCallingPlanner,
    format_react_scratchpad,
    format_tool_calling_scratchpad,
    parse_react_output,
)
from chainweave.core import OutputParserError, ToolCall, ai, human, system


def test_parse_action():
    text = "Thought: I should compute\nAction: calculator\nAction Input: 6 * 7"
    output = parse_react_output(text)

    [action] = output.actions
    assert action.tool == "calculator"
    assert action.tool_input == "6 * 7"
    assert action.log == text


def test_parse_final_answer_wins():
    text = "Action: calculator\nAction Input: 1\nFinal Answer: 42"
    output = parse_react_output(text)

    assert output.is_finish
    assert output.finish.return_values == {"output": "42"}


def test_parse_action_without_input():
    [action] = parse_react_output("Thought: hmm\nAction: clock").actions
    assert action.tool == "clock"
    assert action.tool_input == ""


def test_parse_garbage():
    with pytest.raises(OutputParserError) as exc_info:
        parse_react_output("I am not sure what to do")
    assert exc_info.value.llm_output == "I am not sure what to do"


def test_react_scratchpad():
    assert format_react_scratchpad([]) == []

    steps = [
        AgentStep(AgentAction("calculator", "6 * 7", log="Action: calculator"), "42"),
        AgentStep(AgentAction("clock", "", log="Action: clock"), "noon"),
    ]
    [message] = format_react_scratchpad(steps)

    assert message.role == "ai"
    assert message.content == (
        "Action: calculator\nObservation: 42\nThought: "
        "Action: clock\nObservation: noon\nThought: "
    )


@pytest.mark.asyncio
async def test_react_planner_prompt_and_stop(calculator):
    model = FakeChatModel(ai("Thought: done\nFinal Answer: 42"))
    planner = ReActPlanner(model, [calculator])

    output = await planner.plan((), {"input": "What is 6 * 7?"})

    assert output.finish.return_values == {"output": "42"}
    [(messages, config)] = model.calls
    assert config.stop == ("\nObservation:",)
    assert messages[0].role == "system"
    assert "calculator: Evaluates arithmetic\n" in messages[0].content
    assert "one of [calculator]" in messages[0].content
    assert messages[-1] == human("What is 6 * 7?")


@pytest.mark.asyncio
async def test_react_planner_custom_prompt(calculator):
    seen = {}

    async def prompt(variables):
        seen.update(variables)
        return [human(variables["input"])]

    model = FakeChatModel(ai("Action: calculator\nAction Input: 2 + 2"))
    step = AgentStep(AgentAction("calculator", "1", log="Action: calculator"), "42")
    planner = ReActPlanner(model, [calculator], prompt=prompt)

    output = await planner.plan((step,), {"input": "q", "extra": 1})

    assert output.actions[0].tool_input == "2 + 2"
    assert seen["extra"] == 1
    assert seen["tool_names"] == "calculator"
    assert len(seen["agent_scratchpad"]) == 1


@pytest.mark.asyncio
async def test_react_agent_end_to_end(calculator):
    model = FakeChatModel(
        ai("Thought: use the tool\nAction: calculator\nAction Input: 6 * 7"),
        ai("Thought: I now know the final answer\nFinal Answer: The answer is 42"),
    )
    executor = AgentExecutor(ReActPlanner(model, [calculator]), [calculator])

    result = await executor.invoke({"input": "What is 6 * 7?"})

    assert result == {"output": "The answer is 42"}
    assert calculator.calls == ["6 * 7"]
    second_messages, _ = model.calls[1]
    assert "Observation: 42\nThought: " in second_messages[1].content


def test_tool_calling_scratchpad_wraps_plain_input():
    steps = [
        AgentStep(AgentAction("search", '{"q": "cats"}'), "found"),
        AgentStep(AgentAction("calculator", "6 * 7"), "42"),
    ]
    messages = format_tool_calling_scratchpad(steps)

    assert [m.role for m in messages] == ["ai", "tool", "ai", "tool"]
    assert messages[0].tool_calls == (ToolCall("call_search", "search", '{"q": "cats"}'),)
    assert messages[1].tool_call_id == "call_search"
    assert json.loads(messages[2].tool_calls[0].arguments) == {"input": "6 * 7"}
    assert messages[3].content == "42"


@pytest.mark.asyncio
async def test_tool_calling_planner_actions(calculator):
    reply = ai("", [ToolCall("c1", "calculator", '{"input": "6 * 7"}'), ToolCall("c2", "clock")])
    model = FakeChatModel(reply)
    planner = ToolCallingPlanner(model, [calculator], system_prompt="Be precise.")

    output = await planner.plan((), {"input": "q"})

    assert [t.name for t in model.bound_tools] == ["calculator"]
    assert [(a.tool, a.tool_input) for a in output.actions] == [
        ("calculator", '{"input": "6 * 7"}'),
        ("clock", "{}"),
    ]
    assert output.actions[0].log == "Calling tool: calculator"
    assert output.actions[0].message_log == (reply,)
    [(messages, _)] = model.calls
    assert messages == [system("Be precise."), human("q")]


@pytest.mark.asyncio
async def test_tool_calling_planner_finish(calculator):
    model = FakeChatModel(ai("All done"))
    output = await ToolCallingPlanner(model, [calculator]).plan((), {"input": "q"})

    assert output.finish.return_values == {"output": "All done"}


@pytest.mark.asyncio
async def test_tool_calling_planner_replays_steps(calculator):
    model = FakeChatModel(ai("done"))
    planner = ToolCallingPlanner(model, [calculator])
    step = AgentStep(AgentAction("calculator", "6 * 7"), "42")

    await planner.plan((step,), {"input": "q"})

    [(messages, _)] = model.calls
    assert [m.role for m in messages] == ["human", "ai", "tool"]
