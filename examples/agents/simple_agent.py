"""Simple agent example using AgentExecutor.

This example demonstrates:
- Turning plain functions into tools with @tool
- A ReAct agent and a tool-calling agent over the same tools
- Printing the run with StdoutCallbackHandler
- Inspecting a run that hit its iteration limit

A scripted chat model stands in for a real provider so the example runs
offline. Any object with the ChatModel methods plugs in the same way.
"""

import asyncio

from chainweave import (
    AgentExecutor,
    ReActPlanner,
    StdoutCallbackHandler,
    ToolCallingPlanner,
    build_config,
    tool,
    with_callbacks,
)
from chainweave.core import ToolCall, ai


@tool
async def calculate(expression: str) -> str:
    """Evaluate a mathematical expression.

    Args:
        expression: A Python expression to evaluate (e.g., "15 * 234")
    """
    try:
        # No builtins available to the expression
        return str(eval(expression, {"__builtins__": {}}, {}))
    except Exception as e:
        return f"Error: {e}"


@tool
async def get_weather(city: str, units: str = "celsius") -> str:
    """Get current weather for a city.

    Args:
        city: Name of the city to get weather for
        units: Temperature units - either 'celsius' or 'fahrenheit'
    """
    temp = 72 if units == "fahrenheit" else 22
    return f"Weather in {city}: Sunny, {temp}°{'F' if units == 'fahrenheit' else 'C'}"


class ScriptedModel:
    """Replays canned replies; the last one repeats."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.turn = 0

    async def invoke(self, messages, config=None):
        reply = self.replies[min(self.turn, len(self.replies) - 1)]
        self.turn += 1
        return reply

    async def stream(self, messages, config=None):
        raise NotImplementedError

    async def batch(self, inputs, config=None):
        return [await self.invoke(m, config) for m in inputs]

    def bind_tools(self, tools):
        print(f"Bound tools: {', '.join(t.name for t in tools)}")
        return self

    def with_structured_output(self, schema):
        raise NotImplementedError


async def example_react():
    """Example: ReAct text protocol"""
    print("=" * 60)
    print("Example 1: ReAct agent")
    print("=" * 60)

    model = ScriptedModel(
        ai('Thought: I need to multiply\nAction: calculate\nAction Input: {"expression": "15 * 234"}'),
        ai("Thought: I now know the final answer\nFinal Answer: 15 * 234 = 3510"),
    )
    tools = [calculate, get_weather]
    agent = AgentExecutor(ReActPlanner(model, tools), tools, max_iterations=5)

    config = build_config(with_callbacks(StdoutCallbackHandler()))
    result = await agent.invoke({"input": "What is 15 * 234?"}, config)

    print(f"\nFinal response: {result['output']}")


async def example_tool_calling():
    """Example: native tool calls, two tools in one turn"""
    print("\n" + "=" * 60)
    print("Example 2: Tool-calling agent")
    print("=" * 60)

    model = ScriptedModel(
        ai(
            "",
            [
                ToolCall("call_1", "calculate", '{"expression": "15 * 234"}'),
                ToolCall("call_2", "get_weather", '{"city": "Paris"}'),
            ],
        ),
        ai("15 * 234 is 3510, and it is sunny in Paris at 22°C."),
    )
    tools = [calculate, get_weather]
    agent = AgentExecutor(
        ToolCallingPlanner(model, tools, system_prompt="You are a helpful assistant."),
        tools,
        return_intermediate_steps=True,
    )

    result = await agent.invoke({"input": "What is 15 * 234? Also, what's the weather in Paris?"})

    for step in result["intermediate_steps"]:
        print(f"  {step.action.tool}({step.action.tool_input}) -> {step.observation}")
    print(f"\nFinal response: {result['output']}")


async def example_iteration_limit():
    """Example: a planner that never finishes"""
    print("\n" + "=" * 60)
    print("Example 3: Iteration limit")
    print("=" * 60)

    model = ScriptedModel(ai('Action: calculate\nAction Input: {"expression": "1 + 1"}'))
    agent = AgentExecutor(ReActPlanner(model, [calculate]), [calculate], max_iterations=3)

    run = await agent.run({"input": "Keep adding forever"})

    print(f"State: {run.state.value}")
    print(f"Iterations: {run.iterations}")
    print(f"Error: {run.error}")


async def main():
    await example_react()
    await example_tool_calling()
    await example_iteration_limit()


if __name__ == "__main__":
    asyncio.run(main())
