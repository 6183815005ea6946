"""Text-based ReAct planner: Thought, Action, Action Input, Observation."""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Mapping, Sequence

from ..core.config import RunConfig, merge_config, with_stop
from ..core.errors import OutputParserError
from ..core.messages import Message, ai, human, system
from ..core.runnable import maybe_await
from ..interfaces import ChatModel, Tool
from .types import AgentAction, AgentFinish, AgentOutput, AgentStep

_ACTION = re.compile(r"Action\s*:\s*(.+?)(?:\n|$)")
_ACTION_INPUT = re.compile(r"Action\s*Input\s*:\s*(.+?)(?:\n|$)")
_FINAL_ANSWER = re.compile(r"Final\s*Answer\s*:\s*(.+)")

# The model stops before inventing its own observation.
REACT_STOP = "\nObservation:"

REACT_INSTRUCTIONS = """Answer the following questions as best you can. You have access to the following tools:

{tools}

Use the following format:

Question: the input question you must answer
Thought: you should always think about what to do
Action: the action to take, should be one of [{tool_names}]
Action Input: the input to the action
Observation: the result of the action
... (this Thought/Action/Action Input/Observation can repeat N times)
Thought: I now know the final answer
Final Answer: the final answer to the original input question

Begin!"""

PromptBuilder = Callable[[Mapping[str, Any]], Sequence[Message]]


def default_react_prompt(variables: Mapping[str, Any]) -> list[Message]:
    """System instructions, then the scratchpad, then the question."""
    messages = [
        system(
            REACT_INSTRUCTIONS.format(
                tools=variables["tools"], tool_names=variables["tool_names"]
            )
        )
    ]
    messages.extend(variables["agent_scratchpad"])
    messages.append(human(str(variables.get("input", ""))))
    return messages


def format_react_scratchpad(steps: Sequence[AgentStep]) -> list[Message]:
    """Replay executed steps as one assistant message of ReAct text."""
    if not steps:
        return []
    text = "".join(
        f"{step.action.log}\nObservation: {step.observation}\nThought: " for step in steps
    )
    return [ai(text)]


def parse_react_output(text: str) -> AgentOutput:
    """Turn ReAct model text into a decision.

    ``Final Answer:`` wins over ``Action:`` when both appear. A missing
    ``Action Input:`` yields an empty tool input.

    Raises:
        OutputParserError: Neither a final answer nor an action was found.
    """
    final = _FINAL_ANSWER.search(text)
    if final:
        return AgentOutput(
            finish=AgentFinish(return_values={"output": final.group(1).strip()}, log=text)
        )

    action = _ACTION.search(text)
    if action:
        action_input = _ACTION_INPUT.search(text)
        return AgentOutput(
            actions=(
                AgentAction(
                    tool=action.group(1).strip(),
                    tool_input=action_input.group(1).strip() if action_input else "",
                    log=text,
                ),
            )
        )

    raise OutputParserError(f"Could not parse LLM output: {text!r}", llm_output=text)


class ReActPlanner:
    """Plans by prompting a chat model in the ReAct text format.

    Args:
        model: Chat model producing ReAct text.
        tools: Tools described to the model.
        prompt: Builds the messages from the input variables plus ``tools``,
            ``tool_names`` and ``agent_scratchpad``; may be async.
    """

    def __init__(
        self,
        model: ChatModel,
        tools: Iterable[Tool],
        prompt: PromptBuilder | None = None,
    ):
        self.model = model
        self.tools = list(tools)
        self.prompt = prompt or default_react_prompt

    @property
    def input_keys(self) -> list[str]:
        return ["input"]

    @property
    def output_keys(self) -> list[str]:
        return ["output"]

    def render_tool_descriptions(self) -> str:
        return "".join(f"{t.name}: {t.description}\n" for t in self.tools)

    def render_tool_names(self) -> str:
        return ", ".join(t.name for t in self.tools)

    async def plan(
        self,
        steps: Sequence[AgentStep],
        inputs: Mapping[str, Any],
        config: RunConfig | None = None,
    ) -> AgentOutput:
        variables = {
            **inputs,
            "tools": self.render_tool_descriptions(),
            "tool_names": self.render_tool_names(),
            "agent_scratchpad": format_react_scratchpad(steps),
        }
        messages = await maybe_await(self.prompt, variables)
        response = await self.model.invoke(messages, merge_config(config, with_stop(REACT_STOP)))
        return parse_react_output(response.content)
