"""Planner built on a chat model's native tool calling."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Sequence

from ..core.config import RunConfig
from ..core.messages import Message, ToolCall, ai, human, system, tool_result
from ..core.runnable import maybe_await
from ..interfaces import ChatModel, Tool
from ..tools.base import to_definitions
from .react import PromptBuilder
from .types import AgentAction, AgentFinish, AgentOutput, AgentStep


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True


def format_tool_calling_scratchpad(steps: Sequence[AgentStep]) -> list[Message]:
    """Replay each step as an assistant tool call followed by its result."""
    messages: list[Message] = []
    for step in steps:
        arguments = step.action.tool_input
        if not _is_json(arguments):
            arguments = json.dumps({"input": arguments})
        call_id = f"call_{step.action.tool}"
        messages.append(ai("", [ToolCall(id=call_id, name=step.action.tool, arguments=arguments)]))
        messages.append(tool_result(step.observation, call_id))
    return messages


class ToolCallingPlanner:
    """Plans with a model that returns structured tool calls.

    The tools are bound to the model once, at construction. A reply with tool
    calls becomes one action per call; a reply without any is the final
    answer.

    Args:
        model: Chat model supporting ``bind_tools``.
        tools: Tools offered to the model.
        prompt: Builds the messages from the input variables plus
            ``agent_scratchpad``; may be async. Defaults to the optional
            system prompt, the human input, then the scratchpad.
        system_prompt: System message used by the default prompt.
    """

    def __init__(
        self,
        model: ChatModel,
        tools: Iterable[Tool],
        prompt: PromptBuilder | None = None,
        system_prompt: str | None = None,
    ):
        self.tools = list(tools)
        self.model = model.bind_tools(to_definitions(self.tools))
        self.system_prompt = system_prompt
        self.prompt = prompt or self._default_prompt

    @property
    def input_keys(self) -> list[str]:
        return ["input"]

    @property
    def output_keys(self) -> list[str]:
        return ["output"]

    def _default_prompt(self, variables: Mapping[str, Any]) -> list[Message]:
        messages = [system(self.system_prompt)] if self.system_prompt else []
        messages.append(human(str(variables.get("input", ""))))
        messages.extend(variables["agent_scratchpad"])
        return messages

    async def plan(
        self,
        steps: Sequence[AgentStep],
        inputs: Mapping[str, Any],
        config: RunConfig | None = None,
    ) -> AgentOutput:
        variables = {**inputs, "agent_scratchpad": format_tool_calling_scratchpad(steps)}
        messages = await maybe_await(self.prompt, variables)
        response = await self.model.invoke(messages, config)

        if response.tool_calls:
            return AgentOutput(
                actions=tuple(
                    AgentAction(
                        tool=call.name,
                        tool_input=call.arguments,
                        log=f"Calling tool: {call.name}",
                        message_log=(response,),
                    )
                    for call in response.tool_calls
                )
            )

        return AgentOutput(
            finish=AgentFinish(
                return_values={"output": response.content},
                log=response.content,
                message_log=(response,),
            )
        )
