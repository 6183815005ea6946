"""Shared test fixtures."""

from __future__ import annotations

import asyncio

import pytest

from chainweave import BaseCallbackHandler, StructuredTool, runnable
from chainweave.core import Message


# Shared runnable definitions
@runnable
async def add_one(x: int) -> int:
    return x + 1


@runnable
async def double(x: int) -> int:
    return x * 2


@runnable
def to_text(x: int) -> str:
    return str(x)


@pytest.fixture
def units():
    """Return commonly used runnables."""
    return {"add_one": add_one, "double": double, "to_text": to_text}


class RecordingHandler(BaseCallbackHandler):
    """Records every event as ``(hook, payload)``.

    Start events are also kept in ``starts`` as ``(name, run_id, parent_run_id)``.
    """

    def __init__(self):
        self.events: list[tuple[str, object]] = []
        self.run_ids: list[tuple[str, str]] = []
        self.starts: list[tuple[str, str, str | None]] = []

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def _record(self, name, payload, run_id):
        self.events.append((name, payload))
        self.run_ids.append((name, run_id))

    def on_chain_start(self, inputs, *, run_id, parent_run_id=None, extras=None):
        self._record("chain_start", inputs, run_id)
        self.starts.append(((extras or {}).get("name", ""), run_id, parent_run_id))

    def on_chain_end(self, outputs, *, run_id):
        self._record("chain_end", outputs, run_id)

    def on_chain_error(self, error, *, run_id):
        self._record("chain_error", error, run_id)

    def on_tool_start(self, tool_name, tool_input, *, run_id, parent_run_id=None):
        self._record("tool_start", (tool_name, tool_input), run_id)
        self.starts.append((tool_name, run_id, parent_run_id))

    def on_tool_end(self, output, *, run_id):
        self._record("tool_end", output, run_id)

    def on_tool_error(self, error, *, run_id):
        self._record("tool_error", error, run_id)

    def on_agent_action(self, action, *, run_id):
        self._record("agent_action", action, run_id)

    def on_agent_finish(self, finish, *, run_id):
        self._record("agent_finish", finish, run_id)

    def on_retriever_start(self, query, *, run_id, parent_run_id=None):
        self._record("retriever_start", query, run_id)
        self.starts.append(("retriever", run_id, parent_run_id))

    def on_retriever_end(self, documents, *, run_id):
        self._record("retriever_end", documents, run_id)

    def on_retriever_error(self, error, *, run_id):
        self._record("retriever_error", error, run_id)

    def on_text(self, text, *, run_id):
        self._record("text", text, run_id)


@pytest.fixture
def recorder():
    return RecordingHandler()


class ScriptedPlanner:
    """Replays a fixed list of decisions, repeating the last one.

    Exceptions in the script are raised instead of returned.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls: list[tuple] = []

    @property
    def input_keys(self):
        return ["input"]

    @property
    def output_keys(self):
        return ["output"]

    async def plan(self, steps, inputs, config=None):
        self.calls.append(steps)
        item = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(item, BaseException):
            raise item
        return item


class FakeChatModel:
    """Returns scripted assistant messages and records every call."""

    def __init__(self, *responses: Message):
        self.responses = list(responses)
        self.calls: list[tuple[list[Message], object]] = []
        self.bound_tools: list = []

    async def invoke(self, messages, config=None):
        self.calls.append((list(messages), config))
        return self.responses[min(len(self.calls), len(self.responses)) - 1]

    async def stream(self, messages, config=None):
        raise NotImplementedError

    async def batch(self, inputs, config=None):
        return [await self.invoke(messages, config) for messages in inputs]

    def bind_tools(self, tools):
        self.bound_tools = list(tools)
        return self

    def with_structured_output(self, schema):
        raise NotImplementedError


@pytest.fixture
def calculator():
    """A tool that always answers 42 and counts its calls."""
    calls: list[str] = []

    def run(input: str) -> str:
        calls.append(input)
        return "42"

    tool = StructuredTool("calculator", "Evaluates arithmetic", run)
    tool.calls = calls
    return tool


@pytest.fixture
def failing_tool():
    def run(input: str) -> str:
        raise RuntimeError("disk on fire")

    return StructuredTool("broken", "Always fails", run)


class ConcurrencyProbe:
    """Tracks how many coroutines are inside ``hold`` at once."""

    def __init__(self):
        self.active = 0
        self.peak = 0

    async def hold(self, seconds: float = 0.01):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(seconds)
        finally:
            self.active -= 1
