"""Human-readable progress printing for debugging runs."""

from __future__ import annotations

import sys
from typing import Any, TextIO

from .base import BaseCallbackHandler

RESET = "\033[0m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
MAGENTA = "\033[35m"
CYAN = "\033[36m"
WHITE = "\033[37m"

MAX_PREVIEW = 200


def truncate(text: str, max_len: int = MAX_PREVIEW) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


class StdoutCallbackHandler(BaseCallbackHandler):
    """Prints lifecycle events, optionally in ANSI color.

    Args:
        color: Wrap each line in an ANSI color code.
        file: Stream to write to; defaults to ``sys.stdout`` at call time.
    """

    def __init__(self, color: bool = True, file: TextIO | None = None):
        self.color = color
        self.file = file

    def _print(self, color: str, text: str) -> None:
        out = self.file or sys.stdout
        out.write(f"{color}{text}{RESET}" if self.color else text)
        out.flush()

    def on_chain_start(self, inputs, *, run_id, parent_run_id=None, extras=None) -> None:
        name = (extras or {}).get("name", "Chain")
        self._print(GREEN, f"\n\n> Entering new {name} chain...\n")

    def on_chain_end(self, outputs, *, run_id) -> None:
        self._print(GREEN, "\n> Finished chain.\n")

    def on_chain_error(self, error, *, run_id) -> None:
        self._print(RED, f"\n> Chain error: {error}\n")

    def on_llm_start(self, prompts, *, run_id, parent_run_id=None, extras=None) -> None:
        self._print(CYAN, "\n[LLM] Prompts: " + "\n".join(prompts) + "\n")

    def on_chat_model_start(
        self, messages, *, run_id, parent_run_id=None, extras=None
    ) -> None:
        lines = ["\n[ChatModel] Messages:\n"]
        lines.extend(f"  [{msg.role}]: {truncate(msg.content)}\n" for msg in messages)
        self._print(CYAN, "".join(lines))

    def on_llm_new_token(self, token, *, run_id) -> None:
        out = self.file or sys.stdout
        out.write(token)
        out.flush()

    def on_llm_end(self, result, *, run_id) -> None:
        self._print(CYAN, "\n[LLM] Done.\n")

    def on_llm_error(self, error, *, run_id) -> None:
        self._print(RED, f"\n[LLM] Error: {error}\n")

    def on_tool_start(self, tool_name, tool_input, *, run_id, parent_run_id=None) -> None:
        self._print(YELLOW, f"\n[Tool: {tool_name}] Input: {truncate(tool_input)}\n")

    def on_tool_end(self, output, *, run_id) -> None:
        self._print(YELLOW, f"[Tool] Output: {truncate(output)}\n")

    def on_tool_error(self, error, *, run_id) -> None:
        self._print(RED, f"[Tool] Error: {error}\n")

    def on_agent_action(self, action, *, run_id) -> None:
        self._print(
            BLUE,
            f"\n[Agent] Action: {action.tool}\n  Input: {truncate(action.tool_input)}\n",
        )

    def on_agent_finish(self, finish, *, run_id) -> None:
        output: Any = finish.return_values.get("output", dict(finish.return_values))
        self._print(BLUE, f"\n[Agent] Finished: {output}\n")

    def on_retriever_start(self, query, *, run_id, parent_run_id=None) -> None:
        self._print(MAGENTA, f"\n[Retriever] Query: {truncate(query)}\n")

    def on_retriever_end(self, documents, *, run_id) -> None:
        self._print(MAGENTA, f"[Retriever] Retrieved {len(documents)} documents\n")

    def on_retriever_error(self, error, *, run_id) -> None:
        self._print(RED, f"[Retriever] Error: {error}\n")

    def on_text(self, text, *, run_id) -> None:
        self._print(WHITE, text)
