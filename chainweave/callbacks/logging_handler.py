"""Forward lifecycle events to a standard library logger."""

from __future__ import annotations

import logging

from .base import BaseCallbackHandler
from .stdout import truncate

logger = logging.getLogger(__name__)


class LoggingCallbackHandler(BaseCallbackHandler):
    """Logs starts and ends at ``level`` and every error at ``ERROR``.

    Example:
        logging.basicConfig(level=logging.INFO)
        config = build_config(with_callbacks(LoggingCallbackHandler()))
    """

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO):
        self.logger = log or logger
        self.level = level

    def _log(self, msg: str, *args) -> None:
        self.logger.log(self.level, msg, *args)

    def on_chain_start(self, inputs, *, run_id, parent_run_id=None, extras=None) -> None:
        self._log(
            "chain start: %s run_id=%s parent=%s",
            (extras or {}).get("name", "chain"),
            run_id,
            parent_run_id,
        )

    def on_chain_end(self, outputs, *, run_id) -> None:
        self._log("chain end: run_id=%s", run_id)

    def on_chain_error(self, error, *, run_id) -> None:
        self.logger.error("chain error: run_id=%s %s", run_id, error)

    def on_llm_start(self, prompts, *, run_id, parent_run_id=None, extras=None) -> None:
        self._log("llm start: %d prompts run_id=%s", len(prompts), run_id)

    def on_chat_model_start(
        self, messages, *, run_id, parent_run_id=None, extras=None
    ) -> None:
        self._log("chat model start: %d messages run_id=%s", len(messages), run_id)

    def on_llm_end(self, result, *, run_id) -> None:
        self._log("llm end: run_id=%s", run_id)

    def on_llm_error(self, error, *, run_id) -> None:
        self.logger.error("llm error: run_id=%s %s", run_id, error)

    def on_tool_start(self, tool_name, tool_input, *, run_id, parent_run_id=None) -> None:
        self._log("tool start: %s input=%s", tool_name, truncate(tool_input))

    def on_tool_end(self, output, *, run_id) -> None:
        self._log("tool end: output=%s", truncate(output))

    def on_tool_error(self, error, *, run_id) -> None:
        self.logger.error("tool error: %s", error)

    def on_agent_action(self, action, *, run_id) -> None:
        self._log("agent action: %s input=%s", action.tool, truncate(action.tool_input))

    def on_agent_finish(self, finish, *, run_id) -> None:
        self._log("agent finish: keys=%s", sorted(finish.return_values))

    def on_retriever_start(self, query, *, run_id, parent_run_id=None) -> None:
        self._log("retriever start: %s", truncate(query))

    def on_retriever_end(self, documents, *, run_id) -> None:
        self._log("retriever end: %d documents", len(documents))

    def on_retriever_error(self, error, *, run_id) -> None:
        self.logger.error("retriever error: %s", error)
