"""Fan-out dispatch of lifecycle events to registered handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence

from ..core.context import current_run_id
from .base import CallbackHandler, LLMResult

if TYPE_CHECKING:
    from ..agents.types import AgentAction, AgentFinish
    from ..core.config import RunConfig
    from ..core.messages import Document, Message


class CallbackManager:
    """Dispatches every event to all handlers, in registration order.

    Dispatch is synchronous and sequential. A handler that raises is not
    isolated: the exception propagates to whoever emitted the event.

    Inheritable handlers are the subset carried over to child managers created
    for nested executions (a tool call inside a pipeline stage, a step inside a
    sequence), so tracing hierarchies stay consistent without re-registering.

    Example:
        manager = CallbackManager.for_run(config)
        manager.on_chain_start(inputs, run_id=run_id)
        with run_context(run_id):
            ...  # nested units report run_id as their parent
    """

    def __init__(
        self,
        handlers: Iterable[CallbackHandler] = (),
        *,
        inheritable_handlers: Iterable[CallbackHandler] = (),
        parent_run_id: str | None = None,
        tags: Iterable[str] = (),
        metadata: Mapping[str, Any] | None = None,
    ):
        self.handlers: list[CallbackHandler] = list(handlers)
        self.inheritable_handlers: list[CallbackHandler] = list(inheritable_handlers)
        self.parent_run_id = parent_run_id
        self.tags: list[str] = list(tags)
        self.metadata: dict[str, Any] = dict(metadata or {})

    @classmethod
    def configure(
        cls, config: "RunConfig", *, parent_run_id: str | None = None
    ) -> "CallbackManager":
        """Build a manager from a run config; all config handlers are inheritable."""
        return cls(
            config.callbacks,
            inheritable_handlers=config.callbacks,
            parent_run_id=parent_run_id,
            tags=config.tags,
            metadata=config.metadata,
        )

    @classmethod
    def for_run(cls, config: "RunConfig") -> "CallbackManager":
        """Manager for a run starting inside the current run context.

        Nested runs get a child of the config's manager whose parent run id
        is the enclosing run; a top-level call gets the config's manager.
        """
        manager = cls.configure(config)
        parent = current_run_id()
        if parent is None:
            return manager
        return manager.get_child(parent_run_id=parent)

    # ------------------------------------------------------------------
    # Builder-style helpers (call before dispatch begins)
    # ------------------------------------------------------------------

    def add_handler(self, handler: CallbackHandler, *, inherit: bool = True) -> None:
        self.handlers.append(handler)
        if inherit:
            self.inheritable_handlers.append(handler)

    def with_inheritable_handlers(
        self, *handlers: CallbackHandler
    ) -> "CallbackManager":
        self.inheritable_handlers.extend(handlers)
        return self

    def with_parent_run_id(self, run_id: str) -> "CallbackManager":
        self.parent_run_id = run_id
        return self

    def with_tags(self, *tags: str) -> "CallbackManager":
        self.tags.extend(tags)
        return self

    def with_metadata(self, metadata: Mapping[str, Any]) -> "CallbackManager":
        self.metadata.update(metadata)
        return self

    def get_child(
        self, tag: str = "", *, parent_run_id: str | None = None
    ) -> "CallbackManager":
        """Return a manager for a nested run carrying only inheritable handlers."""
        child = CallbackManager(
            self.inheritable_handlers,
            inheritable_handlers=self.inheritable_handlers,
            parent_run_id=parent_run_id,
            tags=self.tags,
            metadata=self.metadata,
        )
        if tag:
            child.tags.append(tag)
        return child

    @property
    def all_handlers(self) -> list[CallbackHandler]:
        return list(self.handlers)

    def __bool__(self) -> bool:
        return bool(self.handlers)

    def __len__(self) -> int:
        return len(self.handlers)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def on_llm_start(
        self,
        prompts: Sequence[str],
        *,
        run_id: str,
        parent_run_id: str | None = None,
        extras: Mapping[str, Any] | None = None,
    ) -> None:
        parent = parent_run_id or self.parent_run_id
        for handler in self.handlers:
            handler.on_llm_start(
                prompts, run_id=run_id, parent_run_id=parent, extras=extras
            )

    def on_chat_model_start(
        self,
        messages: Sequence["Message"],
        *,
        run_id: str,
        parent_run_id: str | None = None,
        extras: Mapping[str, Any] | None = None,
    ) -> None:
        parent = parent_run_id or self.parent_run_id
        for handler in self.handlers:
            handler.on_chat_model_start(
                messages, run_id=run_id, parent_run_id=parent, extras=extras
            )

    def on_llm_new_token(self, token: str, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_llm_new_token(token, run_id=run_id)

    def on_llm_end(self, result: LLMResult, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_llm_end(result, run_id=run_id)

    def on_llm_error(self, error: BaseException, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_llm_error(error, run_id=run_id)

    def on_chain_start(
        self,
        inputs: Any,
        *,
        run_id: str,
        parent_run_id: str | None = None,
        extras: Mapping[str, Any] | None = None,
    ) -> None:
        parent = parent_run_id or self.parent_run_id
        for handler in self.handlers:
            handler.on_chain_start(
                inputs, run_id=run_id, parent_run_id=parent, extras=extras
            )

    def on_chain_end(self, outputs: Any, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_chain_end(outputs, run_id=run_id)

    def on_chain_error(self, error: BaseException, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_chain_error(error, run_id=run_id)

    def on_tool_start(
        self,
        tool_name: str,
        tool_input: str,
        *,
        run_id: str,
        parent_run_id: str | None = None,
    ) -> None:
        parent = parent_run_id or self.parent_run_id
        for handler in self.handlers:
            handler.on_tool_start(
                tool_name, tool_input, run_id=run_id, parent_run_id=parent
            )

    def on_tool_end(self, output: str, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_tool_end(output, run_id=run_id)

    def on_tool_error(self, error: BaseException, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_tool_error(error, run_id=run_id)

    def on_agent_action(self, action: "AgentAction", *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_agent_action(action, run_id=run_id)

    def on_agent_finish(self, finish: "AgentFinish", *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_agent_finish(finish, run_id=run_id)

    def on_retriever_start(
        self, query: str, *, run_id: str, parent_run_id: str | None = None
    ) -> None:
        parent = parent_run_id or self.parent_run_id
        for handler in self.handlers:
            handler.on_retriever_start(query, run_id=run_id, parent_run_id=parent)

    def on_retriever_end(self, documents: Sequence["Document"], *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_retriever_end(documents, run_id=run_id)

    def on_retriever_error(self, error: BaseException, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_retriever_error(error, run_id=run_id)

    def on_text(self, text: str, *, run_id: str) -> None:
        for handler in self.handlers:
            handler.on_text(text, run_id=run_id)

    def __repr__(self) -> str:
        return (
            f"CallbackManager(handlers={len(self.handlers)}, "
            f"inheritable={len(self.inheritable_handlers)}, tags={self.tags})"
        )
