"""Callback handler contract and its no-op default."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from ..agents.types import AgentAction, AgentFinish
    from ..core.messages import Document, Message


@dataclass(frozen=True)
class LLMResult:
    """Result of a model call as reported to callbacks."""

    generations: list[str] = field(default_factory=list)
    llm_output: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class CallbackHandler(Protocol):
    """Observer of lifecycle events.

    Every hook is part of the contract. Handlers are called synchronously, in
    registration order, and must not raise: a failing handler is not isolated
    from the others and its exception reaches the caller.
    """

    # Model calls
    def on_llm_start(
        self,
        prompts: Sequence[str],
        *,
        run_id: str,
        parent_run_id: str | None = None,
        extras: Mapping[str, Any] | None = None,
    ) -> None: ...

    def on_chat_model_start(
        self,
        messages: Sequence["Message"],
        *,
        run_id: str,
        parent_run_id: str | None = None,
        extras: Mapping[str, Any] | None = None,
    ) -> None: ...

    def on_llm_new_token(self, token: str, *, run_id: str) -> None: ...

    def on_llm_end(self, result: LLMResult, *, run_id: str) -> None: ...

    def on_llm_error(self, error: BaseException, *, run_id: str) -> None: ...

    # Pipeline stages
    def on_chain_start(
        self,
        inputs: Any,
        *,
        run_id: str,
        parent_run_id: str | None = None,
        extras: Mapping[str, Any] | None = None,
    ) -> None: ...

    def on_chain_end(self, outputs: Any, *, run_id: str) -> None: ...

    def on_chain_error(self, error: BaseException, *, run_id: str) -> None: ...

    # Tools
    def on_tool_start(
        self,
        tool_name: str,
        tool_input: str,
        *,
        run_id: str,
        parent_run_id: str | None = None,
    ) -> None: ...

    def on_tool_end(self, output: str, *, run_id: str) -> None: ...

    def on_tool_error(self, error: BaseException, *, run_id: str) -> None: ...

    # Agent loop
    def on_agent_action(self, action: "AgentAction", *, run_id: str) -> None: ...

    def on_agent_finish(self, finish: "AgentFinish", *, run_id: str) -> None: ...

    # Retrieval
    def on_retriever_start(
        self, query: str, *, run_id: str, parent_run_id: str | None = None
    ) -> None: ...

    def on_retriever_end(
        self, documents: Sequence["Document"], *, run_id: str
    ) -> None: ...

    def on_retriever_error(self, error: BaseException, *, run_id: str) -> None: ...

    # Free text
    def on_text(self, text: str, *, run_id: str) -> None: ...


class BaseCallbackHandler:
    """No-op implementation of every hook.

    Subclass and override only the hooks you care about:

        class TokenPrinter(BaseCallbackHandler):
            def on_llm_new_token(self, token, *, run_id):
                print(token, end="")
    """

    def on_llm_start(self, prompts, *, run_id, parent_run_id=None, extras=None) -> None:
        pass

    def on_chat_model_start(
        self, messages, *, run_id, parent_run_id=None, extras=None
    ) -> None:
        pass

    def on_llm_new_token(self, token, *, run_id) -> None:
        pass

    def on_llm_end(self, result, *, run_id) -> None:
        pass

    def on_llm_error(self, error, *, run_id) -> None:
        pass

    def on_chain_start(self, inputs, *, run_id, parent_run_id=None, extras=None) -> None:
        pass

    def on_chain_end(self, outputs, *, run_id) -> None:
        pass

    def on_chain_error(self, error, *, run_id) -> None:
        pass

    def on_tool_start(self, tool_name, tool_input, *, run_id, parent_run_id=None) -> None:
        pass

    def on_tool_end(self, output, *, run_id) -> None:
        pass

    def on_tool_error(self, error, *, run_id) -> None:
        pass

    def on_agent_action(self, action, *, run_id) -> None:
        pass

    def on_agent_finish(self, finish, *, run_id) -> None:
        pass

    def on_retriever_start(self, query, *, run_id, parent_run_id=None) -> None:
        pass

    def on_retriever_end(self, documents, *, run_id) -> None:
        pass

    def on_retriever_error(self, error, *, run_id) -> None:
        pass

    def on_text(self, text, *, run_id) -> None:
        pass
