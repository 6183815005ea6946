"""Narrow interfaces to external collaborators.

Model providers, vector stores and conversation-history stores live outside
this package. Components only depend on the protocols below, so any object
with the right methods plugs in; ``isinstance`` works for quick checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from .core.config import RunConfig
    from .core.messages import Document, Message
    from .core.runnable import Runnable
    from .core.stream import StreamIterator
    from .tools.base import ToolDefinition


@runtime_checkable
class ChatModel(Protocol):
    """Chat-style model: a list of messages in, one assistant message out."""

    async def invoke(
        self, messages: Sequence["Message"], config: "RunConfig | None" = None
    ) -> "Message":
        """Return the assistant reply, with tool calls if the model made any."""
        ...

    async def stream(
        self, messages: Sequence["Message"], config: "RunConfig | None" = None
    ) -> "StreamIterator[Message]":
        ...

    async def batch(
        self,
        inputs: Iterable[Sequence["Message"]],
        config: "RunConfig | None" = None,
    ) -> list["Message"]:
        ...

    def bind_tools(self, tools: Sequence["ToolDefinition"]) -> "ChatModel":
        """Return a model that advertises ``tools`` on every call."""
        ...

    def with_structured_output(self, schema: Any) -> "Runnable[Sequence[Message], Any]":
        ...


@runtime_checkable
class Tool(Protocol):
    """Something an agent can call by name with a raw string input."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def args_schema(self) -> dict[str, Any]:
        """JSON schema of the arguments the tool accepts."""
        ...

    async def run(self, input: str) -> str: ...


@runtime_checkable
class Retriever(Protocol):
    async def get_relevant_documents(self, query: str) -> list["Document"]: ...


@runtime_checkable
class Memory(Protocol):
    """Conversation memory loaded into prompts and updated after each turn."""

    @property
    def memory_variables(self) -> list[str]: ...

    async def load_memory_variables(self, inputs: Mapping[str, Any]) -> dict[str, Any]: ...

    async def save_context(
        self, inputs: Mapping[str, Any], outputs: Mapping[str, Any]
    ) -> None: ...

    async def clear(self) -> None: ...
