"""Chat message and document types exchanged with external collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Sequence

Role = Literal["human", "ai", "system", "tool"]


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model.

    Args:
        id: Unique identifier for this tool call
        name: Name of the tool to invoke
        arguments: Raw JSON string with the call arguments
    """

    id: str
    name: str
    arguments: str = "{}"


@dataclass(frozen=True)
class Message:
    """A single chat message.

    Args:
        role: The role of the message sender (human, ai, system or tool)
        content: The text content
        tool_calls: Tool calls requested by an ai message
        tool_call_id: ID linking a tool message to the call it answers
        name: Optional sender name
    """

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None
    name: str | None = None


def human(content: str) -> Message:
    return Message(role="human", content=content)


def ai(content: str, tool_calls: Sequence[ToolCall] = ()) -> Message:
    return Message(role="ai", content=content, tool_calls=tuple(tool_calls))


def system(content: str) -> Message:
    return Message(role="system", content=content)


def tool_result(content: str, tool_call_id: str) -> Message:
    return Message(role="tool", content=content, tool_call_id=tool_call_id)


_ROLE_PREFIXES = {"system": "System", "tool": "Tool"}


def get_buffer_string(
    messages: Sequence[Message],
    human_prefix: str = "Human",
    ai_prefix: str = "AI",
) -> str:
    """Render messages as ``Prefix: content`` lines."""
    lines = []
    for msg in messages:
        if msg.role == "human":
            prefix = human_prefix or "Human"
        elif msg.role == "ai":
            prefix = ai_prefix or "AI"
        else:
            prefix = _ROLE_PREFIXES.get(msg.role)
        lines.append(f"{prefix}: {msg.content}" if prefix else msg.content)
    return "\n".join(lines)


@dataclass(frozen=True)
class Document:
    """A retrieved piece of text with its metadata."""

    page_content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
