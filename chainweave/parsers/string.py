"""Extract plain text from a model message."""

from __future__ import annotations

from typing import Any

from ..core.config import RunConfig
from ..core.messages import Message
from ..core.runnable import Runnable


class StrOutputParser(Runnable[Any, str]):
    """Returns the content of a message; strings pass through unchanged."""

    output_type = str

    def parse(self, output: Message | str) -> str:
        if isinstance(output, Message):
            return output.content
        if isinstance(output, str):
            return output
        raise TypeError(
            f"StrOutputParser expects a Message or str, got {type(output).__name__}"
        )

    async def invoke(self, input: Message | str, config: RunConfig | None = None) -> str:
        return self.parse(input)
