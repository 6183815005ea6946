"""Parse JSON out of model output."""

from __future__ import annotations

import json
import re
from typing import Any

from ..core.config import RunConfig
from ..core.errors import OutputParserError
from ..core.messages import Message
from ..core.runnable import Runnable

# ```json ... ``` or bare ``` ... ``` fenced block.
_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\s*```", re.DOTALL)

FORMAT_INSTRUCTIONS = (
    "Return a JSON object. If you use a code block, use the json language tag."
)


class JsonOutputParser(Runnable[Any, Any]):
    """Parses JSON from a message or string, unwrapping fenced code blocks.

    Example:
        parser = JsonOutputParser()
        parser.parse('```json\\n{"a": 1}\\n```')  # {"a": 1}
    """

    def get_format_instructions(self) -> str:
        return FORMAT_INSTRUCTIONS

    def parse(self, output: Message | str) -> Any:
        text = output.content if isinstance(output, Message) else output
        if not isinstance(text, str):
            raise TypeError(
                f"JsonOutputParser expects a Message or str, got {type(output).__name__}"
            )
        match = _FENCED_BLOCK.search(text)
        candidate = match.group(1) if match else text.strip()
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as exc:
            raise OutputParserError(
                f"Failed to parse JSON output: {exc}\nRaw text: {candidate}",
                llm_output=text,
            ) from exc

    async def invoke(self, input: Message | str, config: RunConfig | None = None) -> Any:
        return self.parse(input)
