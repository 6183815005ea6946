"""Adapt a tool to the runnable contract."""

from __future__ import annotations

import uuid

from ..callbacks.manager import CallbackManager
from ..core.config import RunConfig, ensure_config
from ..core.context import run_context
from ..core.runnable import ConcurrentBatchMixin, Runnable
from ..interfaces import Tool


class ToolRunnable(ConcurrentBatchMixin, Runnable[str, str]):
    """Runs a tool as a pipeline step; batches run concurrently.

    Example:
        chain = extract_city >> ToolRunnable(weather_tool)
    """

    input_type = str
    output_type = str

    def __init__(self, tool: Tool):
        self.tool = tool
        self._name = tool.name

    async def invoke(self, input: str, config: RunConfig | None = None) -> str:
        config = ensure_config(config)
        callbacks = CallbackManager.for_run(config)
        run_id = str(uuid.uuid4())
        callbacks.on_tool_start(self.tool.name, input, run_id=run_id)
        try:
            with run_context(run_id):
                output = await self.tool.run(input)
        except Exception as exc:
            callbacks.on_tool_error(exc, run_id=run_id)
            raise
        callbacks.on_tool_end(output, run_id=run_id)
        return output
