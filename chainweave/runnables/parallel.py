"""Fan-out / fan-in over named branches."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from ..callbacks.manager import CallbackManager
from ..core.config import RunConfig, ensure_config
from ..core.context import check_cancelled, enter_scope, run_context, scoped_run_id
from ..core.errors import ParallelBranchError, RecursionLimitError, RunCancelledError
from ..core.runnable import Runnable, coerce_to_runnable

logger = logging.getLogger(__name__)


class Parallel(Runnable[Any, dict]):
    """Run every branch on the same input concurrently and collect a dict.

    The result has exactly one key per registered branch, in registration
    order. Concurrency is bounded by ``config.max_concurrency`` (unbounded
    when 0). If any branch fails the whole call fails with
    ``ParallelBranchError``; no partial result is returned. When several
    branches fail, the first failing key in registration order is reported.

    Branches may be runnables or plain callables, so heterogeneous output
    types are fine.

    Example:
        fan_out = Parallel({
            "summary": summarize,
            "keywords": extract_keywords,
            "length": len,
        })
        await fan_out.invoke(text)
        # {"summary": ..., "keywords": ..., "length": 1234}
    """

    output_type = dict

    def __init__(
        self,
        steps: Mapping[str, Any] | None = None,
        /,
        *,
        name: str | None = None,
        **kwargs: Any,
    ):
        merged = {**(steps or {}), **kwargs}
        if not merged:
            raise ValueError("Parallel requires at least one branch")
        self.steps: dict[str, Runnable] = {
            key: coerce_to_runnable(step) for key, step in merged.items()
        }
        self._name = name

    async def invoke(self, input: Any, config: RunConfig | None = None) -> dict:
        config = ensure_config(config)
        with enter_scope(config, self.name) as depth:
            run_id = scoped_run_id(config, depth)
            callbacks = CallbackManager.for_run(config)
            callbacks.on_chain_start(input, run_id=run_id, extras={"name": self.name})
            try:
                with run_context(run_id):
                    output = await self._fan_out(input, config)
            except Exception as exc:
                callbacks.on_chain_error(exc, run_id=run_id)
                raise
            callbacks.on_chain_end(output, run_id=run_id)
            return output

    async def _fan_out(self, input: Any, config: RunConfig) -> dict:
        check_cancelled(config, f"{self.name} fan-out")
        semaphore = asyncio.Semaphore(config.max_concurrency or len(self.steps))

        async def run_branch(step: Runnable) -> Any:
            async with semaphore:
                return await step.invoke(input, config)

        logger.debug(
            "%s: starting %d branches (limit=%s)",
            self.name,
            len(self.steps),
            config.max_concurrency or "none",
        )
        tasks = {
            key: asyncio.ensure_future(run_branch(step))
            for key, step in self.steps.items()
        }
        try:
            await asyncio.wait(tasks.values())
        except BaseException:
            for task in tasks.values():
                task.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)
            raise

        check_cancelled(config, f"{self.name} join")
        for key, task in tasks.items():
            if task.cancelled():
                raise ParallelBranchError(
                    key, asyncio.CancelledError(f"branch {key!r} was cancelled")
                )
            error = task.exception()
            if error is None:
                continue
            if isinstance(error, (RunCancelledError, RecursionLimitError)):
                raise error
            raise ParallelBranchError(key, error) from error
        return {key: task.result() for key, task in tasks.items()}

    @property
    def keys(self) -> list[str]:
        return list(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __repr__(self) -> str:
        return f"Parallel({', '.join(self.steps)})"
