"""Conditional routing to one of several runnables."""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..callbacks.manager import CallbackManager
from ..core.config import RunConfig, ensure_config
from ..core.context import enter_scope, run_context, scoped_run_id
from ..core.errors import NoBranchMatchedError
from ..core.runnable import Runnable, coerce_to_runnable
from ..core.stream import StreamIterator

logger = logging.getLogger(__name__)

Condition = Callable[[Any], bool]


class Branch(Runnable[Any, Any]):
    """Route the input to the first branch whose condition holds.

    Conditions are plain synchronous predicates evaluated in registration
    order. If none matches, the default runs; without a default the call
    raises ``NoBranchMatchedError``.

    Example:
        router = Branch(
            (lambda q: "weather" in q, weather_chain),
            (lambda q: q.endswith("?"), qa_chain),
            default=chat_chain,
        )
    """

    def __init__(
        self,
        *branches: tuple[Condition, Any],
        default: Any = None,
        name: str | None = None,
    ):
        self.branches: tuple[tuple[Condition, Runnable], ...] = tuple(
            (condition, coerce_to_runnable(step)) for condition, step in branches
        )
        self.default: Runnable | None = (
            coerce_to_runnable(default) if default is not None else None
        )
        self._name = name

    def select(self, input: Any) -> Runnable:
        """Return the unit that should handle ``input``."""
        for index, (condition, step) in enumerate(self.branches):
            if condition(input):
                logger.debug("%s: branch %d (%s) selected", self.name, index, step.name)
                return step
        if self.default is not None:
            logger.debug("%s: default branch selected", self.name)
            return self.default
        raise NoBranchMatchedError(self.name)

    async def invoke(self, input: Any, config: RunConfig | None = None) -> Any:
        config = ensure_config(config)
        with enter_scope(config, self.name) as depth:
            run_id = scoped_run_id(config, depth)
            callbacks = CallbackManager.for_run(config)
            callbacks.on_chain_start(input, run_id=run_id, extras={"name": self.name})
            try:
                with run_context(run_id):
                    output = await self.select(input).invoke(input, config)
            except Exception as exc:
                callbacks.on_chain_error(exc, run_id=run_id)
                raise
            callbacks.on_chain_end(output, run_id=run_id)
            return output

    async def stream(self, input: Any, config: RunConfig | None = None) -> StreamIterator:
        """Select a branch for ``input`` and return that branch's stream."""
        return await self.select(input).stream(input, config)

    def __repr__(self) -> str:
        names = [step.name for _, step in self.branches]
        if self.default is not None:
            names.append(f"default={self.default.name}")
        return f"Branch({', '.join(names)})"
