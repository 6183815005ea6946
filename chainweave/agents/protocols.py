"""Planner interface driven by the agent executor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from ..core.config import RunConfig
    from .types import AgentOutput, AgentStep


@runtime_checkable
class Planner(Protocol):
    """Decides the next actions, or the final answer, from the steps so far."""

    async def plan(
        self,
        steps: Sequence["AgentStep"],
        inputs: Mapping[str, Any],
        config: "RunConfig | None" = None,
    ) -> "AgentOutput":
        """Return the next decision.

        ``steps`` is a read-only snapshot of every step executed in this run.
        Raising signals a planning failure (typically unparseable model
        output).
        """
        ...

    @property
    def input_keys(self) -> list[str]: ...

    @property
    def output_keys(self) -> list[str]: ...
