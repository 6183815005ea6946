"""Identity unit and dict-extending assignment."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..core.config import RunConfig
from ..core.runnable import Runnable, coerce_to_runnable


class Passthrough(Runnable[Any, Any]):
    """Returns its input unchanged.

    Handy as a ``Parallel`` branch that keeps the original input around:

        Parallel({"context": retriever, "question": Passthrough()})
    """

    async def invoke(self, input: Any, config: RunConfig | None = None) -> Any:
        return input

    @staticmethod
    def assign(**steps: Any) -> "Assign":
        return Assign(steps)


class Assign(Runnable[Mapping, dict]):
    """Copy a dict input and add keys computed from it.

    Each value is a runnable or callable evaluated, in order, with the
    original input. Existing keys with the same name are overwritten.
    """

    input_type = Mapping
    output_type = dict

    def __init__(self, steps: Mapping[str, Any] | None = None, /, **kwargs: Any):
        merged = {**(steps or {}), **kwargs}
        self.steps: dict[str, Runnable] = {
            key: coerce_to_runnable(step) for key, step in merged.items()
        }

    async def invoke(self, input: Mapping, config: RunConfig | None = None) -> dict:
        if not isinstance(input, Mapping):
            raise TypeError(f"Assign expects a mapping input, got {type(input).__name__}")
        output = dict(input)
        for key, step in self.steps.items():
            output[key] = await step.invoke(input, config)
        return output
