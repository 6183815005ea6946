"""The capability contract shared by every composable unit."""

from __future__ import annotations

import asyncio
import copy
import inspect
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, Generic, Iterable, TypeVar

from .config import RunConfig, ensure_config
from .context import check_cancelled
from .errors import BatchItemError, RunCancelledError
from .stream import StreamIterator

In = TypeVar("In")
Out = TypeVar("Out")


async def maybe_await(fn: Callable, *args, **kwargs) -> Any:
    """Call a function and await if it returns an awaitable."""
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


class Runnable(ABC, Generic[In, Out]):
    """Abstract base for every composable unit.

    Subclasses implement ``invoke``; ``stream`` and ``batch`` have working
    defaults that are overridden only when a unit can do better (incremental
    output, concurrent batching).

    ``input_type`` and ``output_type`` are optional runtime hints. ``Any``
    means unchecked; a concrete type (or tuple of types) is checked by the
    dynamic sequence builder at pipeline boundaries.

    Example:
        class Upper(Runnable[str, str]):
            input_type = str
            output_type = str

            async def invoke(self, input, config=None):
                return input.upper()

        chain = Upper() >> (lambda s: s + "!")
        await chain.invoke("hi")  # "HI!"
    """

    input_type: Any = Any
    output_type: Any = Any

    _name: str | None = None

    @property
    def name(self) -> str:
        return self._name or self.__class__.__name__

    def with_name(self, name: str) -> "Runnable[In, Out]":
        """Return a shallow copy reported under ``name``."""
        clone = copy.copy(self)
        clone._name = name
        return clone

    @abstractmethod
    async def invoke(self, input: In, config: RunConfig | None = None) -> Out:
        """Transform a single input into an output."""
        ...

    async def stream(
        self, input: In, config: RunConfig | None = None
    ) -> StreamIterator[Out]:
        """Return a stream of output chunks.

        The default runs ``invoke`` inside the producer task and emits its
        result as a single chunk; a failure becomes the stream's error.
        """
        config = ensure_config(config)
        return StreamIterator(self._invoke_as_stream(input, config), config=config)

    async def _invoke_as_stream(self, input: In, config: RunConfig) -> AsyncIterator[Out]:
        yield await self.invoke(input, config)

    async def batch(
        self, inputs: Iterable[In], config: RunConfig | None = None
    ) -> list[Out]:
        """Invoke each input in order and return outputs at matching indices.

        Stops at the first failure, raised as ``BatchItemError``.
        """
        config = ensure_config(config)
        results: list[Out] = []
        for index, item in enumerate(inputs):
            check_cancelled(config, f"{self.name} batch")
            results.append(await _invoke_item(self, index, item, config))
        return results

    def __rshift__(self, other: Any) -> "Runnable[In, Any]":
        from ..runnables.sequence import Sequence

        return Sequence(self, coerce_to_runnable(other))

    def __rrshift__(self, other: Any) -> "Runnable[Any, Out]":
        from ..runnables.sequence import Sequence

        return Sequence(coerce_to_runnable(other), self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class ConcurrentBatchMixin:
    """Bounded-concurrency ``batch`` for units whose items are independent.

    Must precede ``Runnable`` in the bases. The bound is
    ``config.max_concurrency`` when set, else ``default_batch_concurrency``.
    Outputs keep input order whatever order the items complete in. On failure
    the remaining items are cancelled and the first failure observed is
    raised as ``BatchItemError``.
    """

    default_batch_concurrency: int = 5

    async def batch(self, inputs: Iterable[Any], config: RunConfig | None = None) -> list[Any]:
        config = ensure_config(config)
        items = list(inputs)
        if not items:
            return []
        semaphore = asyncio.Semaphore(
            config.max_concurrency or self.default_batch_concurrency
        )

        async def run_one(index: int, item: Any) -> Any:
            async with semaphore:
                check_cancelled(config, f"{self.name} batch")  # type: ignore[attr-defined]
                return await _invoke_item(self, index, item, config)  # type: ignore[arg-type]

        tasks = [
            asyncio.ensure_future(run_one(index, item))
            for index, item in enumerate(items)
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


async def _invoke_item(unit: Runnable, index: int, item: Any, config: RunConfig) -> Any:
    try:
        return await unit.invoke(item, config)
    except RunCancelledError:
        raise
    except Exception as exc:
        raise BatchItemError(index, exc) from exc


def coerce_to_runnable(value: Any) -> Runnable:
    """Turn a runnable, callable or mapping of them into a runnable.

    Callables become ``Lambda`` units and mappings become ``Parallel`` groups.
    """
    if isinstance(value, Runnable):
        return value
    if isinstance(value, dict):
        from ..runnables.parallel import Parallel

        return Parallel(value)
    if callable(value):
        from ..runnables.lambda_ import Lambda

        return Lambda(value)
    raise TypeError(
        f"Expected a Runnable, callable or dict, got {type(value).__name__}"
    )
