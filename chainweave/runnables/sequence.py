"""Sequence container for composing runnables into a pipeline."""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Iterator, TypeVar, get_origin

from ..callbacks.manager import CallbackManager
from ..core.config import RunConfig, ensure_config
from ..core.context import check_cancelled, enter_scope, run_context, scoped_run_id
from ..core.errors import (
    RecursionLimitError,
    RunCancelledError,
    StepExecutionError,
    TypeMismatchError,
)
from ..core.runnable import Runnable, coerce_to_runnable
from ..core.stream import StreamIterator

logger = logging.getLogger(__name__)

In = TypeVar("In")
Out = TypeVar("Out")
A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")
D = TypeVar("D")
E = TypeVar("E")

# Errors that cross step boundaries unwrapped.
_PASSTHROUGH_ERRORS = (RunCancelledError, RecursionLimitError, TypeMismatchError)


def _is_class(hint: Any) -> bool:
    # typing.Any is itself a class on 3.11+
    return isinstance(hint, type) and hint is not Any and get_origin(hint) is None


def _as_types(hint: Any) -> tuple[type, ...] | None:
    """Return the classes a hint stands for, or None when it cannot be checked."""
    if _is_class(hint) and hint is not object:
        return (hint,)
    if isinstance(hint, tuple) and hint and all(_is_class(t) for t in hint):
        return hint
    return None


def _compatible(produced: Any, expected: Any) -> bool:
    produced_types = _as_types(produced)
    expected_types = _as_types(expected)
    if produced_types is None or expected_types is None:
        return True
    return all(issubclass(p, expected_types) for p in produced_types)


class Sequence(Runnable[In, Out]):
    """Pipeline that feeds each step's output into the next step.

    Nested sequences are flattened, so a sequence of sequences behaves like
    one long pipeline. Plain callables are wrapped in ``Lambda`` and dicts in
    ``Parallel``.

    Boundary types are checked twice when ``check_types`` is on: once at
    construction from the declared ``output_type``/``input_type`` pairs, and
    at run time against the value actually handed to each step. Either
    mismatch raises ``TypeMismatchError``.

    Example:
        @runnable
        async def retrieve(question: str) -> list:
            return ["doc1", "doc2"]

        @runnable
        async def answer(docs: list) -> str:
            return f"{len(docs)} documents"

        chain = Sequence(retrieve, answer)
        await chain.invoke("what is up?")  # "2 documents"

        # Compose pipelines
        full = Sequence(preprocess, chain, postprocess)
        full = preprocess >> chain >> postprocess
    """

    def __init__(self, *steps: Any, name: str | None = None, check_types: bool = True):
        """Initialize with runnables, callables or nested sequences.

        Args:
            *steps: Units to chain together, in execution order.
            name: Optional name reported in callbacks and errors.
            check_types: Verify declared and actual boundary types.
        """
        if not steps:
            raise ValueError("Sequence requires at least one step")

        flattened: list[Runnable] = []
        for step in steps:
            step = coerce_to_runnable(step)
            if isinstance(step, Sequence):
                flattened.extend(step.steps)
            else:
                flattened.append(step)
        self.steps: tuple[Runnable, ...] = tuple(flattened)
        self.check_types = check_types
        self._name = name
        self.input_type = self.steps[0].input_type
        self.output_type = self.steps[-1].output_type

        if check_types:
            for index in range(1, len(self.steps)):
                produced = self.steps[index - 1].output_type
                step = self.steps[index]
                if not _compatible(produced, step.input_type):
                    raise TypeMismatchError(index, step.name, step.input_type, produced)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def invoke(self, input: In, config: RunConfig | None = None) -> Out:
        config = ensure_config(config)
        with enter_scope(config, self.name) as depth:
            run_id = scoped_run_id(config, depth)
            callbacks = CallbackManager.for_run(config)
            callbacks.on_chain_start(input, run_id=run_id, extras={"name": self.name})
            try:
                with run_context(run_id):
                    output = await self._run_steps(input, config, self.steps)
            except Exception as exc:
                callbacks.on_chain_error(exc, run_id=run_id)
                raise
            callbacks.on_chain_end(output, run_id=run_id)
            return output

    async def _run_steps(
        self, value: Any, config: RunConfig, steps: tuple[Runnable, ...]
    ) -> Any:
        executed: list[str] = []
        for index, step in enumerate(steps):
            check_cancelled(config, f"step {index} ({step.name})")
            self._check_input(index, step, value)
            logger.debug("%s: running step %d (%s)", self.name, index, step.name)
            try:
                value = await step.invoke(value, config)
            except _PASSTHROUGH_ERRORS:
                raise
            except Exception as exc:
                raise StepExecutionError(index, step.name, executed, exc) from exc
            executed.append(step.name)
        return value

    def _check_input(self, index: int, step: Runnable, value: Any) -> None:
        if not self.check_types:
            return
        expected = _as_types(step.input_type)
        if expected is not None and not isinstance(value, expected):
            raise TypeMismatchError(index, step.name, step.input_type, type(value))

    async def stream(
        self, input: In, config: RunConfig | None = None
    ) -> StreamIterator[Out]:
        """Invoke every step but the last, then stream the last step.

        Only the final step produces incremental output; earlier steps must
        finish before the first chunk appears. Chain callbacks wrap the whole
        stream; the end event carries the list of streamed chunks.
        """
        config = ensure_config(config)
        return StreamIterator(self._stream_steps(input, config), config=config)

    async def _stream_steps(self, input: Any, config: RunConfig) -> AsyncIterator[Any]:
        with enter_scope(config, self.name) as depth:
            run_id = scoped_run_id(config, depth)
            callbacks = CallbackManager.for_run(config)
            callbacks.on_chain_start(input, run_id=run_id, extras={"name": self.name})
            streamed: list[Any] = []
            try:
                with run_context(run_id):
                    async with aclosing(self._stream_last(input, config)) as chunks:
                        async for chunk in chunks:
                            streamed.append(chunk)
                            yield chunk
            except Exception as exc:
                callbacks.on_chain_error(exc, run_id=run_id)
                raise
            callbacks.on_chain_end(streamed, run_id=run_id)

    async def _stream_last(self, input: Any, config: RunConfig) -> AsyncIterator[Any]:
        value = await self._run_steps(input, config, self.steps[:-1])
        last_index = len(self.steps) - 1
        last = self.steps[last_index]
        self._check_input(last_index, last, value)
        try:
            inner = await last.stream(value, config)
        except _PASSTHROUGH_ERRORS:
            raise
        except Exception as exc:
            raise StepExecutionError(
                last_index, last.name, self.step_names[:-1], exc
            ) from exc
        try:
            while True:
                chunk, has_more, error = await inner.next()
                if error is not None:
                    if isinstance(error, _PASSTHROUGH_ERRORS):
                        raise error
                    raise StepExecutionError(
                        last_index, last.name, self.step_names[:-1], error
                    ) from error
                if not has_more:
                    return
                yield chunk
        finally:
            await inner.aclose()

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        """Return string representation showing pipeline structure."""
        step_names = self.step_names
        if len(step_names) <= 3:
            return f"Sequence({', '.join(step_names)})"
        return f"Sequence({step_names[0]}, ..., {step_names[-1]}) [{len(step_names)} steps]"

    def __len__(self) -> int:
        """Return the number of steps in the pipeline."""
        return len(self.steps)

    def __getitem__(self, idx: int) -> Runnable:
        """Get a specific step by index."""
        return self.steps[idx]

    def __iter__(self) -> Iterator[Runnable]:
        """Iterate over pipeline steps."""
        return iter(self.steps)

    @property
    def step_names(self) -> list[str]:
        """Get names of all steps in the pipeline."""
        return [step.name for step in self.steps]


def pipe(*steps: Any) -> Sequence[Any, Any]:
    """Build a type-checked sequence from any number of steps."""
    return Sequence(*steps)


def pipe2(first: Runnable[A, B], second: Runnable[B, C]) -> Sequence[A, C]:
    """Chain two units whose boundary types are verified statically."""
    return Sequence(first, second, check_types=False)


def pipe3(
    first: Runnable[A, B], second: Runnable[B, C], third: Runnable[C, D]
) -> Sequence[A, D]:
    return Sequence(first, second, third, check_types=False)


def pipe4(
    first: Runnable[A, B],
    second: Runnable[B, C],
    third: Runnable[C, D],
    fourth: Runnable[D, E],
) -> Sequence[A, E]:
    return Sequence(first, second, third, fourth, check_types=False)
