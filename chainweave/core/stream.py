"""Pull-based stream iterator backed by a single producer task."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterable, AsyncIterator, Generic, TypeVar

from .context import check_cancelled
from .errors import RunCancelledError

if TYPE_CHECKING:
    from .config import RunConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BUFFER_SIZE = 16


class _NoValue:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<no value>"


NO_VALUE: Any = _NoValue()

# Queue sentinel marking normal end of the stream.
_DONE = object()


@dataclass(frozen=True)
class StreamChunk(Generic[T]):
    """One streamed item: either a value or a terminal error, never both.

    Example:
        StreamChunk(value="token")
        StreamChunk(error=TimeoutError())
    """

    value: T = NO_VALUE
    error: BaseException | None = None

    def __post_init__(self) -> None:
        has_value = self.value is not NO_VALUE
        has_error = self.error is not None
        if has_value == has_error:
            raise ValueError(
                "StreamChunk must carry exactly one of value or error "
                f"(value={'set' if has_value else 'unset'}, "
                f"error={'set' if has_error else 'unset'})"
            )

    @property
    def is_error(self) -> bool:
        return self.error is not None


class StreamIterator(Generic[T]):
    """Pull interface over a producer task emitting chunks into a bounded queue.

    ``next()`` returns ``(value, has_more, error)``:

    - ``(value, True, None)`` for every produced value;
    - ``(None, False, error)`` exactly once if the producer failed;
    - ``(None, False, None)`` once exhausted, on every later call too.

    ``close()`` is idempotent and does not block: it marks the stream closed
    and cancels the producer task, which checks the closed flag between
    emissions and is also interrupted at its current ``await``. Setting the
    config's cancel token stops the producer the same way, even if nobody
    reads again. Iterators must be created inside a running event loop.

    Example:
        stream = await chain.stream(question)
        async with stream:
            async for token in stream:
                print(token, end="")
    """

    def __init__(
        self,
        source: AsyncIterable[T],
        *,
        config: "RunConfig | None" = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=max(1, buffer_size))
        self._config = config
        self._closed = False
        self._exhausted = False
        loop = asyncio.get_running_loop()
        self._producer: asyncio.Task[None] = loop.create_task(self._produce(source))

        token = config.cancel_token if config is not None else None
        if token is not None:

            def on_cancel() -> None:
                if not loop.is_closed():
                    loop.call_soon_threadsafe(self._on_cancel)

            token.add_callback(on_cancel)
            self._producer.add_done_callback(lambda _: token.remove_callback(on_cancel))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_async_iterable(
        cls, source: AsyncIterable[T], *, config: "RunConfig | None" = None
    ) -> "StreamIterator[T]":
        return cls(source, config=config)

    @classmethod
    def from_values(
        cls, *values: T, config: "RunConfig | None" = None
    ) -> "StreamIterator[T]":
        return cls(_iterate(values), config=config)

    @classmethod
    def single(cls, value: T, *, config: "RunConfig | None" = None) -> "StreamIterator[T]":
        """Single-chunk stream, the fallback for units without incremental output."""
        return cls(_iterate((value,)), config=config)

    @classmethod
    def from_error(
        cls, error: BaseException, *, config: "RunConfig | None" = None
    ) -> "StreamIterator[T]":
        return cls(_raise(error), config=config)

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    async def _produce(self, source: AsyncIterable[T]) -> None:
        iterator = source.__aiter__()
        try:
            while not self._closed:
                check_cancelled(self._config, "stream producer")
                try:
                    item = await iterator.__anext__()
                except StopAsyncIteration:
                    break
                if self._closed:
                    break
                await self._queue.put(StreamChunk(value=item))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # An error chunk is terminal; nothing follows it.
            if not self._closed:
                await self._queue.put(StreamChunk(error=exc))
            return
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
        if not self._closed:
            await self._queue.put(_DONE)

    def _on_cancel(self) -> None:
        """Stop the producer once the run's cancel token fires."""
        if self._producer.done():
            return
        self._producer.cancel()
        # Wake a consumer blocked on an empty queue.
        try:
            self._queue.put_nowait(StreamChunk(error=RunCancelledError("stream producer")))
        except asyncio.QueueFull:
            pass

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    async def next(self) -> tuple[T | None, bool, BaseException | None]:
        """Return the next ``(value, has_more, error)`` triple."""
        if self._closed or self._exhausted:
            return None, False, None
        try:
            check_cancelled(self._config, "stream read")
        except RunCancelledError as exc:
            self._exhausted = True
            self.close()
            return None, False, exc

        item = await self._queue.get()
        if item is _DONE:
            self._exhausted = True
            return None, False, None
        if item.is_error:
            self._exhausted = True
            return None, False, item.error
        return item.value, True, None

    async def collect(self) -> list[T]:
        """Read all remaining values; raise the stream error if one arrives."""
        values: list[T] = []
        while True:
            value, has_more, error = await self.next()
            if error is not None:
                raise error
            if not has_more:
                return values
            values.append(value)  # type: ignore[arg-type]

    def close(self) -> None:
        """Stop consuming and guarantee the producer terminates."""
        if self._closed:
            return
        self._closed = True
        if not self._producer.done():
            self._producer.cancel()
        # Wake a consumer blocked in next() on another task.
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        self._queue.put_nowait(_DONE)
        logger.debug("Stream closed")

    async def aclose(self) -> None:
        """Close and wait until the producer task has finished."""
        self.close()
        await asyncio.gather(self._producer, return_exceptions=True)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def producer_done(self) -> bool:
        return self._producer.done()

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        value, has_more, error = await self.next()
        if error is not None:
            raise error
        if not has_more:
            raise StopAsyncIteration
        return value  # type: ignore[return-value]

    async def __aenter__(self) -> "StreamIterator[T]":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "exhausted" if self._exhausted else "open"
        return f"StreamIterator({state})"


async def _iterate(values: tuple) -> AsyncIterator[Any]:
    for value in values:
        yield value


async def _raise(error: BaseException) -> AsyncIterator[Any]:
    raise error
    yield  # pragma: no cover
