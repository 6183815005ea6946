"""Run-scoped state: cooperative cancellation and composition depth."""

from __future__ import annotations

import contextvars
import threading
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator

from .errors import RecursionLimitError, RunCancelledError

if TYPE_CHECKING:
    from .config import RunConfig


class CancelToken:
    """Cooperative cancellation signal shared by one call tree.

    Setting the token never interrupts work in flight. Components check it at
    their suspension points (iteration boundaries, branch joins, stream reads)
    and raise ``RunCancelledError`` there.

    Example:
        token = CancelToken()
        config = build_config(with_cancel_token(token))
        task = asyncio.create_task(executor.invoke(inputs, config))
        token.cancel()
    """

    __slots__ = ("_event", "_lock", "_callbacks", "reason")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` once the token is cancelled (now, if it already is)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, where: str = "") -> None:
        if self._event.is_set():
            raise RunCancelledError(where)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"


def check_cancelled(config: "RunConfig | None", where: str = "") -> None:
    """Raise ``RunCancelledError`` if the config carries a set cancel token."""
    if config is not None and config.cancel_token is not None:
        config.cancel_token.raise_if_cancelled(where)


_depth: contextvars.ContextVar[int] = contextvars.ContextVar(
    "chainweave_depth", default=0
)


def current_depth() -> int:
    """Return how many composite runnables enclose the current call."""
    return _depth.get()


@contextmanager
def enter_scope(config: "RunConfig", name: str) -> Iterator[int]:
    """Enter one level of composition, enforcing ``config.recursion_limit``.

    The depth is tracked in a context variable, so concurrent branches of a
    parallel fan-out each see their own value.
    """
    depth = _depth.get() + 1
    if config.recursion_limit and depth > config.recursion_limit:
        raise RecursionLimitError(config.recursion_limit, name)
    token = _depth.set(depth)
    try:
        yield depth
    finally:
        _depth.reset(token)


_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "chainweave_run_id", default=None
)


def current_run_id() -> str | None:
    """Return the run id of the innermost enclosing run, if any."""
    return _run_id.get()


@contextmanager
def run_context(run_id: str) -> Iterator[str | None]:
    """Make ``run_id`` the parent of every run started inside the block.

    Yields the previous parent run id. Tasks created inside the block copy
    the context, so parallel branches report the same parent.
    """
    parent = _run_id.get()
    token = _run_id.set(run_id)
    try:
        yield parent
    finally:
        _run_id.reset(token)


def scoped_run_id(config: "RunConfig", depth: int) -> str:
    """Run id for the events of a composite entered at ``depth``.

    The outermost composite reports under the caller's ``run_id``; nested ones
    get a fresh id so their events can be told apart.
    """
    if depth <= 1:
        return config.run_id
    return str(uuid.uuid4())
