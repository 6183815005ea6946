"""Per-call invocation config and its functional options.

A ``RunConfig`` is built once per call and never mutated afterwards:

    config = build_config(
        with_tags("rag"),
        with_max_concurrency(4),
        with_callbacks(StdoutCallbackHandler()),
    )
    result = await chain.invoke(question, config)

Every component receives the same frozen object, so concurrent readers never
race. Options are plain functions ``RunConfig -> RunConfig`` applied with
``dataclasses.replace`` before dispatch begins.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping

if TYPE_CHECKING:
    from ..callbacks.base import CallbackHandler
    from .context import CancelToken

DEFAULT_RECURSION_LIMIT = 25

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _new_run_id() -> str:
    return str(uuid.uuid4())


def _frozen(values: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not values:
        return _EMPTY
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class RunConfig:
    """Settings for one call tree.

    Args:
        tags: Ordered tags for this call and its sub-calls.
        metadata: Free-form metadata for this call and its sub-calls.
        callbacks: Ordered callback handlers notified of lifecycle events.
        run_name: Overrides the runnable name in traces.
        max_concurrency: Upper bound on concurrent tasks (0 means unbounded).
        recursion_limit: Maximum nesting depth of composite runnables.
        configurable: Runtime values for configurable fields.
        run_id: Unique identifier for this call; generated when omitted.
        stop: Stop sequences forwarded to model calls.
        cancel_token: Cooperative cancellation signal checked at suspension points.
    """

    tags: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    callbacks: tuple["CallbackHandler", ...] = ()
    run_name: str = ""
    max_concurrency: int = 0
    recursion_limit: int = DEFAULT_RECURSION_LIMIT
    configurable: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    run_id: str = field(default_factory=_new_run_id)
    stop: tuple[str, ...] = ()
    cancel_token: "CancelToken | None" = None

    def __post_init__(self) -> None:
        if self.max_concurrency < 0:
            raise ValueError("max_concurrency must be >= 0")
        if self.recursion_limit < 0:
            raise ValueError("recursion_limit must be >= 0")
        # Normalise containers so the frozen dataclass is truly read-only.
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "callbacks", tuple(self.callbacks))
        object.__setattr__(self, "stop", tuple(self.stop))
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", _frozen(self.metadata))
        if not isinstance(self.configurable, MappingProxyType):
            object.__setattr__(self, "configurable", _frozen(self.configurable))


Option = Callable[[RunConfig], RunConfig]


def default_config() -> RunConfig:
    """Return a config with default limits and a fresh run id."""
    return RunConfig()


def build_config(*options: Option) -> RunConfig:
    """Apply ``options`` in order on top of the defaults."""
    return merge_config(None, *options)


def merge_config(base: RunConfig | None, *options: Option) -> RunConfig:
    """Apply ``options`` on top of ``base`` and return a new config.

    ``base`` itself is left untouched.
    """
    config = base if base is not None else default_config()
    for option in options:
        config = option(config)
    return config


def ensure_config(config: RunConfig | None) -> RunConfig:
    """Return ``config`` or a default config when ``None``."""
    return config if config is not None else default_config()


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


def with_tags(*tags: str) -> Option:
    """Append tags."""

    def apply(config: RunConfig) -> RunConfig:
        return replace(config, tags=config.tags + tags)

    return apply


def with_metadata(metadata: Mapping[str, Any]) -> Option:
    """Merge metadata keys, later keys win."""

    def apply(config: RunConfig) -> RunConfig:
        return replace(config, metadata=_frozen({**config.metadata, **metadata}))

    return apply


def with_callbacks(*handlers: "CallbackHandler") -> Option:
    """Append callback handlers."""

    def apply(config: RunConfig) -> RunConfig:
        return replace(config, callbacks=config.callbacks + handlers)

    return apply


def with_run_name(name: str) -> Option:
    def apply(config: RunConfig) -> RunConfig:
        return replace(config, run_name=name)

    return apply


def with_max_concurrency(n: int) -> Option:
    """Bound concurrent tasks in fan-outs and concurrent batches (0 = unbounded)."""

    def apply(config: RunConfig) -> RunConfig:
        return replace(config, max_concurrency=n)

    return apply


def with_recursion_limit(n: int) -> Option:
    def apply(config: RunConfig) -> RunConfig:
        return replace(config, recursion_limit=n)

    return apply


def with_run_id(run_id: str) -> Option:
    def apply(config: RunConfig) -> RunConfig:
        return replace(config, run_id=run_id)

    return apply


def with_stop(*stop: str) -> Option:
    """Replace the stop sequences."""

    def apply(config: RunConfig) -> RunConfig:
        return replace(config, stop=stop)

    return apply


def with_configurable(values: Mapping[str, Any]) -> Option:
    """Merge configurable runtime values."""

    def apply(config: RunConfig) -> RunConfig:
        return replace(
            config, configurable=_frozen({**config.configurable, **values})
        )

    return apply


def with_cancel_token(token: "CancelToken") -> Option:
    def apply(config: RunConfig) -> RunConfig:
        return replace(config, cancel_token=token)

    return apply
