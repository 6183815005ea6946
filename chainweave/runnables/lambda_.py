"""Function adapter and the @runnable decorator."""

from __future__ import annotations

import inspect
import typing
from typing import Any, Callable

from ..core.config import RunConfig, ensure_config
from ..core.runnable import In, Out, Runnable, maybe_await


def _accepts_config(fn: Callable) -> bool:
    try:
        return "config" in inspect.signature(fn).parameters
    except (TypeError, ValueError):
        return False


class Lambda(Runnable[In, Out]):
    """Wraps a sync or async function ``fn(input)`` as a runnable.

    Functions that declare a ``config`` parameter also receive the run config.

    Example:
        shout = Lambda(str.upper, name="shout")
        await shout.invoke("hi")  # "HI"
    """

    def __init__(
        self,
        fn: Callable,
        name: str | None = None,
        *,
        input_type: Any = Any,
        output_type: Any = Any,
    ):
        if not callable(fn):
            raise TypeError(f"Lambda expects a callable, got {type(fn).__name__}")
        self.fn = fn
        fn_name = getattr(fn, "__name__", None)
        self._name = name or (fn_name if fn_name and fn_name != "<lambda>" else "Lambda")
        self.input_type = input_type
        self.output_type = output_type
        self._pass_config = _accepts_config(fn)

    async def invoke(self, input: In, config: RunConfig | None = None) -> Out:
        if self._pass_config:
            return await maybe_await(self.fn, input, config=ensure_config(config))
        return await maybe_await(self.fn, input)


def _is_class(hint: Any) -> bool:
    return isinstance(hint, type) and hint is not Any and typing.get_origin(hint) is None


def _declared_types(fn: Callable) -> tuple[Any, Any]:
    """Return the (input, output) classes declared by ``fn``'s annotations."""
    try:
        hints = typing.get_type_hints(fn)
        params = [name for name in inspect.signature(fn).parameters if name != "config"]
    except (NameError, TypeError, ValueError):
        return Any, Any
    input_hint = hints.get(params[0], Any) if params else Any
    output_hint = hints.get("return", Any)
    return (
        input_hint if _is_class(input_hint) else Any,
        output_hint if _is_class(output_hint) else Any,
    )


def runnable(_fn: Callable | None = None, *, name: str | None = None):
    """Decorator that wraps a function in a Lambda.

    Plain class annotations on the first parameter and the return value become
    the unit's ``input_type`` and ``output_type``, so sequences can check
    their boundaries.

    Example:
        @runnable
        async def add_one(x: int) -> int:
            return x + 1

        await add_one.invoke(5)  # 6

        @runnable(name="custom_name")
        async def my_func(x: int) -> int:
            return x
    """

    def wrapper(fn: Callable) -> Lambda:
        input_type, output_type = _declared_types(fn)
        return Lambda(fn, name=name, input_type=input_type, output_type=output_type)

    if _fn is None:
        return wrapper

    return wrapper(_fn)
