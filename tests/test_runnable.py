"""Tests for the runnable contract and its default behaviours."""

import asyncio

import pytest
from conftest import ConcurrencyProbe

from chainweave import Lambda, Parallel, Sequence
from chainweave.core import (
    BatchItemError,
    ConcurrentBatchMixin,
    Runnable,
    build_config,
    coerce_to_runnable,
    with_max_concurrency,
)


class Upper(Runnable[str, str]):
    input_type = str
    output_type = str

    async def invoke(self, input, config=None):
        if input == "bad":
            raise ValueError("cannot shout this")
        return input.upper()


class SlowEcho(ConcurrentBatchMixin, Runnable[float, float]):
    """Sleeps for its input in seconds, then returns it."""

    def __init__(self, probe=None):
        self.probe = probe or ConcurrencyProbe()

    async def invoke(self, input, config=None):
        if input < 0:
            raise ValueError("negative delay")
        await self.probe.hold(input)
        return input


def test_name_and_with_name():
    unit = Upper()
    renamed = unit.with_name("shout")

    assert unit.name == "Upper"
    assert renamed.name == "shout"
    assert unit.name == "Upper"


@pytest.mark.asyncio
async def test_default_stream_is_single_chunk():
    stream = await Upper().stream("hi")
    assert await stream.collect() == ["HI"]


@pytest.mark.asyncio
async def test_default_stream_reports_invoke_error():
    stream = await Upper().stream("bad")
    value, has_more, err = await stream.next()
    assert (value, has_more) == (None, False)
    assert isinstance(err, ValueError)


@pytest.mark.asyncio
async def test_default_batch_preserves_order():
    assert await Upper().batch(["a", "b", "c"]) == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_default_batch_stops_at_first_error():
    calls = []

    def record(x):
        calls.append(x)
        if x == 2:
            raise RuntimeError("two")
        return x

    with pytest.raises(BatchItemError) as exc_info:
        await Lambda(record).batch([1, 2, 3])

    assert exc_info.value.index == 1
    assert isinstance(exc_info.value.cause, RuntimeError)
    assert calls == [1, 2]


@pytest.mark.asyncio
async def test_rshift_builds_sequence():
    chain = Upper() >> (lambda s: s + "!")
    assert isinstance(chain, Sequence)
    assert await chain.invoke("hi") == "HI!"

    reverse = (lambda s: s.strip()) >> Upper()
    assert await reverse.invoke("  hi ") == "HI"


def test_coerce_to_runnable():
    unit = Upper()
    assert coerce_to_runnable(unit) is unit
    assert isinstance(coerce_to_runnable(len), Lambda)
    assert isinstance(coerce_to_runnable({"n": len}), Parallel)
    with pytest.raises(TypeError):
        coerce_to_runnable(42)


@pytest.mark.asyncio
async def test_concurrent_batch_preserves_order():
    """Outputs line up with inputs even when later items finish first."""
    delays = [0.05, 0.01, 0.03, 0.0]
    assert await SlowEcho().batch(delays) == delays


@pytest.mark.asyncio
async def test_concurrent_batch_default_bound():
    unit = SlowEcho()
    await unit.batch([0.01] * 12)
    assert 1 < unit.probe.peak <= SlowEcho.default_batch_concurrency


@pytest.mark.asyncio
async def test_concurrent_batch_respects_max_concurrency():
    unit = SlowEcho()
    await unit.batch([0.01] * 6, build_config(with_max_concurrency(2)))
    assert unit.probe.peak <= 2


@pytest.mark.asyncio
async def test_concurrent_batch_failure():
    with pytest.raises(BatchItemError) as exc_info:
        await SlowEcho().batch([0.01, -1, 0.01])
    assert exc_info.value.index == 1


@pytest.mark.asyncio
async def test_concurrent_batch_empty():
    assert await SlowEcho().batch([]) == []


@pytest.mark.asyncio
async def test_concurrent_batch_cancels_siblings_on_failure():
    unit = SlowEcho()
    with pytest.raises(BatchItemError):
        await unit.batch([-1, 5.0, 5.0])
    await asyncio.sleep(0)
    assert unit.probe.active == 0
