"""Tests for Lambda, the @runnable decorator, Passthrough and Assign."""

import pytest

from chainweave import Assign, Lambda, Parallel, Passthrough, runnable
from chainweave.core import build_config, with_tags


@pytest.mark.asyncio
async def test_sync_and_async_functions():
    async def shout(s):
        return s.upper()

    assert await Lambda(len).invoke("abc") == 3
    assert await Lambda(shout).invoke("hi") == "HI"


def test_names():
    def named(x):
        return x

    assert Lambda(named).name == "named"
    assert Lambda(lambda x: x).name == "Lambda"
    assert Lambda(named, name="custom").name == "custom"


def test_rejects_non_callable():
    with pytest.raises(TypeError):
        Lambda("not a function")


@pytest.mark.asyncio
async def test_config_passed_when_declared():
    def tagged(x, config):
        return (x, config.tags)

    result = await Lambda(tagged).invoke(1, build_config(with_tags("t")))
    assert result == (1, ("t",))


def test_decorator_records_declared_types():
    @runnable
    async def add_one(x: int) -> int:
        return x + 1

    @runnable(name="custom_name")
    def untyped(x):
        return x

    assert isinstance(add_one, Lambda)
    assert add_one.name == "add_one"
    assert add_one.input_type is int
    assert add_one.output_type is int
    assert untyped.name == "custom_name"


@pytest.mark.asyncio
async def test_lambda_stream_and_batch():
    unit = Lambda(lambda x: x * 10)
    assert await (await unit.stream(2)).collect() == [20]
    assert await unit.batch([1, 2, 3]) == [10, 20, 30]


@pytest.mark.asyncio
async def test_passthrough_returns_input():
    value = {"q": "why"}
    assert await Passthrough().invoke(value) is value


@pytest.mark.asyncio
async def test_passthrough_inside_parallel():
    rag = Parallel({"context": lambda q: f"docs about {q}", "question": Passthrough()})
    assert await rag.invoke("cats") == {"context": "docs about cats", "question": "cats"}


@pytest.mark.asyncio
async def test_assign_adds_computed_keys():
    original = {"question": "why?"}
    assign = Passthrough.assign(length=lambda d: len(d["question"]), upper=lambda d: d["question"].upper())

    result = await assign.invoke(original)

    assert result == {"question": "why?", "length": 4, "upper": "WHY?"}
    assert original == {"question": "why?"}


@pytest.mark.asyncio
async def test_assign_rejects_non_mapping():
    with pytest.raises(TypeError):
        await Assign(x=len).invoke("text")
