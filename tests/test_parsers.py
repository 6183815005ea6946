"""Tests for output parsers and message helpers."""

import pytest

from chainweave import Sequence
from chainweave.core import (
    Document,
    Message,
    OutputParserError,
    ToolCall,
    ai,
    get_buffer_string,
    human,
    system,
    tool_result,
)
from chainweave.parsers import JsonOutputParser, StrOutputParser


@pytest.mark.asyncio
async def test_str_parser():
    parser = StrOutputParser()
    assert await parser.invoke(ai("hello")) == "hello"
    assert await parser.invoke("plain") == "plain"
    with pytest.raises(TypeError):
        parser.parse(42)


@pytest.mark.parametrize(
    "text",
    [
        '{"a": 1}',
        '  {"a": 1}\n',
        '```json\n{"a": 1}\n```',
        'Here you go:\n```\n{"a": 1}\n```\nAnything else?',
    ],
)
def test_json_parser_unwraps_fences(text):
    assert JsonOutputParser().parse(text) == {"a": 1}


def test_json_parser_error_keeps_raw_output():
    with pytest.raises(OutputParserError) as exc_info:
        JsonOutputParser().parse("not json")

    assert exc_info.value.llm_output == "not json"
    assert isinstance(exc_info.value, ValueError)
    assert "Failed to parse JSON output" in str(exc_info.value)


@pytest.mark.asyncio
async def test_parsers_compose_with_models():
    reply = Sequence(lambda q: ai('```json\n{"answer": "' + q + '"}\n```'), JsonOutputParser())
    assert await reply.invoke("yes") == {"answer": "yes"}
    assert "JSON" in JsonOutputParser().get_format_instructions()


def test_message_helpers():
    call = ToolCall(id="call_1", name="search", arguments='{"q": "x"}')
    msg = ai("", [call])

    assert msg.tool_calls == (call,)
    assert human("hi") == Message(role="human", content="hi")
    assert system("be brief").role == "system"
    assert tool_result("42", "call_1").tool_call_id == "call_1"
    assert Document("text").metadata == {}


def test_buffer_string():
    messages = [system("rules"), human("hi"), ai("hello"), tool_result("42", "c1")]

    assert get_buffer_string(messages) == "System: rules\nHuman: hi\nAI: hello\nTool: 42"
    assert get_buffer_string([human("q"), ai("a")], human_prefix="User", ai_prefix="Bot") == (
        "User: q\nBot: a"
    )
