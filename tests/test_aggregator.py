from __future__ import annotations
import json
import pytest
import httpx
from assistant_bridge.errors import EmptyResponseError
from assistant_bridge.services.aggregator import aggregate_stream

def delta_line(*values: str) -> str:
    event = {
        "object": "thread.message.delta",
        "delta": {"content": [{"type": "text", "text": {"value": v}} for v in values]}
    }
    return f"data: {json.dumps(event)}\n"

def stream_response(*lines: str) -> httpx.Response:
    return httpx.Response(200, content="".join(lines).encode())

def chunked_response(*chunks: bytes, error: Exception | None = None) -> httpx.Response:
    async def body():
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error
    return httpx.Response(200, content=body())

@pytest.mark.asyncio
async def test_hello_scenario():
    response = stream_response(
        'data: {"object":"thread.message.delta","delta":{"content":[{"text":{"value":"Hel"}}]}}\n',
        'data: {"object":"thread.message.delta","delta":{"content":[{"text":{"value":"lo"}}]}}\n',
        "data: [DONE]\n",
    )
    assert await aggregate_stream(response) == "Hello"
    assert response.is_closed

@pytest.mark.asyncio
@pytest.mark.parametrize("fragments", [["a"], ["The ", "answer ", "is ", "42."], [str(i) for i in range(50)]])
async def test_fragments_concatenated_in_order(fragments):
    lines = [delta_line(f) + "\n" for f in fragments] + ["data: [DONE]\n"]
    assert await aggregate_stream(stream_response(*lines)) == "".join(fragments)

@pytest.mark.asyncio
async def test_multiple_content_parts_in_one_delta():
    response = stream_response(delta_line("foo", "bar"), delta_line("baz"), "data: [DONE]\n")
    assert await aggregate_stream(response) == "foobarbaz"

@pytest.mark.asyncio
async def test_immediate_done_is_empty_response():
    response = stream_response("data: [DONE]\n")
    with pytest.raises(EmptyResponseError):
        await aggregate_stream(response)
    assert response.is_closed

@pytest.mark.asyncio
async def test_eof_without_fragments_is_empty_response():
    response = stream_response("event: thread.run.created\n", 'data: {"object":"thread.run"}\n', "\n")
    with pytest.raises(EmptyResponseError):
        await aggregate_stream(response)

@pytest.mark.asyncio
async def test_empty_text_values_count_as_empty():
    response = stream_response(delta_line(""), "data: [DONE]\n")
    with pytest.raises(EmptyResponseError):
        await aggregate_stream(response)

@pytest.mark.asyncio
async def test_malformed_lines_are_skipped():
    response = stream_response(
        delta_line("one "),
        "data: {not json\n",
        'data: {"object":"thread.message.delta","delta":{"content":"oops"}}\n',
        "data: [1, 2]\n",
        delta_line("two"),
        "data: [DONE]\n",
    )
    assert await aggregate_stream(response) == "one two"

@pytest.mark.asyncio
async def test_deeply_nested_payload_is_skipped():
    response = stream_response(
        "data: " + "[" * 100000 + "]" * 100000 + "\n",
        delta_line("ok"),
        "data: [DONE]\n",
    )
    assert await aggregate_stream(response) == "ok"

@pytest.mark.asyncio
async def test_unreadable_part_keeps_sibling_text():
    response = stream_response(
        'data: {"object":"thread.message.delta","delta":{"content":['
        '{"text":{"value":"kept"}},{"type":"future_kind","text":"plain string"}]}}\n',
        "data: [DONE]\n",
    )
    assert await aggregate_stream(response) == "kept"

@pytest.mark.asyncio
async def test_non_data_lines_and_other_events_ignored():
    response = stream_response(
        ": keep-alive\n",
        "event: thread.message.delta\n",
        'data: {"object":"thread.run.step","status":"in_progress"}\n',
        delta_line("ok"),
        "id: 7\n",
        "data: [DONE]\n",
    )
    assert await aggregate_stream(response) == "ok"

@pytest.mark.asyncio
async def test_content_without_text_is_ignored():
    event = {
        "object": "thread.message.delta",
        "delta": {"content": [
            {"type": "image_file", "image_file": {"file_id": "file-1"}},
            {"type": "text", "text": {"annotations": []}},
            {"type": "text", "text": {"value": "visible"}},
        ]}
    }
    response = stream_response(f"data: {json.dumps(event)}\n", "data: [DONE]\n")
    assert await aggregate_stream(response) == "visible"

@pytest.mark.asyncio
async def test_message_completed_stops_reading():
    response = stream_response(
        delta_line("kept"),
        'data: {"object":"thread.message.completed"}\n',
        delta_line(" dropped"),
        "data: [DONE]\n",
    )
    assert await aggregate_stream(response) == "kept"
    assert response.is_closed

@pytest.mark.asyncio
async def test_done_stops_before_trailing_lines():
    response = stream_response(delta_line("first"), "data: [DONE]\n", delta_line("second"))
    assert await aggregate_stream(response) == "first"

@pytest.mark.asyncio
async def test_eof_after_partial_fragments_is_success():
    response = chunked_response(delta_line("partial ").encode(), delta_line("answer").encode())
    assert await aggregate_stream(response) == "partial answer"
    assert response.is_closed

@pytest.mark.asyncio
async def test_lines_split_across_chunks():
    raw = (delta_line("split") + delta_line(" lines") + "data: [DONE]\n").encode()
    chunks = [raw[i:i + 7] for i in range(0, len(raw), 7)]
    assert await aggregate_stream(chunked_response(*chunks)) == "split lines"

@pytest.mark.asyncio
async def test_crlf_line_endings():
    response = stream_response(delta_line("crlf").replace("\n", "\r\n"), "data: [DONE]\r\n")
    assert await aggregate_stream(response) == "crlf"

@pytest.mark.asyncio
async def test_read_error_propagates_and_closes():
    response = chunked_response(delta_line("lost").encode(), error=httpx.ReadError("connection reset"))
    with pytest.raises(httpx.ReadError):
        await aggregate_stream(response)
    assert response.is_closed
