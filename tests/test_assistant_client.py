from __future__ import annotations
import json
import pytest
import httpx
from assistant_bridge.errors import DispatchError, EmptyResponseError
from assistant_bridge.models.schemas import SessionIdentifiers
from assistant_bridge.services.assistant_client import (
    AssistantClient,
    build_run_request,
    create_openai_http_client,
)

IDENTIFIERS = SessionIdentifiers(assistant_id="asst_123", vector_store_id="vs_456")

SSE_BODY = (
    "event: thread.run.created\n"
    'data: {"object":"thread.run","status":"queued"}\n\n'
    "event: thread.message.delta\n"
    'data: {"object":"thread.message.delta","delta":{"content":[{"text":{"value":"Paris"}}]}}\n\n'
    "event: done\n"
    "data: [DONE]\n\n"
)

def make_client(handler) -> AssistantClient:
    http_client = create_openai_http_client(
        api_url="https://api.test/v1/",
        api_key="sk-test",
        transport=httpx.MockTransport(handler)
    )
    return AssistantClient(http_client, IDENTIFIERS)

def test_build_run_request():
    body = build_run_request(IDENTIFIERS, "What is the capital of France?")
    assert body == {
        "assistant_id": "asst_123",
        "thread": {"messages": [{"role": "user", "content": "What is the capital of France?"}]},
        "tool_resources": {"file_search": {"vector_store_ids": ["vs_456"]}},
        "temperature": 1.0,
        "top_p": 1.0,
        "stream": True,
    }

@pytest.mark.asyncio
async def test_ask_sends_run_request_and_aggregates():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["headers"] = request.headers
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, text=SSE_BODY, headers={"content-type": "text/event-stream"})

    client = make_client(handler)
    try:
        answer = await client.ask("What is the capital of France?")
    finally:
        await client.http_client.aclose()

    assert answer == "Paris"
    assert captured["method"] == "POST"
    assert captured["path"] == "/v1/threads/runs"
    assert captured["headers"]["authorization"] == "Bearer sk-test"
    assert captured["headers"]["openai-beta"] == "assistants=v2"
    assert captured["headers"]["content-type"] == "application/json"
    assert captured["body"]["thread"]["messages"][0]["content"] == "What is the capital of France?"
    assert captured["body"]["stream"] is True

@pytest.mark.asyncio
async def test_error_status_raises_dispatch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "No assistant found"}})

    client = make_client(handler)
    with pytest.raises(DispatchError) as exc_info:
        await client.open_run_stream("hello")
    await client.http_client.aclose()

    assert exc_info.value.status_code == 400

@pytest.mark.asyncio
async def test_connection_failure_raises_dispatch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(DispatchError):
        await client.ask("hello")
    await client.http_client.aclose()

@pytest.mark.asyncio
async def test_empty_stream_raises_empty_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="data: [DONE]\n\n")

    client = make_client(handler)
    with pytest.raises(EmptyResponseError):
        await client.ask("hello")
    await client.http_client.aclose()
