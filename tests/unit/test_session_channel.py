from __future__ import annotations

import json

import pytest
from fastapi.responses import JSONResponse, StreamingResponse

from academia_mcp.core.exceptions import ChannelClosedError
from academia_mcp.core.models import ResourceDescriptor, ToolDescriptor, ToolResult
from academia_mcp.features.dispatcher import MethodDispatcher
from academia_mcp.transport.channel import SessionChannel
from academia_mcp.transport.envelope import jsonrpc_notification, parse_envelope


class _EchoTools:
    def list_tools(self):
        return [ToolDescriptor(name="echo", description="Echo")]

    def list_resources(self):
        return [ResourceDescriptor(uri="mem://x", name="x", description="x")]

    def call_tool(self, name, arguments):
        return ToolResult.text(json.dumps(arguments))

    def read_resource(self, uri):
        return None

    def close(self):
        pass


def _channel(**kwargs) -> SessionChannel:
    return SessionChannel("sess-1", MethodDispatcher(_EchoTools()), **kwargs)


def _request(body: dict):
    return parse_envelope(json.dumps(body).encode("utf-8"))


def _frames(chunks: list) -> list[dict]:
    text = b"".join(chunks).decode("utf-8")
    return [json.loads(line[len("data: "):]) for line in text.splitlines() if line.startswith("data: ")]


def test_post_json_mode_returns_dispatch_result() -> None:
    channel = _channel()
    response = channel.handle_post(_request({"jsonrpc": "2.0", "id": 4, "method": "tools/list"}), "json")

    assert isinstance(response, JSONResponse)
    body = json.loads(response.body)
    assert body["id"] == 4
    assert body["result"]["tools"][0]["name"] == "echo"


def test_post_unknown_method_is_jsonrpc_error() -> None:
    channel = _channel()
    response = channel.handle_post(_request({"jsonrpc": "2.0", "id": "m", "method": "nope"}), "json")

    assert response.status_code == 200
    body = json.loads(response.body)
    assert body["error"]["code"] == -32601
    assert "result" not in body


def test_notification_gets_empty_202() -> None:
    channel = _channel()
    response = channel.handle_post(_request({"jsonrpc": "2.0", "method": "notifications/initialized"}), "sse")

    assert response.status_code == 202
    assert response.body == b""


@pytest.mark.asyncio
async def test_post_sse_mode_emits_one_frame() -> None:
    channel = _channel()
    response = channel.handle_post(
        _request({"jsonrpc": "2.0", "id": 9, "method": "tools/call", "params": {"name": "echo", "arguments": {"a": 1}}}),
        "sse",
    )

    assert isinstance(response, StreamingResponse)
    assert response.media_type == "text/event-stream"
    chunks = [chunk async for chunk in response.body_iterator]
    frames = _frames(chunks)
    assert len(frames) == 1
    assert frames[0]["id"] == 9
    assert frames[0]["result"]["content"][0]["text"] == '{"a": 1}'


def test_post_on_closed_channel_raises() -> None:
    channel = _channel()
    channel.close()
    with pytest.raises(ChannelClosedError):
        channel.handle_post(_request({"jsonrpc": "2.0", "id": 1, "method": "ping"}), "json")
    with pytest.raises(ChannelClosedError):
        channel.attach_stream()


def test_push_without_stream_is_dropped() -> None:
    channel = _channel()
    assert channel.has_stream is False
    assert channel.push(jsonrpc_notification(method="notifications/message")) is False


@pytest.mark.asyncio
async def test_pushed_messages_reach_attached_stream() -> None:
    channel = _channel()
    response = channel.attach_stream()

    assert response.headers["mcp-session-id"] == "sess-1"
    assert channel.has_stream
    assert channel.push(jsonrpc_notification(method="notifications/message", params={"n": 1}))
    assert channel.push(jsonrpc_notification(method="notifications/message", params={"n": 2}))
    channel.close()

    chunks = [chunk async for chunk in response.body_iterator]
    assert [f["params"]["n"] for f in _frames(chunks)] == [1, 2]
    assert channel.has_stream is False


@pytest.mark.asyncio
async def test_new_attach_supersedes_previous_stream() -> None:
    channel = _channel()
    first = channel.attach_stream()
    second = channel.attach_stream()

    # Le premier flux se termine sans message
    assert [chunk async for chunk in first.body_iterator] == []

    assert channel.push({"jsonrpc": "2.0", "method": "notifications/message"})
    frame = await second.body_iterator.__anext__()
    assert b"notifications/message" in frame

    channel.close()
    with pytest.raises(StopAsyncIteration):
        await second.body_iterator.__anext__()


@pytest.mark.asyncio
async def test_idle_stream_ends_after_timeout() -> None:
    channel = _channel(stream_idle_timeout=0.05)
    response = channel.attach_stream()

    assert [chunk async for chunk in response.body_iterator] == []
    assert channel.has_stream is False
    assert channel.closed is False


def test_close_is_idempotent() -> None:
    channel = _channel()
    assert channel.close() is True
    assert channel.close() is False
    assert channel.closed
