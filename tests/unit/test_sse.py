from __future__ import annotations

import json

import pytest

from academia_mcp.transport.sse import (
    accepts_event_stream,
    format_sse_comment,
    format_sse_event,
    negotiate_response_mode,
)


def test_event_frame_has_single_data_line() -> None:
    frame = format_sse_event({"jsonrpc": "2.0", "id": 1, "result": {"text": "linha 1\nlinha 2"}})
    text = frame.decode("utf-8")

    assert text.startswith("event: message\n")
    assert text.endswith("\n\n")
    data_lines = [line for line in text.splitlines() if line.startswith("data:")]
    assert len(data_lines) == 1
    assert json.loads(data_lines[0][len("data: "):])["result"]["text"] == "linha 1\nlinha 2"


def test_event_frame_keeps_non_ascii() -> None:
    frame = format_sse_event({"text": "Exercícios"})
    assert "Exercícios" in frame.decode("utf-8")


def test_comment_frame() -> None:
    assert format_sse_comment("keep-alive") == b": keep-alive\n\n"


@pytest.mark.parametrize(
    ("accept", "prefer_sse", "expected"),
    [
        ("", True, "json"),
        ("*/*", True, "json"),
        ("application/json", True, "json"),
        ("text/event-stream", False, "sse"),
        ("application/json, text/event-stream", True, "sse"),
        ("application/json, text/event-stream", False, "json"),
        ("text/event-stream;q=0.9, */*;q=0.1", False, "json"),
        ("TEXT/EVENT-STREAM", False, "sse"),
    ],
)
def test_negotiate_response_mode(accept: str, prefer_sse: bool, expected: str) -> None:
    assert negotiate_response_mode(accept, prefer_sse) == expected


def test_accepts_event_stream() -> None:
    assert accepts_event_stream("application/json, text/event-stream")
    assert not accepts_event_stream("application/json")
    assert not accepts_event_stream(None)
