from __future__ import annotations

import json

import pytest

from academia_mcp.core.exceptions import InvalidRequestError, ParseError
from academia_mcp.transport.envelope import jsonrpc_error, jsonrpc_notification, jsonrpc_result, parse_envelope


def _raw(obj: object) -> bytes:
    return json.dumps(obj).encode("utf-8")


def test_parse_valid_request_keeps_raw_body() -> None:
    raw = _raw({"jsonrpc": "2.0", "id": 7, "method": "tools/list", "params": {"cursor": None}})
    parsed = parse_envelope(raw)

    assert parsed.raw == raw
    assert parsed.req_id == 7
    assert parsed.envelope.method == "tools/list"
    assert parsed.envelope.params == {"cursor": None}
    assert parsed.envelope.is_notification is False


def test_string_id_and_missing_params() -> None:
    parsed = parse_envelope(_raw({"jsonrpc": "2.0", "id": "abc", "method": "ping"}))
    assert parsed.req_id == "abc"
    assert parsed.envelope.params == {}


def test_null_params_become_empty_object() -> None:
    parsed = parse_envelope(_raw({"jsonrpc": "2.0", "id": 1, "method": "ping", "params": None}))
    assert parsed.envelope.params == {}


def test_request_without_id_is_notification() -> None:
    parsed = parse_envelope(_raw({"jsonrpc": "2.0", "method": "notifications/initialized"}))
    assert parsed.envelope.is_notification is True
    assert parsed.req_id is None


@pytest.mark.parametrize("raw", [b"{not json", b"\xff\xfe", b""])
def test_undecodable_body_is_parse_error(raw: bytes) -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_envelope(raw)
    assert exc_info.value.rpc_code == -32700
    assert exc_info.value.req_id is None


def test_non_object_body_is_invalid_request() -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        parse_envelope(b"[1, 2, 3]")
    assert exc_info.value.rpc_code == -32600
    assert exc_info.value.req_id is None


def test_wrong_version_echoes_readable_id() -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        parse_envelope(_raw({"jsonrpc": "1.0", "id": 5, "method": "ping"}))
    assert exc_info.value.req_id == 5


@pytest.mark.parametrize(
    "body",
    [
        {"jsonrpc": "2.0", "id": 1},
        {"jsonrpc": "2.0", "id": 1, "method": ""},
        {"jsonrpc": "2.0", "id": 1, "method": 42},
        {"jsonrpc": "2.0", "id": 1, "method": "ping", "params": [1, 2]},
        {"id": 1, "method": "ping"},
    ],
)
def test_malformed_envelopes_are_rejected(body: dict) -> None:
    with pytest.raises(InvalidRequestError):
        parse_envelope(_raw(body))


@pytest.mark.parametrize("bad_id", [{"a": 1}, [1], True])
def test_unusable_id_is_not_echoed(bad_id: object) -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        parse_envelope(_raw({"jsonrpc": "2.0", "id": bad_id, "method": "ping"}))
    assert exc_info.value.req_id is None


def test_null_id_rejected_for_requests_only() -> None:
    with pytest.raises(InvalidRequestError):
        parse_envelope(_raw({"jsonrpc": "2.0", "id": None, "method": "tools/list"}))

    parsed = parse_envelope(_raw({"jsonrpc": "2.0", "id": None, "method": "notifications/cancelled"}))
    assert parsed.req_id is None


def test_response_builders_are_exclusive() -> None:
    err = jsonrpc_error(code=-32601, req_id=3, data={"method": "x"})
    assert err == {
        "jsonrpc": "2.0",
        "id": 3,
        "error": {"code": -32601, "message": "Method not found", "data": {"method": "x"}},
    }
    assert "result" not in err

    ok = jsonrpc_result(req_id="r", result={"tools": []})
    assert ok == {"jsonrpc": "2.0", "id": "r", "result": {"tools": []}}
    assert "error" not in ok

    note = jsonrpc_notification(method="notifications/message", params={"level": "info"})
    assert "id" not in note
    assert note["method"] == "notifications/message"


def test_session_error_message() -> None:
    err = jsonrpc_error(code=-32000, req_id=None)
    assert err["error"]["message"] == "Bad Request: No valid session ID provided"
    assert err["id"] is None


@pytest.mark.parametrize(
    "raw",
    [
        b'{"jsonrpc": "2.0", "id": NaN, "method": "initialize"}',
        b'{"jsonrpc": "2.0", "id": 1, "method": "ping", "params": {"x": Infinity}}',
        b'{"jsonrpc": "2.0", "id": -Infinity, "method": "ping"}',
        b'{"jsonrpc": "2.0", "id": 1e999, "method": "ping"}',
    ],
)
def test_non_finite_numbers_are_parse_errors(raw: bytes) -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_envelope(raw)
    assert exc_info.value.rpc_code == -32700
    assert exc_info.value.req_id is None


def test_deeply_nested_body_is_parse_error() -> None:
    raw = b"[" * 200_000 + b"]" * 200_000
    with pytest.raises(ParseError):
        parse_envelope(raw)


def test_finite_float_id_is_kept() -> None:
    assert parse_envelope(b'{"jsonrpc": "2.0", "id": 1.5, "method": "ping"}').req_id == 1.5
