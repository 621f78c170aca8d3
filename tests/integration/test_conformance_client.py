"""Tests d'intégration: Client MCP et suite de conformité contre l'application ASGI."""

from __future__ import annotations

from dataclasses import replace

import httpx
import pytest
from fastapi import FastAPI

import academia_mcp.client.__main__ as check_cli
from academia_mcp.client import MCPClientError, MCPHTTPClient, MCPProtocolError, parse_sse_payload, run_conformance_suite
from academia_mcp.client.conformance import ConformanceSuite
from academia_mcp.config.settings import Settings
from academia_mcp.main import create_app

pytestmark = pytest.mark.integration

EXPECTED_CHECKS = [
    "Health Check",
    "Initialize",
    "List Tools",
    "Call Tool (sans arguments)",
    "Call Tool (avec arguments)",
    "List Resources",
    "SSE Stream",
    "Session Reuse",
    "Invalid Session",
]


@pytest.mark.asyncio
async def test_conformance_suite_passes_against_app(async_client: httpx.AsyncClient) -> None:
    results = await run_conformance_suite("http://test", http_client=async_client)

    assert [name for name, _ in results] == EXPECTED_CHECKS
    assert all(passed for _, passed in results), results


@pytest.mark.asyncio
async def test_conformance_suite_with_sse_responses(settings: Settings) -> None:
    app = create_app(replace(settings, transport=replace(settings.transport, prefer_sse=True)))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        results = await run_conformance_suite("http://test/", http_client=client)

    assert all(passed for _, passed in results), results


@pytest.mark.asyncio
async def test_client_tracks_session_from_initialize(async_client: httpx.AsyncClient, app: FastAPI) -> None:
    client = MCPHTTPClient("http://test/mcp", http_client=async_client)
    assert client.session_id is None

    await client.initialize()
    session_id = client.session_id
    assert session_id in app.state.services.registry

    await client.list_tools()
    assert client.session_id == session_id
    assert len(app.state.services.registry) == 1

    # Client injecté: non fermé par close()
    await client.close()
    assert not async_client.is_closed


@pytest.mark.asyncio
async def test_client_raises_on_rpc_error(async_client: httpx.AsyncClient) -> None:
    client = MCPHTTPClient("http://test/mcp", http_client=async_client)

    with pytest.raises(MCPClientError) as exc_info:
        await client.list_tools()

    assert exc_info.value.rpc_error["code"] == -32000
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_failed_checks_are_reported_not_raised(async_client: httpx.AsyncClient) -> None:
    results = dict(await run_conformance_suite("http://test", mcp_path="/absent", http_client=async_client))

    assert results["Health Check"] is True
    assert results["Initialize"] is False
    assert results["SSE Stream"] is False
    assert results["Invalid Session"] is False


@pytest.mark.asyncio
async def test_invalid_session_check_rejects_non_rpc_error_body(async_client: httpx.AsyncClient) -> None:
    suite = ConformanceSuite(MCPHTTPClient("http://test/absent", http_client=async_client), "http://test/health")

    assert await suite.check_invalid_session() is False


@pytest.mark.asyncio
async def test_unexpected_check_exception_counts_as_failure(async_client: httpx.AsyncClient, monkeypatch) -> None:
    suite = ConformanceSuite(MCPHTTPClient("http://test/mcp", http_client=async_client), "http://test/health")

    async def _broken() -> bool:
        raise KeyError("result")

    monkeypatch.setattr(suite, "check_list_tools", _broken)
    results = dict(await suite.run())

    assert results["List Tools"] is False
    assert results["Initialize"] is True
    assert results["Invalid Session"] is True


def test_parse_sse_payload() -> None:
    assert parse_sse_payload('event: message\ndata: {"id": 1}\n\n') == {"id": 1}
    assert parse_sse_payload(": keep-alive\n\n") is None


def test_decode_response_rejects_empty_stream() -> None:
    response = httpx.Response(200, headers={"content-type": "text/event-stream"}, text=": rien\n\n")
    with pytest.raises(MCPProtocolError):
        MCPHTTPClient.decode_response(response)


def test_check_cli_exit_code(monkeypatch, capsys) -> None:
    async def _results(url, mcp_path):
        return [("Health Check", True), ("Initialize", False)]

    monkeypatch.setattr(check_cli, "run_conformance_suite", _results)

    with pytest.raises(SystemExit) as exc_info:
        check_cli.main(["--url", "http://localhost:3002"])

    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert "1/2" in out


def test_check_cli_success(monkeypatch) -> None:
    async def _results(url, mcp_path):
        return [("Health Check", True)]

    monkeypatch.setattr(check_cli, "run_conformance_suite", _results)
    check_cli.main([])
