"""
Client MCP Streamable HTTP et suite de conformité.
"""
from .conformance import ConformanceSuite, run_conformance_suite
from .http_client import MCPClientError, MCPHTTPClient, MCPProtocolError, parse_sse_payload

__all__ = [
    "MCPHTTPClient",
    "MCPClientError",
    "MCPProtocolError",
    "parse_sse_payload",
    "ConformanceSuite",
    "run_conformance_suite",
]
