"""
Transport Streamable HTTP: validation d'enveloppe, canaux et registre de
sessions, arrêt coordonné.
"""

from .envelope import ParsedRequest, RequestEnvelope, jsonrpc_error, jsonrpc_notification, jsonrpc_result, parse_envelope
from .channel import SessionChannel
from .registry import (
    Session,
    SessionCreated,
    SessionRegistry,
    SessionRejected,
    SessionReused,
    generate_session_id,
)
from .shutdown import ShutdownCoordinator, ShutdownState
from .sse import format_sse_event, negotiate_response_mode

__all__ = [
    "ParsedRequest",
    "RequestEnvelope",
    "jsonrpc_error",
    "jsonrpc_notification",
    "jsonrpc_result",
    "parse_envelope",
    "SessionChannel",
    "Session",
    "SessionCreated",
    "SessionRegistry",
    "SessionRejected",
    "SessionReused",
    "generate_session_id",
    "ShutdownCoordinator",
    "ShutdownState",
    "format_sse_event",
    "negotiate_response_mode",
]
