"""
Cœur métier d'Academia MCP Server.
Modules indépendants sans dépendances externes au package.
"""

from .exceptions import (
    AcademiaMCPError,
    ConfigurationError,
    DatabaseError,
    EnvelopeError,
    ParseError,
    InvalidRequestError,
    ToolArgumentError,
    UnknownToolError,
    ChannelClosedError,
)
from .constants import (
    SERVER_NAME,
    SERVER_VERSION,
    DATABASE_FILE,
    JSONRPC_VERSION,
    MCP_SESSION_ID_HEADER,
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    INVALID_SESSION,
)
from .models import Exercicio, ToolDescriptor, ResourceDescriptor, ToolResult

__all__ = [
    # Exceptions
    "AcademiaMCPError",
    "ConfigurationError",
    "DatabaseError",
    "EnvelopeError",
    "ParseError",
    "InvalidRequestError",
    "ToolArgumentError",
    "UnknownToolError",
    "ChannelClosedError",
    # Constants
    "SERVER_NAME",
    "SERVER_VERSION",
    "DATABASE_FILE",
    "JSONRPC_VERSION",
    "MCP_SESSION_ID_HEADER",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "INVALID_SESSION",
    # Models
    "Exercicio",
    "ToolDescriptor",
    "ResourceDescriptor",
    "ToolResult",
]
