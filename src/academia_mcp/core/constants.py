"""
Constantes globales pour Academia MCP Server.
"""

# ============================================================================
# SERVEUR
# ============================================================================
SERVER_NAME = "academia-mcp"
SERVER_VERSION = "1.0.0"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3002
DEFAULT_MCP_PATH = "/mcp"
HEALTH_PATH = "/health"

# ============================================================================
# BASE DE DONNÉES
# ============================================================================
DATABASE_FILE = "./academia.sqlite3"
EXERCISES_VIEW = "exercios_vw"

# ============================================================================
# PROTOCOLE MCP / JSON-RPC
# ============================================================================
JSONRPC_VERSION = "2.0"
DEFAULT_MCP_PROTOCOL_VERSION = "2024-11-05"
MCP_SESSION_ID_HEADER = "mcp-session-id"
INITIALIZE_METHOD = "initialize"
NOTIFICATION_PREFIX = "notifications/"

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_SSE = "text/event-stream"

# Codes d'erreur JSON-RPC (à reproduire exactement pour la compatibilité client)
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
INVALID_SESSION = -32000
RESOURCE_NOT_FOUND = -32002

ERROR_MESSAGES = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    INVALID_PARAMS: "Invalid params",
    INTERNAL_ERROR: "Internal error",
    INVALID_SESSION: "Bad Request: No valid session ID provided",
    RESOURCE_NOT_FOUND: "Resource not found",
}

# ============================================================================
# TRANSPORT / SESSIONS
# ============================================================================
DEFAULT_STREAM_IDLE_TIMEOUT_S = 300
DEFAULT_SESSION_IDLE_TTL_S = 0  # 0 = jamais d'expiration
DEFAULT_SESSION_SWEEP_INTERVAL_S = 30
