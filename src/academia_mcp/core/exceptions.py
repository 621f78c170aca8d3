"""
Exceptions personnalisées pour Academia MCP Server.
"""
from .constants import INVALID_REQUEST, PARSE_ERROR


class AcademiaMCPError(Exception):
    """Exception de base pour toutes les erreurs du serveur."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"


class ConfigurationError(AcademiaMCPError):
    """Erreur de configuration (fichier manquant, valeur invalide)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else {}
        )


class DatabaseError(AcademiaMCPError):
    """Erreur de base de données SQLite."""

    def __init__(self, message: str, operation: str = None):
        super().__init__(
            message=message,
            code="database_error",
            details={"operation": operation} if operation else {}
        )


class EnvelopeError(AcademiaMCPError):
    """Message entrant qui ne forme pas une enveloppe JSON-RPC valide.

    `rpc_code` est le code JSON-RPC à renvoyer, `req_id` l'id brut lu dans le
    corps (None s'il n'a pas pu être lu).
    """

    rpc_code: int = INVALID_REQUEST

    def __init__(self, message: str, req_id: object = None):
        super().__init__(
            message=message,
            code="envelope_error",
            details={"rpc_code": self.rpc_code}
        )
        self.req_id = req_id


class ParseError(EnvelopeError):
    """Corps HTTP non décodable (JSON ou UTF-8 invalide)."""

    rpc_code = PARSE_ERROR


class InvalidRequestError(EnvelopeError):
    """JSON valide mais structure d'enveloppe incorrecte."""

    rpc_code = INVALID_REQUEST


class ToolArgumentError(AcademiaMCPError):
    """Arguments d'outil invalides (validation pydantic échouée)."""

    def __init__(self, message: str, tool_name: str = None):
        super().__init__(
            message=message,
            code="tool_argument_error",
            details={"tool": tool_name} if tool_name else {}
        )


class UnknownToolError(AcademiaMCPError):
    """Nom d'outil absent du catalogue."""

    def __init__(self, tool_name: str):
        super().__init__(
            message=f"Ferramenta desconhecida: {tool_name}",
            code="unknown_tool",
            details={"tool": tool_name}
        )


class ChannelClosedError(AcademiaMCPError):
    """Opération sur un canal de session déjà fermé."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Canal de session fermé: {session_id}",
            code="channel_closed",
            details={"session_id": session_id}
        )
