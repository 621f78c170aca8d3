"""
Dataclasses pour la configuration.
"""
from dataclasses import dataclass, field
from typing import Dict, Any

from ..core.constants import (
    DATABASE_FILE,
    DEFAULT_HOST,
    DEFAULT_MCP_PATH,
    DEFAULT_PORT,
    DEFAULT_SESSION_IDLE_TTL_S,
    DEFAULT_SESSION_SWEEP_INTERVAL_S,
    DEFAULT_STREAM_IDLE_TIMEOUT_S,
)


@dataclass(frozen=True)
class ServerConfig:
    """Configuration d'écoute HTTP."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    mcp_path: str = DEFAULT_MCP_PATH


@dataclass(frozen=True)
class DatabaseConfig:
    """Configuration de la base SQLite."""
    path: str = DATABASE_FILE
    seed_if_empty: bool = True


@dataclass(frozen=True)
class TransportConfig:
    """Configuration du transport Streamable HTTP.

    - `prefer_sse`: si le client accepte JSON et SSE, répondre en SSE
    - `stream_idle_timeout_s`: fin d'un flux GET sans message (0 = jamais)
    """
    prefer_sse: bool = True
    stream_idle_timeout_s: float = DEFAULT_STREAM_IDLE_TIMEOUT_S

    @property
    def stream_idle_timeout(self):
        """Timeout utilisable par asyncio (None si désactivé)."""
        return self.stream_idle_timeout_s if self.stream_idle_timeout_s > 0 else None


@dataclass(frozen=True)
class SessionConfig:
    """Configuration de l'expiration des sessions inactives."""
    idle_ttl_s: int = DEFAULT_SESSION_IDLE_TTL_S
    sweep_interval_s: int = DEFAULT_SESSION_SWEEP_INTERVAL_S

    @property
    def expiry_enabled(self) -> bool:
        return self.idle_ttl_s > 0


@dataclass(frozen=True)
class Settings:
    """Configuration globale de l'application."""
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Vue sérialisable (pour les logs de démarrage)."""
        return {
            "server": vars(self.server),
            "database": vars(self.database),
            "transport": vars(self.transport),
            "sessions": vars(self.sessions),
        }
