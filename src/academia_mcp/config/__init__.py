"""
Configuration d'Academia MCP Server.
"""

from .loader import load_config, reload_config, get_config, load_settings, settings_from_config
from .settings import Settings, ServerConfig, DatabaseConfig, TransportConfig, SessionConfig

__all__ = [
    "load_config",
    "reload_config",
    "get_config",
    "load_settings",
    "settings_from_config",
    "Settings",
    "ServerConfig",
    "DatabaseConfig",
    "TransportConfig",
    "SessionConfig",
]
