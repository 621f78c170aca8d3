"""academia_mcp.config.loader

Chargement de la configuration TOML.

Règle de priorité (appliquée dans `load_settings`):
- env > toml > valeurs par défaut
- une valeur invalide retombe sur la valeur par défaut, les entiers sont bornés
"""
import logging
import os
import re
from dataclasses import replace
from pathlib import Path
from typing import Dict, Any, Optional

from ..core.exceptions import ConfigurationError
from .settings import DatabaseConfig, ServerConfig, SessionConfig, Settings, TransportConfig

logger = logging.getLogger(__name__)

# Cache global de configuration
_config_cache: Optional[Dict[str, Any]] = None


def _expand_env_vars(obj: Any) -> Any:
    """
    Récursivement étend les variables d'environnement ${VAR} dans la config.

    Args:
        obj: Valeur à traiter (str, dict, list)

    Returns:
        Valeur avec variables d'environnement expansées
    """
    if isinstance(obj, str):
        def replace_env_var(match):
            var_name = match.group(1)
            return os.environ.get(var_name, match.group(0))
        return re.sub(r'\$\{([^}]+)\}', replace_env_var, obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


def _clear_config_cache():
    """Vide le cache de configuration."""
    global _config_cache
    _config_cache = None


def default_config_path() -> str:
    """Chemin de `config.toml` à la racine du projet (parent de src/)."""
    # Structure: project/src/academia_mcp/config/loader.py
    current_file = os.path.abspath(__file__)
    project_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(current_file))))
    return os.path.join(project_dir, "config.toml")


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Charge la configuration depuis config.toml.

    Args:
        config_path: Chemin vers le fichier config (optionnel)

    Returns:
        Dictionnaire de configuration

    Raises:
        ConfigurationError: Si le fichier n'existe pas ou est invalide
    """
    global _config_cache

    if _config_cache is not None:
        return _config_cache

    if config_path is None:
        config_path = default_config_path()

    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(
            message=f"Fichier de configuration non trouvé: {config_path}",
            config_key="config_path"
        )

    try:
        import tomllib
    except ImportError:
        import tomli as tomllib

    try:
        with open(path, "rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            message=f"config.toml invalide: {e}",
            config_key="config_path"
        ) from e

    _config_cache = _expand_env_vars(raw_config)
    return _config_cache


def reload_config(config_path: str = None) -> Dict[str, Any]:
    """
    Recharge la configuration depuis le fichier.

    Returns:
        Nouvelle configuration chargée
    """
    _clear_config_cache()
    return load_config(config_path)


def get_config() -> Dict[str, Any]:
    """
    Retourne la configuration en cache (la charge si nécessaire).

    Returns:
        Dictionnaire de configuration
    """
    if _config_cache is None:
        return load_config()
    return _config_cache


# ============================================================================
# Parsing des sections
# ============================================================================

def _clamp_int(value: object, *, default: int, min_value: int, max_value: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        v = value
    elif isinstance(value, float) and not isinstance(value, bool):
        v = int(value)
    elif isinstance(value, str):
        try:
            v = int(value.strip())
        except ValueError:
            return default
    else:
        return default
    if v < min_value:
        return min_value
    if v > max_value:
        return max_value
    return v


def _parse_bool(value: object, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    return default


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    obj = config.get(name)
    return obj if isinstance(obj, dict) else {}


def get_server_config(config: Dict[str, Any]) -> ServerConfig:
    """Charge la section `[server]`."""
    defaults = ServerConfig()
    obj = _section(config, "server")

    host = obj.get("host", defaults.host)
    if not isinstance(host, str) or not host.strip():
        host = defaults.host

    mcp_path = obj.get("mcp_path", defaults.mcp_path)
    if not isinstance(mcp_path, str) or not mcp_path.strip():
        mcp_path = defaults.mcp_path
    if not mcp_path.startswith("/"):
        mcp_path = "/" + mcp_path

    return ServerConfig(
        host=host.strip(),
        port=_clamp_int(obj.get("port", defaults.port), default=defaults.port, min_value=1, max_value=65535),
        mcp_path=mcp_path.rstrip("/") or defaults.mcp_path,
    )


def get_database_config(config: Dict[str, Any]) -> DatabaseConfig:
    """Charge la section `[database]`."""
    defaults = DatabaseConfig()
    obj = _section(config, "database")

    path = obj.get("path", defaults.path)
    if not isinstance(path, str) or not path.strip():
        path = defaults.path

    return DatabaseConfig(
        path=path.strip(),
        seed_if_empty=_parse_bool(obj.get("seed_if_empty"), default=defaults.seed_if_empty),
    )


def get_transport_config(config: Dict[str, Any]) -> TransportConfig:
    """Charge la section `[transport]`."""
    defaults = TransportConfig()
    obj = _section(config, "transport")
    return TransportConfig(
        prefer_sse=_parse_bool(obj.get("prefer_sse"), default=defaults.prefer_sse),
        stream_idle_timeout_s=_clamp_int(
            obj.get("stream_idle_timeout_s", defaults.stream_idle_timeout_s),
            default=int(defaults.stream_idle_timeout_s),
            min_value=0,
            max_value=86_400,
        ),
    )


def get_session_config(config: Dict[str, Any]) -> SessionConfig:
    """Charge la section `[sessions]`."""
    defaults = SessionConfig()
    obj = _section(config, "sessions")
    return SessionConfig(
        idle_ttl_s=_clamp_int(
            obj.get("idle_ttl_s", defaults.idle_ttl_s),
            default=defaults.idle_ttl_s,
            min_value=0,
            max_value=7 * 86_400,
        ),
        sweep_interval_s=_clamp_int(
            obj.get("sweep_interval_s", defaults.sweep_interval_s),
            default=defaults.sweep_interval_s,
            min_value=1,
            max_value=3600,
        ),
    )


def _apply_env_overrides(settings: Settings) -> Settings:
    """Applique les variables d'environnement `ACADEMIA_MCP_*` (priorité max)."""
    server = settings.server
    database = settings.database
    transport = settings.transport
    sessions = settings.sessions

    host = (os.getenv("ACADEMIA_MCP_HOST") or "").strip()
    if host:
        server = replace(server, host=host)

    port = os.getenv("ACADEMIA_MCP_PORT")
    if port is not None:
        server = replace(server, port=_clamp_int(port, default=server.port, min_value=1, max_value=65535))

    db_path = (os.getenv("ACADEMIA_MCP_DB") or "").strip()
    if db_path:
        database = replace(database, path=db_path)

    prefer_sse = os.getenv("ACADEMIA_MCP_PREFER_SSE")
    if prefer_sse is not None:
        transport = replace(transport, prefer_sse=_parse_bool(prefer_sse, default=transport.prefer_sse))

    idle_timeout = os.getenv("ACADEMIA_MCP_STREAM_IDLE_TIMEOUT_S")
    if idle_timeout is not None:
        transport = replace(
            transport,
            stream_idle_timeout_s=_clamp_int(
                idle_timeout, default=int(transport.stream_idle_timeout_s), min_value=0, max_value=86_400
            ),
        )

    ttl = os.getenv("ACADEMIA_MCP_SESSION_TTL_S")
    if ttl is not None:
        sessions = replace(
            sessions,
            idle_ttl_s=_clamp_int(ttl, default=sessions.idle_ttl_s, min_value=0, max_value=7 * 86_400),
        )

    return Settings(server=server, database=database, transport=transport, sessions=sessions)


def settings_from_config(config: Dict[str, Any]) -> Settings:
    """Construit les `Settings` depuis un dictionnaire déjà chargé (sans env)."""
    return Settings(
        server=get_server_config(config),
        database=get_database_config(config),
        transport=get_transport_config(config),
        sessions=get_session_config(config),
    )


def load_settings(config_path: str = None) -> Settings:
    """
    Charge les `Settings` complets: TOML puis surcharges d'environnement.

    Un `config.toml` absent au chemin par défaut n'est pas bloquant (fail-open
    sur les valeurs par défaut). Un chemin explicite introuvable l'est.

    Raises:
        ConfigurationError: Si `config_path` est fourni et invalide
    """
    try:
        config = reload_config(config_path)
    except ConfigurationError as e:
        if config_path is not None:
            raise
        logger.warning("Configuration par défaut utilisée: %s", e.message)
        config = {}

    return _apply_env_overrides(settings_from_config(config))
