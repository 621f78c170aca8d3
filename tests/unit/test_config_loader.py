"""Tests unitaires: Chargement de la configuration (TOML + env).

Notes:
    - Priorité: env > toml > défauts
    - Les entiers invalides retombent sur le défaut, les hors-bornes sont bornés
"""

from __future__ import annotations

import pytest

from academia_mcp.config import loader
from academia_mcp.config.loader import (
    get_server_config,
    get_session_config,
    get_transport_config,
    load_config,
    load_settings,
    settings_from_config,
)
from academia_mcp.config.settings import Settings
from academia_mcp.core.exceptions import ConfigurationError

_ENV_VARS = [
    "ACADEMIA_MCP_HOST",
    "ACADEMIA_MCP_PORT",
    "ACADEMIA_MCP_DB",
    "ACADEMIA_MCP_PREFER_SSE",
    "ACADEMIA_MCP_STREAM_IDLE_TIMEOUT_S",
    "ACADEMIA_MCP_SESSION_TTL_S",
]


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    loader._clear_config_cache()
    yield
    loader._clear_config_cache()


def _write(tmp_path, text: str) -> str:
    path = tmp_path / "config.toml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_empty_config_gives_defaults() -> None:
    assert settings_from_config({}) == Settings()


def test_sections_are_parsed(tmp_path) -> None:
    path = _write(
        tmp_path,
        """
[server]
host = "127.0.0.1"
port = 8080
mcp_path = "rpc/"

[database]
path = "/tmp/gym.sqlite3"
seed_if_empty = false

[transport]
prefer_sse = false
stream_idle_timeout_s = 15

[sessions]
idle_ttl_s = 600
sweep_interval_s = 10
""",
    )
    settings = load_settings(path)

    assert settings.server.host == "127.0.0.1"
    assert settings.server.port == 8080
    assert settings.server.mcp_path == "/rpc"
    assert settings.database.path == "/tmp/gym.sqlite3"
    assert settings.database.seed_if_empty is False
    assert settings.transport.prefer_sse is False
    assert settings.transport.stream_idle_timeout == 15
    assert settings.sessions.idle_ttl_s == 600
    assert settings.sessions.expiry_enabled


def test_invalid_values_fall_back_or_are_clamped() -> None:
    server = get_server_config({"server": {"port": 999999, "host": "  ", "mcp_path": ""}})
    assert server.port == 65535
    assert server.host == "0.0.0.0"
    assert server.mcp_path == "/mcp"

    transport = get_transport_config({"transport": {"stream_idle_timeout_s": "abc", "prefer_sse": "maybe"}})
    assert transport.stream_idle_timeout_s == 300
    assert transport.prefer_sse is True

    sessions = get_session_config({"sessions": {"idle_ttl_s": -5, "sweep_interval_s": 0}})
    assert sessions.idle_ttl_s == 0
    assert sessions.expiry_enabled is False
    assert sessions.sweep_interval_s == 1


def test_zero_idle_timeout_disables_stream_timeout() -> None:
    transport = get_transport_config({"transport": {"stream_idle_timeout_s": 0}})
    assert transport.stream_idle_timeout is None


def test_env_overrides_toml(tmp_path, monkeypatch) -> None:
    path = _write(tmp_path, '[server]\nport = 8080\n\n[database]\npath = "from-toml.sqlite3"\n')
    monkeypatch.setenv("ACADEMIA_MCP_PORT", "9000")
    monkeypatch.setenv("ACADEMIA_MCP_DB", "from-env.sqlite3")
    monkeypatch.setenv("ACADEMIA_MCP_PREFER_SSE", "off")
    monkeypatch.setenv("ACADEMIA_MCP_SESSION_TTL_S", "120")

    settings = load_settings(path)

    assert settings.server.port == 9000
    assert settings.database.path == "from-env.sqlite3"
    assert settings.transport.prefer_sse is False
    assert settings.sessions.idle_ttl_s == 120


def test_env_var_expansion_in_toml(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("GYM_DB_DIR", "/data")
    path = _write(tmp_path, '[database]\npath = "${GYM_DB_DIR}/academia.sqlite3"\n')

    assert load_settings(path).database.path == "/data/academia.sqlite3"


def test_explicit_missing_path_raises(tmp_path) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(str(tmp_path / "absent.toml"))
    assert exc_info.value.code == "config_error"


def test_invalid_toml_raises(tmp_path) -> None:
    path = _write(tmp_path, "[server\nport = ")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_missing_default_config_fails_open(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(loader, "default_config_path", lambda: str(tmp_path / "absent.toml"))
    monkeypatch.setenv("ACADEMIA_MCP_HOST", "localhost")

    settings = load_settings()

    assert settings.server.host == "localhost"
    assert settings.server.port == 3002
