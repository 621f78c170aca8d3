"""
Configuration des tests pytest.
"""
import os
import sys
from typing import AsyncGenerator

import httpx
import pytest
from fastapi import FastAPI

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from academia_mcp.config.settings import DatabaseConfig, SessionConfig, Settings, TransportConfig  # noqa: E402
from academia_mcp.core.database import init_database, seed_database  # noqa: E402
from academia_mcp.main import create_app  # noqa: E402


@pytest.fixture
def db_path(tmp_path) -> str:
    """Base SQLite temporaire peuplée avec le catalogue de départ."""
    path = str(tmp_path / "academia.sqlite3")
    init_database(path)
    seed_database(path)
    return path


@pytest.fixture
def settings(db_path: str) -> Settings:
    """Réponses JSON par défaut et flux GET courts (l'ASGITransport attend la fin du flux)."""
    return Settings(
        database=DatabaseConfig(path=db_path, seed_if_empty=True),
        transport=TransportConfig(prefer_sse=False, stream_idle_timeout_s=0.2),
        sessions=SessionConfig(idle_ttl_s=0),
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
