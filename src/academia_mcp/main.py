"""
Academia MCP Server - Application FastAPI Factory.
Serveur MCP Streamable HTTP (JSON-RPC 2.0 + SSE) sur un catalogue d'exercices SQLite.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.dependencies import AppServices
from .api.router import create_api_router
from .config.loader import load_settings
from .config.settings import Settings
from .core.constants import MCP_SESSION_ID_HEADER, SERVER_NAME, SERVER_VERSION
from .core.database import ExerciseRepository, init_database, seed_database
from .features.dispatcher import MethodDispatcher, ToolRegistry
from .features.exercises import ExerciseToolRegistry
from .services.session_reaper import SessionReaper
from .transport.channel import SessionChannel
from .transport.registry import SessionRegistry
from .transport.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)


def build_services(settings: Settings, tool_registry: Optional[ToolRegistry] = None) -> AppServices:
    """
    Construit le graphe de services d'une application (aucun état global).

    Args:
        settings: Configuration complète
        tool_registry: Registre d'outils à utiliser (défaut: catalogue SQLite)
    """
    tools = tool_registry if tool_registry is not None else ExerciseToolRegistry(ExerciseRepository(settings.database.path))
    dispatcher = MethodDispatcher(tools, server_name=SERVER_NAME, server_version=SERVER_VERSION)

    def channel_factory(session_id: str) -> SessionChannel:
        return SessionChannel(
            session_id,
            dispatcher,
            stream_idle_timeout=settings.transport.stream_idle_timeout,
        )

    registry = SessionRegistry(channel_factory)
    return AppServices(
        settings=settings,
        tools=tools,
        dispatcher=dispatcher,
        registry=registry,
        coordinator=ShutdownCoordinator(registry, dispatcher),
        reaper=SessionReaper(registry, settings.sessions),
    )


def create_app(settings: Optional[Settings] = None, *, tool_registry: Optional[ToolRegistry] = None) -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Returns:
        Instance configurée de FastAPI
    """
    cfg = settings or load_settings()
    services = build_services(cfg, tool_registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        # Startup
        await _startup(app)
        yield
        # Shutdown
        await _shutdown(app)

    app = FastAPI(
        title="Academia MCP Server",
        description="Serveur MCP Streamable HTTP pour un catalogue d'exercices de musculation",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS (l'en-tête de session doit rester lisible par les clients navigateur)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[MCP_SESSION_ID_HEADER],
    )

    app.include_router(create_api_router(cfg.server.mcp_path))

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                content={"error": "Not Found", "path": request.url.path},
                status_code=404,
            )
        return await http_exception_handler(request, exc)

    return app


async def _startup(app: FastAPI):
    """Initialisation au démarrage."""
    services: AppServices = app.state.services
    settings = services.settings

    if isinstance(services.tools, ExerciseToolRegistry):
        init_database(settings.database.path)
        if settings.database.seed_if_empty:
            seed_database(settings.database.path)

    services.coordinator.bind_loop(asyncio.get_running_loop())
    await services.reaper.start()

    logger.info(
        "Serveur MCP prêt sur %s (méthodes: %s)",
        settings.server.mcp_path,
        ", ".join(services.dispatcher.methods),
    )


async def _shutdown(app: FastAPI):
    """Arrêt de l'application (idempotent vis-à-vis d'un arrêt déjà demandé par signal)."""
    services: AppServices = app.state.services
    await services.reaper.stop()
    await services.coordinator.shutdown("lifespan")
