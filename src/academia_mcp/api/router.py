"""
Router principal de l'API.
"""
from fastapi import APIRouter

from ..core.constants import DEFAULT_MCP_PATH
from .routes import health, mcp


def create_api_router(mcp_path: str = DEFAULT_MCP_PATH) -> APIRouter:
    """Assemble les sous-routers (health + MCP)."""
    api_router = APIRouter()
    api_router.include_router(health.router, prefix="", tags=["health"])
    api_router.include_router(mcp.create_mcp_router(mcp_path), prefix="", tags=["mcp"])
    return api_router
