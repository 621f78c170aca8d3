"""
Couche HTTP (FastAPI) d'Academia MCP Server.
"""

from .router import create_api_router

__all__ = ["create_api_router"]
