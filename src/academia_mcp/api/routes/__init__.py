"""
Routes API d'Academia MCP Server.
"""

from . import health, mcp

__all__ = ["health", "mcp"]
