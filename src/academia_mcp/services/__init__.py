"""
Services d'arrière-plan d'Academia MCP Server.
"""

from .session_reaper import SessionReaper

__all__ = ["SessionReaper"]
