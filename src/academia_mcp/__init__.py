"""
Academia MCP Server.

Expose un catalogue d'exercices de musculation via MCP (JSON-RPC 2.0 sur HTTP,
avec flux SSE par session).
"""

__version__ = "1.0.0"
