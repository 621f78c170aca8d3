"""
Features d'Academia MCP Server (dispatcher de méthodes, catalogue d'exercices).
"""
