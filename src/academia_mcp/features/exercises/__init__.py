"""Catalogue d'exercices exposé comme outils et ressources MCP."""

from .registry import EXERCICIOS_URI, GRUPOS_URI, RESOURCES, TOOLS, ExerciseToolRegistry

__all__ = [
    "EXERCICIOS_URI",
    "GRUPOS_URI",
    "RESOURCES",
    "TOOLS",
    "ExerciseToolRegistry",
]
