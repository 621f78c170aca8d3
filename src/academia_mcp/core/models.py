"""
Dataclasses métier pour Academia MCP Server.
"""
import sqlite3
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


@dataclass
class Exercicio:
    """Représente une ligne de la vue `exercios_vw`."""
    id: int
    nome: str
    grupo_muscular: str
    series: int
    repeticoes: str
    intervalo_segundos: int
    observacoes: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Exercicio":
        """Crée une instance depuis une ligne SQLite."""
        return cls(
            id=row["id"],
            nome=row["nome"],
            grupo_muscular=row["grupo_muscular"],
            series=row["series"],
            repeticoes=str(row["repeticoes"]),
            intervalo_segundos=row["intervalo_segundos"],
            observacoes=row["observacoes"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convertit l'exercice en dictionnaire."""
        return {
            "id": self.id,
            "nome": self.nome,
            "grupo_muscular": self.grupo_muscular,
            "series": self.series,
            "repeticoes": self.repeticoes,
            "intervalo_segundos": self.intervalo_segundos,
            "observacoes": self.observacoes,
        }


@dataclass(frozen=True)
class ToolDescriptor:
    """Entrée immuable du catalogue d'outils."""
    name: str
    description: str
    input_schema: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True)
class ResourceDescriptor:
    """Entrée immuable du catalogue de ressources."""
    uri: str
    name: str
    description: str
    mime_type: str = "application/json"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


@dataclass
class ToolResult:
    """Résultat d'exécution d'un outil.

    Un échec d'outil n'est pas une erreur de transport: il est renvoyé dans une
    réponse JSON-RPC réussie avec `isError: true`.
    """
    content: List[Dict[str, Any]]
    is_error: bool = False

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "ToolResult":
        return cls(content=[{"type": "text", "text": text}], is_error=is_error)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"content": self.content}
        if self.is_error:
            payload["isError"] = True
        return payload
