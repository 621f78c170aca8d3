"""academia_mcp.features.exercises.registry

Registre des outils et ressources MCP du catalogue d'exercices.

Contrat vis-à-vis du dispatcher:
- `list_tools()` / `list_resources()` retournent le catalogue tel quel
- `call_tool()` ne lève jamais: un échec d'outil est un `ToolResult(is_error=True)`
- `read_resource()` retourne None pour une URI inconnue
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from ...core.database import ExerciseRepository
from ...core.exceptions import AcademiaMCPError, ToolArgumentError, UnknownToolError
from ...core.models import ResourceDescriptor, ToolDescriptor, ToolResult
from . import formatting
from .schemas import BuscarPorGrupoArgs, BuscarPorNomeArgs, ObterDetalhesArgs, SemArgs

logger = logging.getLogger(__name__)

GRUPOS_URI = "academia://grupos-musculares"
EXERCICIOS_URI = "academia://exercicios"

TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="buscar_exercicios_por_grupo",
        description=(
            "Busca exercícios filtrando por grupo muscular. Grupos disponíveis: "
            "'Costas (dorsais, lombar)', 'Ombros (deltoides)', 'Pernas', 'Peito (peitoral)', "
            "'Braços (Bíceps, Tríceps, Antebraço)'"
        ),
        input_schema={
            "type": "object",
            "properties": {
                "grupo_muscular": {
                    "type": "string",
                    "description": "Nome do grupo muscular (ex: 'Pernas', 'Peito (peitoral)')",
                },
            },
            "required": ["grupo_muscular"],
        },
    ),
    ToolDescriptor(
        name="listar_grupos_musculares",
        description="Lista todos os grupos musculares disponíveis no banco de dados",
    ),
    ToolDescriptor(
        name="buscar_exercicio_por_nome",
        description="Busca exercícios específicos por nome (busca parcial, case-insensitive)",
        input_schema={
            "type": "object",
            "properties": {
                "nome": {
                    "type": "string",
                    "description": "Nome ou parte do nome do exercício (ex: 'agachamento', 'supino')",
                },
            },
            "required": ["nome"],
        },
    ),
    ToolDescriptor(
        name="listar_todos_exercicios",
        description="Lista todos os exercícios cadastrados no banco de dados",
    ),
    ToolDescriptor(
        name="obter_detalhes_exercicio",
        description="Obtém detalhes completos de um exercício específico pelo ID",
        input_schema={
            "type": "object",
            "properties": {
                "id": {"type": "integer", "description": "ID do exercício"},
            },
            "required": ["id"],
        },
    ),
]

RESOURCES: List[ResourceDescriptor] = [
    ResourceDescriptor(
        uri=GRUPOS_URI,
        name="Grupos musculares",
        description="Lista de grupos musculares cadastrados",
    ),
    ResourceDescriptor(
        uri=EXERCICIOS_URI,
        name="Exercícios",
        description="Catálogo completo de exercícios",
    ),
]


def _summarize_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "argumentos inválidos (" + "; ".join(parts) + ")"


class ExerciseToolRegistry:
    """Catalogue d'outils/ressources adossé au `ExerciseRepository`."""

    def __init__(self, repository: ExerciseRepository):
        self.repository = repository
        self._handlers: Dict[str, Tuple[Type[BaseModel], Callable[[Any], str]]] = {
            "buscar_exercicios_por_grupo": (BuscarPorGrupoArgs, self._buscar_por_grupo),
            "listar_grupos_musculares": (SemArgs, self._listar_grupos),
            "buscar_exercicio_por_nome": (BuscarPorNomeArgs, self._buscar_por_nome),
            "listar_todos_exercicios": (SemArgs, self._listar_todos),
            "obter_detalhes_exercicio": (ObterDetalhesArgs, self._obter_detalhes),
        }

    def list_tools(self) -> List[ToolDescriptor]:
        return list(TOOLS)

    def list_resources(self) -> List[ResourceDescriptor]:
        return list(RESOURCES)

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        """
        Exécute un outil par son nom.

        Returns:
            ToolResult; `is_error=True` pour un outil inconnu, des arguments
            invalides ou une erreur de base de données
        """
        try:
            entry = self._handlers.get(name)
            if entry is None:
                raise UnknownToolError(name)

            args_model, handler = entry
            try:
                args = args_model.model_validate(arguments)
            except ValidationError as e:
                raise ToolArgumentError(_summarize_validation_error(e), tool_name=name) from e

            logger.debug("Exécution de l'outil %s", name)
            return ToolResult.text(handler(args))
        except AcademiaMCPError as e:
            logger.warning("Échec de l'outil %s: %s", name, e)
            return ToolResult.text(f"Erro ao executar {name}: {e.message}", is_error=True)
        except Exception as e:
            logger.exception("Erreur inattendue dans l'outil %s", name)
            return ToolResult.text(f"Erro ao executar {name}: {e}", is_error=True)

    def read_resource(self, uri: str) -> Optional[Dict[str, Any]]:
        """Retourne le contenu `{uri, mimeType, text}` d'une ressource."""
        if uri == GRUPOS_URI:
            payload: Any = self.repository.list_groups()
        elif uri == EXERCICIOS_URI:
            payload = [ex.to_dict() for ex in self.repository.list_all()]
        else:
            return None
        return {
            "uri": uri,
            "mimeType": "application/json",
            "text": json.dumps(payload, ensure_ascii=False),
        }

    def close(self):
        self.repository.close()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _buscar_por_grupo(self, args: BuscarPorGrupoArgs) -> str:
        return formatting.format_group_results(
            args.grupo_muscular, self.repository.find_by_group(args.grupo_muscular)
        )

    def _listar_grupos(self, args: SemArgs) -> str:
        return formatting.format_groups(self.repository.list_groups())

    def _buscar_por_nome(self, args: BuscarPorNomeArgs) -> str:
        return formatting.format_name_results(args.nome, self.repository.find_by_name(args.nome))

    def _listar_todos(self, args: SemArgs) -> str:
        return formatting.format_all(self.repository.list_all())

    def _obter_detalhes(self, args: ObterDetalhesArgs) -> str:
        return formatting.format_details(args.id, self.repository.get_by_id(args.id))
