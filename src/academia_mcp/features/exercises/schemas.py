"""
Schémas d'arguments des outils (validés à la frontière avec pydantic).
"""
from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class BuscarPorGrupoArgs(_ToolArgs):
    grupo_muscular: str = Field(min_length=1)


class BuscarPorNomeArgs(_ToolArgs):
    nome: str = Field(min_length=1)


class ObterDetalhesArgs(_ToolArgs):
    id: StrictInt

    @field_validator("id", mode="before")
    @classmethod
    def _integral_number(cls, value: object) -> object:
        # 3.0 est un entier JSON valide; 3.5 et "3" restent refusés.
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value


class SemArgs(_ToolArgs):
    """Outils sans argument."""
