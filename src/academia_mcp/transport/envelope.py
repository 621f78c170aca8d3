"""academia_mcp.transport.envelope

Validation des enveloppes JSON-RPC 2.0 entrantes et construction des réponses.

Le validateur travaille sur les octets bruts du corps HTTP sans les consommer:
l'appelant conserve `raw` et peut le transmettre tel quel au canal de session.
Les deux contrôles (décodage puis structure) sont faits ici, une seule fois.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, ValidationError, field_validator

from ..core.constants import ERROR_MESSAGES, JSONRPC_VERSION, NOTIFICATION_PREFIX
from ..core.exceptions import InvalidRequestError, ParseError

JsonDict = dict[str, object]
RequestId = Union[StrictInt, StrictFloat, StrictStr, None]


class RequestEnvelope(BaseModel):
    """Enveloppe de requête JSON-RPC validée."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    jsonrpc: StrictStr
    id: RequestId = None
    method: StrictStr = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("jsonrpc")
    @classmethod
    def _check_version(cls, value: str) -> str:
        if value != JSONRPC_VERSION:
            raise ValueError(f"jsonrpc doit valoir '{JSONRPC_VERSION}'")
        return value

    @field_validator("params", mode="before")
    @classmethod
    def _null_params(cls, value: object) -> object:
        return {} if value is None else value

    @property
    def is_notification(self) -> bool:
        """Vrai si le membre `id` est absent (aucune réponse attendue)."""
        return "id" not in self.model_fields_set


@dataclass(frozen=True)
class ParsedRequest:
    """Résultat du validateur: enveloppe + id brut + corps d'origine."""

    envelope: RequestEnvelope
    req_id: object | None
    raw: bytes


def _reject_constant(name: str) -> float:
    raise ValueError(f"constante non JSON: {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"nombre hors limites: {text}")
    return value


def _extract_request_id(obj: object) -> object | None:
    if isinstance(obj, dict) and "id" in obj:
        return obj.get("id")
    return None


def parse_envelope(raw: bytes) -> ParsedRequest:
    """Décode et valide un corps de requête.

    Raises:
        ParseError: corps non décodable (UTF-8 ou JSON)
        InvalidRequestError: JSON valide mais enveloppe incorrecte
    """
    try:
        obj: object = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant, parse_float=_finite_float)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise ParseError(f"Corps JSON invalide: {e}") from e

    req_id = _extract_request_id(obj)
    if not isinstance(obj, dict):
        raise InvalidRequestError("L'enveloppe doit être un objet JSON", req_id=None)

    try:
        envelope = RequestEnvelope.model_validate(obj)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in e.errors())
        raise InvalidRequestError(f"Enveloppe invalide ({fields})", req_id=_echoable_id(req_id)) from e

    if "id" in obj and envelope.id is None and not envelope.method.startswith(NOTIFICATION_PREFIX):
        raise InvalidRequestError("id null réservé aux notifications", req_id=None)

    return ParsedRequest(envelope=envelope, req_id=envelope.id, raw=raw)


def _echoable_id(req_id: object | None) -> object | None:
    if isinstance(req_id, (str, int, float)) and not isinstance(req_id, bool):
        return req_id
    return None


# ============================================================================
# Construction des réponses
# ============================================================================

def jsonrpc_error(*, code: int, req_id: object | None, message: Optional[str] = None, data: object | None = None) -> JsonDict:
    """Enveloppe d'erreur: exactement `error`, jamais `result`."""
    error: JsonDict = {"code": int(code), "message": message or ERROR_MESSAGES.get(code, "Error")}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "error": error}


def jsonrpc_result(*, req_id: object | None, result: object) -> JsonDict:
    """Enveloppe de succès: exactement `result`, jamais `error`."""
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "result": result}


def jsonrpc_notification(*, method: str, params: JsonDict | None = None) -> JsonDict:
    """Message serveur → client sans id (poussé sur le flux SSE)."""
    message: JsonDict = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params is not None:
        message["params"] = params
    return message
