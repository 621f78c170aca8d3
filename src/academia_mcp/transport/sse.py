"""
Encodage des frames Server-Sent Events et négociation du type de réponse.
"""
import json
from typing import Any, Dict, Literal

from ..core.constants import CONTENT_TYPE_JSON, CONTENT_TYPE_SSE

ResponseMode = Literal["json", "sse"]

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse_event(message: Dict[str, Any], event: str = "message") -> bytes:
    """
    Encode un message JSON-RPC en une frame SSE.

    Le JSON est sérialisé sur une seule ligne: une frame = une ligne `data:`.
    """
    data = json.dumps(message, ensure_ascii=False, separators=(",", ":"))
    return f"event: {event}\ndata: {data}\n\n".encode("utf-8")


def format_sse_comment(text: str) -> bytes:
    """Commentaire SSE (ignoré par les clients, utile comme keep-alive)."""
    return f": {text}\n\n".encode("utf-8")


def _accepted_types(accept_header: str) -> set:
    types = set()
    for part in (accept_header or "").split(","):
        media_type = part.split(";", 1)[0].strip().lower()
        if media_type:
            types.add(media_type)
    return types


def accepts_event_stream(accept_header: str) -> bool:
    """Vrai si l'en-tête Accept autorise `text/event-stream`."""
    return CONTENT_TYPE_SSE in _accepted_types(accept_header)


def negotiate_response_mode(accept_header: str, prefer_sse: bool) -> ResponseMode:
    """
    Choisit le mode de réponse d'un POST.

    - SSE si c'est le seul type accepté
    - SSE si JSON et SSE sont acceptés et que `prefer_sse` est actif
    - JSON dans tous les autres cas (y compris Accept absent ou `*/*`)
    """
    types = _accepted_types(accept_header)
    if CONTENT_TYPE_SSE not in types:
        return "json"
    json_ok = CONTENT_TYPE_JSON in types or "application/*" in types or "*/*" in types
    if not json_ok or prefer_sse:
        return "sse"
    return "json"
