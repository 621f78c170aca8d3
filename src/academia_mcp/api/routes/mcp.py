"""
Routes MCP Streamable HTTP: un seul chemin, deux verbes.

- POST: validation de l'enveloppe → résolution de session → canal
- GET : attache du flux SSE de la session (jamais de création)
- autres verbes: 405

Politique d'erreurs:
- corps non décodable ou enveloppe invalide → HTTP 400 + erreur JSON-RPC
- faute de session sur POST → HTTP 400 + -32000 (aucune session créée)
- faute JSON-RPC avec enveloppe et session valides → HTTP 200 + erreur JSON-RPC
- faute de session sur GET → texte brut 400 (en-tête absent) / 404 (inconnue)
- erreur imprévue hors traitement de la méthode → HTTP 500 + -32603 (id null)
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ...core.constants import DEFAULT_MCP_PATH, INTERNAL_ERROR, INVALID_SESSION, MCP_SESSION_ID_HEADER
from ...core.exceptions import ChannelClosedError, EnvelopeError
from ...transport.envelope import jsonrpc_error, parse_envelope
from ...transport.registry import SessionCreated, SessionRejected
from ...transport.sse import negotiate_response_mode
from ..dependencies import AppServices, get_services

logger = logging.getLogger(__name__)

_REJECTED_METHODS = ["PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

_STREAM_REJECTIONS = {
    400: "Bad Request: mcp-session-id header required",
    404: "Session not found",
}


def _session_error(*, req_id: object, reason: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        content=jsonrpc_error(code=INVALID_SESSION, req_id=req_id, data={"reason": reason}),
        status_code=status_code,
    )


async def handle_post(request: Request, services: AppServices = Depends(get_services)) -> Response:
    try:
        return await _handle_post(request, services)
    except Exception:
        logger.exception("Erreur interne non rattachée à une requête")
        return JSONResponse(content=jsonrpc_error(code=INTERNAL_ERROR, req_id=None), status_code=500)


async def _handle_post(request: Request, services: AppServices) -> Response:
    raw = await request.body()
    try:
        parsed = parse_envelope(raw)
    except EnvelopeError as e:
        logger.info("Enveloppe refusée (%s): %s", e.rpc_code, e.message)
        return JSONResponse(content=jsonrpc_error(code=e.rpc_code, req_id=e.req_id), status_code=400)

    session_id = request.headers.get(MCP_SESSION_ID_HEADER)
    outcome = await services.registry.resolve(session_id, parsed.envelope)
    if isinstance(outcome, SessionRejected):
        return _session_error(req_id=parsed.req_id, reason=outcome.reason, status_code=outcome.http_status)

    session = outcome.session
    mode = negotiate_response_mode(request.headers.get("accept", ""), services.settings.transport.prefer_sse)
    try:
        response = session.channel.handle_post(parsed, mode)
    except ChannelClosedError:
        return _session_error(req_id=parsed.req_id, reason="session_closed", status_code=400)
    except Exception:
        logger.exception("Erreur interne sur %s (session %s)", parsed.envelope.method, session.id)
        response = JSONResponse(content=jsonrpc_error(code=INTERNAL_ERROR, req_id=parsed.req_id))

    if isinstance(outcome, SessionCreated):
        response.headers[MCP_SESSION_ID_HEADER] = session.id
    return response


async def handle_get(request: Request, services: AppServices = Depends(get_services)) -> Response:
    outcome = await services.registry.resolve_stream(request.headers.get(MCP_SESSION_ID_HEADER))
    if isinstance(outcome, SessionRejected):
        return PlainTextResponse(_STREAM_REJECTIONS[outcome.http_status], status_code=outcome.http_status)

    try:
        return outcome.session.channel.attach_stream()
    except ChannelClosedError:
        return PlainTextResponse(_STREAM_REJECTIONS[404], status_code=404)


async def method_not_allowed(request: Request) -> Response:
    return PlainTextResponse(
        "Method Not Allowed",
        status_code=405,
        headers={"Allow": "GET, POST"},
    )


def create_mcp_router(mcp_path: str = DEFAULT_MCP_PATH) -> APIRouter:
    """Construit le router MCP sur le chemin configuré."""
    router = APIRouter()
    # Déclaré avant GET: HEAD doit aboutir en 405, pas sur l'attache de flux.
    router.add_api_route(mcp_path, method_not_allowed, methods=_REJECTED_METHODS, include_in_schema=False)
    router.add_api_route(mcp_path, handle_post, methods=["POST"])
    router.add_api_route(mcp_path, handle_get, methods=["GET"])
    return router
