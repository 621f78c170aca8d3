"""
Route de health check (aucune sémantique de session).
"""
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from ...core.constants import HEALTH_PATH

router = APIRouter()

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route(HEALTH_PATH, methods=_ALL_METHODS, response_class=PlainTextResponse)
async def health_check():
    """Toujours 200, corps `OK`."""
    return PlainTextResponse("OK", status_code=200)
