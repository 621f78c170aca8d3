"""
Suite de conformité Streamable HTTP.

Enchaîne, dans l'ordre, les vérifications d'un serveur MCP en fonctionnement:
santé, initialisation, outils, ressources, flux GET, réutilisation de session
et rejet d'une session inconnue. Chaque vérification renvoie un booléen; une
exception inattendue compte comme un échec.
"""
import asyncio
import logging
import uuid
from typing import Awaitable, Callable, List, Optional, Tuple

import httpx

from ..core.constants import CONTENT_TYPE_SSE, DEFAULT_MCP_PATH, HEALTH_PATH, INVALID_SESSION, MCP_SESSION_ID_HEADER
from .http_client import MCPClientError, MCPHTTPClient

logger = logging.getLogger(__name__)

CheckResult = Tuple[str, bool]

STREAM_ABORT_S = 3.0


def _first_text(response: dict) -> Optional[str]:
    content = (response.get("result") or {}).get("content") or []
    if content and content[0].get("type") == "text":
        return content[0].get("text")
    return None


class ConformanceSuite:
    """Vérifications séquentielles partageant un même client (et donc une même session)."""

    def __init__(self, client: MCPHTTPClient, health_url: str, stream_abort_s: float = STREAM_ABORT_S):
        self.client = client
        self.health_url = health_url
        self.stream_abort_s = stream_abort_s

    async def check_health(self) -> bool:
        response = await self.client.http_client.get(self.health_url)
        return response.status_code == 200 and response.text == "OK"

    async def check_initialize(self) -> bool:
        data = await self.client.initialize()
        result = data.get("result") or {}
        logger.info("serverInfo: %s", (result.get("serverInfo") or {}).get("name", "N/A"))
        return bool(result) and self.client.session_id is not None

    async def check_list_tools(self) -> bool:
        data = await self.client.list_tools()
        return isinstance((data.get("result") or {}).get("tools"), list)

    async def check_call_tool(self) -> bool:
        data = await self.client.call_tool("listar_grupos_musculares")
        return _first_text(data) is not None

    async def check_call_tool_with_args(self) -> bool:
        data = await self.client.call_tool("buscar_exercicio_por_nome", {"nome": "supino"})
        return _first_text(data) is not None

    async def check_list_resources(self) -> bool:
        data = await self.client.list_resources()
        return isinstance((data.get("result") or {}).get("resources"), list)

    async def check_stream(self) -> bool:
        if not self.client.session_id:
            return False
        headers = {"Accept": CONTENT_TYPE_SSE, MCP_SESSION_ID_HEADER: self.client.session_id}

        async def attach() -> int:
            async with self.client.http_client.stream("GET", self.client.endpoint_url, headers=headers) as response:
                return response.status_code

        try:
            status = await asyncio.wait_for(attach(), timeout=self.stream_abort_s)
        except asyncio.TimeoutError:
            # Flux resté ouvert jusqu'à l'abandon: comportement attendu
            return True
        except httpx.TransportError as e:
            logger.info("Flux SSE déconnecté: %s", e)
            return True
        return status == 200

    async def check_session_reuse(self) -> bool:
        if not self.client.session_id:
            return False
        data = await self.client.request("tools/list", request_id=99)
        return "result" in data

    async def check_invalid_session(self) -> bool:
        response = await self.client.post_raw("tools/list", session_id=uuid.uuid4().hex)
        error = MCPHTTPClient.decode_response(response).get("error")
        if not isinstance(error, dict):
            return False
        return error.get("code") == INVALID_SESSION

    def checks(self) -> List[Tuple[str, Callable[[], Awaitable[bool]]]]:
        return [
            ("Health Check", self.check_health),
            ("Initialize", self.check_initialize),
            ("List Tools", self.check_list_tools),
            ("Call Tool (sans arguments)", self.check_call_tool),
            ("Call Tool (avec arguments)", self.check_call_tool_with_args),
            ("List Resources", self.check_list_resources),
            ("SSE Stream", self.check_stream),
            ("Session Reuse", self.check_session_reuse),
            ("Invalid Session", self.check_invalid_session),
        ]

    async def run(self) -> List[CheckResult]:
        results: List[CheckResult] = []
        for name, check in self.checks():
            try:
                passed = await check()
            except (MCPClientError, httpx.HTTPError, ValueError) as e:
                logger.warning("%s: %s", name, e)
                passed = False
            except Exception:
                logger.exception("%s: erreur inattendue", name)
                passed = False
            results.append((name, passed))
        return results


async def run_conformance_suite(
    base_url: str,
    *,
    mcp_path: str = DEFAULT_MCP_PATH,
    http_client: Optional[httpx.AsyncClient] = None,
    stream_abort_s: float = STREAM_ABORT_S,
) -> List[CheckResult]:
    """
    Exécute la suite complète contre `base_url` (ex: http://localhost:3002).

    Returns:
        Liste de couples (nom de la vérification, succès)
    """
    base = base_url.rstrip("/")
    async with MCPHTTPClient(f"{base}{mcp_path}", http_client=http_client) as client:
        suite = ConformanceSuite(client, f"{base}{HEALTH_PATH}", stream_abort_s=stream_abort_s)
        return await suite.run()
