"""
Client MCP Streamable HTTP.

Fournit MCPHTTPClient pour les appels JSON-RPC 2.0 vers un serveur MCP:
- mémorise l'identifiant de session reçu sur `initialize`
- accepte JSON et SSE, et décode les deux formats
"""
import itertools
import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..core.constants import CONTENT_TYPE_SSE, JSONRPC_VERSION, MCP_SESSION_ID_HEADER
from ..core.exceptions import AcademiaMCPError

logger = logging.getLogger(__name__)


class MCPClientError(AcademiaMCPError):
    """Erreur de client MCP."""

    def __init__(self, message: str, rpc_error: Optional[Dict[str, Any]] = None, status_code: int = None):
        super().__init__(
            message=message,
            code="mcp_client_error",
            details={"rpc_error": rpc_error, "status_code": status_code},
        )
        self.rpc_error = rpc_error or {}
        self.status_code = status_code


class MCPProtocolError(MCPClientError):
    """Réponse illisible (ni JSON, ni SSE avec une ligne `data:`)."""


def parse_sse_payload(text: str) -> Optional[Dict[str, Any]]:
    """
    Extrait le premier message JSON d'un corps SSE.

    Returns:
        Message décodé, ou None si aucune ligne `data:` n'est présente
    """
    for line in text.splitlines():
        if line.startswith("data:"):
            return json.loads(line[len("data:"):].strip())
    return None


class MCPHTTPClient:
    """
    Client MCP avec suivi de session.

    Le client HTTP peut être injecté (ex: `httpx.ASGITransport` en test);
    sinon il est créé et possédé par l'instance.
    """

    def __init__(
        self,
        endpoint_url: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = 10.0,
    ):
        self.endpoint_url = endpoint_url
        self.session_id: Optional[str] = None
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_s, connect=5.0))
        self._ids = itertools.count(1)

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client

    async def close(self):
        """Ferme le client HTTP s'il appartient à l'instance."""
        if self._owns_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def __aenter__(self) -> "MCPHTTPClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self, session_id: Optional[str]) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": f"application/json, {CONTENT_TYPE_SSE}",
        }
        if session_id:
            headers[MCP_SESSION_ID_HEADER] = session_id
        return headers

    async def post_raw(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        request_id: Any = None,
        session_id: Optional[str] = None,
    ) -> httpx.Response:
        """Envoie une requête sans interpréter la réponse (session explicite)."""
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id if request_id is not None else next(self._ids),
            "method": method,
            "params": params or {},
        }
        return await self._http_client.post(self.endpoint_url, json=payload, headers=self._headers(session_id))

    async def request(self, method: str, params: Optional[Dict[str, Any]] = None, *, request_id: Any = None) -> Dict[str, Any]:
        """
        Effectue un appel JSON-RPC dans la session courante.

        Returns:
            Enveloppe de réponse complète (`jsonrpc`, `id`, `result`)

        Raises:
            MCPClientError: Erreur JSON-RPC retournée par le serveur
            MCPProtocolError: Réponse non décodable
        """
        response = await self.post_raw(method, params, request_id=request_id, session_id=self.session_id)

        new_session_id = response.headers.get(MCP_SESSION_ID_HEADER)
        if new_session_id and not self.session_id:
            self.session_id = new_session_id
            logger.info("Nouvelle session: %s", new_session_id)

        data = self.decode_response(response)
        if isinstance(data.get("error"), dict):
            error = data["error"]
            raise MCPClientError(
                f"Erreur RPC (code {error.get('code')}): {error.get('message')}",
                rpc_error=error,
                status_code=response.status_code,
            )
        return data

    @staticmethod
    def decode_response(response: httpx.Response) -> Dict[str, Any]:
        """Décode une réponse JSON ou SSE (première frame `data:`)."""
        content_type = response.headers.get("content-type", "")
        try:
            if CONTENT_TYPE_SSE in content_type:
                data = parse_sse_payload(response.text)
                if data is None:
                    raise MCPProtocolError("Flux SSE sans ligne data", status_code=response.status_code)
                return data
            return response.json()
        except ValueError as e:
            raise MCPProtocolError(f"Réponse illisible: {e}", status_code=response.status_code) from e

    async def initialize(self, client_name: str = "academia-mcp-check", client_version: str = "1.0.0") -> Dict[str, Any]:
        return await self.request(
            "initialize",
            {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {"name": client_name, "version": client_version},
            },
        )

    async def list_tools(self) -> Dict[str, Any]:
        return await self.request("tools/list")

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("tools/call", {"name": name, "arguments": arguments or {}})

    async def list_resources(self) -> Dict[str, Any]:
        return await self.request("resources/list")
