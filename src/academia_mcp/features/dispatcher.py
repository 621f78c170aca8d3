"""academia_mcp.features.dispatcher

Résolution d'une méthode JSON-RPC vers son handler.

Le dispatcher ne lève pas pour les fautes de protocole: il retourne un
`DispatchSuccess` ou un `DispatchFailure`, converti en enveloppe par
`to_message()`. Les échecs d'outils restent des succès (`isError: true`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Union

from ..core.constants import (
    DEFAULT_MCP_PROTOCOL_VERSION,
    INITIALIZE_METHOD,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    NOTIFICATION_PREFIX,
    RESOURCE_NOT_FOUND,
    SERVER_NAME,
    SERVER_VERSION,
)
from ..core.exceptions import AcademiaMCPError
from ..core.models import ResourceDescriptor, ToolDescriptor, ToolResult
from ..transport.envelope import JsonDict, RequestEnvelope, jsonrpc_error, jsonrpc_result

logger = logging.getLogger(__name__)


class ToolRegistry(Protocol):
    """Collaborateur externe: catalogue d'outils et de ressources."""

    def list_tools(self) -> list[ToolDescriptor]: ...

    def list_resources(self) -> list[ResourceDescriptor]: ...

    def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult: ...

    def read_resource(self, uri: str) -> dict[str, Any] | None: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class DispatchSuccess:
    result: object

    def to_message(self, req_id: object | None) -> JsonDict:
        return jsonrpc_result(req_id=req_id, result=self.result)


@dataclass(frozen=True)
class DispatchFailure:
    code: int
    message: str | None = None
    data: object | None = None

    def to_message(self, req_id: object | None) -> JsonDict:
        return jsonrpc_error(code=self.code, message=self.message, req_id=req_id, data=self.data)


DispatchResult = Union[DispatchSuccess, DispatchFailure]


class MethodDispatcher:
    """Table méthode → handler pour `initialize`, `tools/*`, `resources/*`."""

    def __init__(
        self,
        tools: ToolRegistry,
        *,
        server_name: str = SERVER_NAME,
        server_version: str = SERVER_VERSION,
    ) -> None:
        self._tools = tools
        self._server_info = {"name": server_name, "version": server_version}
        self._closed = False
        self._handlers: dict[str, Callable[[dict[str, Any]], DispatchResult]] = {
            INITIALIZE_METHOD: self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
        }

    @property
    def methods(self) -> list[str]:
        return sorted(self._handlers)

    @property
    def closed(self) -> bool:
        return self._closed

    def dispatch(self, envelope: RequestEnvelope) -> DispatchResult:
        """Exécute la méthode de l'enveloppe.

        Les notifications (`notifications/*`) sont acquittées sans résultat.
        Une exception inattendue d'un handler remonte à l'appelant (frontière
        HTTP), qui la journalise et répond -32603.
        """
        method = envelope.method
        if method.startswith(NOTIFICATION_PREFIX):
            logger.debug("Notification reçue: %s", method)
            return DispatchSuccess(result={})

        handler = self._handlers.get(method)
        if handler is None:
            logger.info("Méthode inconnue: %s", method)
            return DispatchFailure(code=METHOD_NOT_FOUND, data={"method": method})

        return handler(envelope.params)

    def close(self) -> None:
        """Libère les ressources du registre d'outils (idempotent)."""
        if self._closed:
            return
        self._closed = True
        self._tools.close()
        logger.info("Dispatcher fermé")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _initialize(self, params: dict[str, Any]) -> DispatchResult:
        protocol_version = DEFAULT_MCP_PROTOCOL_VERSION
        if isinstance(params.get("protocolVersion"), str):
            protocol_version = str(params.get("protocolVersion"))
        return DispatchSuccess(
            result={
                "protocolVersion": protocol_version,
                "capabilities": {"tools": {"listChanged": False}, "resources": {"listChanged": False}},
                "serverInfo": dict(self._server_info),
            }
        )

    def _ping(self, params: dict[str, Any]) -> DispatchResult:
        return DispatchSuccess(result={})

    def _tools_list(self, params: dict[str, Any]) -> DispatchResult:
        return DispatchSuccess(result={"tools": [t.to_dict() for t in self._tools.list_tools()]})

    def _tools_call(self, params: dict[str, Any]) -> DispatchResult:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            return DispatchFailure(code=INVALID_PARAMS, message="Invalid params: missing tool name")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return DispatchFailure(code=INVALID_PARAMS, message="Invalid params: arguments must be an object")

        return DispatchSuccess(result=self._tools.call_tool(name, arguments).to_dict())

    def _resources_list(self, params: dict[str, Any]) -> DispatchResult:
        return DispatchSuccess(result={"resources": [r.to_dict() for r in self._tools.list_resources()]})

    def _resources_read(self, params: dict[str, Any]) -> DispatchResult:
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            return DispatchFailure(code=INVALID_PARAMS, message="Invalid params: missing uri")

        try:
            contents = self._tools.read_resource(uri)
        except AcademiaMCPError as e:
            logger.warning("Lecture de la ressource %s impossible: %s", uri, e)
            return DispatchFailure(code=INTERNAL_ERROR, data={"uri": uri})

        if contents is None:
            return DispatchFailure(code=RESOURCE_NOT_FOUND, data={"uri": uri})
        return DispatchSuccess(result={"contents": [contents]})
