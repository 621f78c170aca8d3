"""academia_mcp.transport.channel

Canal duplex d'une session MCP.

- POST: l'enveloppe est dispatchée; la réponse part en JSON direct ou en
  flux SSE d'une frame, selon la négociation `Accept`.
- GET: flux SSE longue durée sur lequel le serveur pousse des messages hors
  bande (`push`). Une seule attache active par canal: une nouvelle attache
  remplace la précédente, dont le flux se termine proprement.

Toutes les mutations d'état se font sans `await` intermédiaire et sont donc
atomiques sur la boucle asyncio.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, AsyncGenerator, Optional

from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..core.constants import CONTENT_TYPE_SSE, MCP_SESSION_ID_HEADER
from ..core.exceptions import ChannelClosedError
from .envelope import JsonDict, ParsedRequest
from .sse import SSE_HEADERS, ResponseMode, format_sse_event

if TYPE_CHECKING:
    from ..features.dispatcher import MethodDispatcher

logger = logging.getLogger(__name__)

_CLOSE = object()


class _StreamAttachment:
    """File d'attente d'une connexion GET attachée."""

    _counter = 0

    def __init__(self) -> None:
        _StreamAttachment._counter += 1
        self.number = _StreamAttachment._counter
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.queue.put_nowait(_CLOSE)


class SessionChannel:
    """Transport d'une session: réponses directes + flux poussé optionnel."""

    def __init__(
        self,
        session_id: str,
        dispatcher: "MethodDispatcher",
        *,
        stream_idle_timeout: Optional[float] = None,
    ) -> None:
        self.session_id = session_id
        self._dispatcher = dispatcher
        self._stream_idle_timeout = stream_idle_timeout
        self._attachment: Optional[_StreamAttachment] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_stream(self) -> bool:
        return self._attachment is not None and not self._attachment.closed

    # ------------------------------------------------------------------
    # POST
    # ------------------------------------------------------------------

    def handle_post(self, request: ParsedRequest, mode: ResponseMode) -> Response:
        """
        Dispatche une requête et construit la réponse HTTP.

        Returns:
            202 vide pour une notification, sinon JSON ou SSE (une frame)

        Raises:
            ChannelClosedError: si le canal a été fermé entre-temps
        """
        if self._closed:
            raise ChannelClosedError(self.session_id)

        outcome = self._dispatcher.dispatch(request.envelope)
        if request.envelope.is_notification:
            return Response(status_code=202)

        message = outcome.to_message(request.req_id)
        if mode == "sse":
            return StreamingResponse(
                self._single_frame(message),
                media_type=CONTENT_TYPE_SSE,
                headers=dict(SSE_HEADERS),
            )
        return JSONResponse(content=message)

    @staticmethod
    async def _single_frame(message: JsonDict) -> AsyncGenerator[bytes, None]:
        yield format_sse_event(message)

    # ------------------------------------------------------------------
    # GET (flux poussé)
    # ------------------------------------------------------------------

    def attach_stream(self) -> StreamingResponse:
        """
        Ouvre le flux SSE longue durée de la session.

        Raises:
            ChannelClosedError: si le canal est fermé
        """
        if self._closed:
            raise ChannelClosedError(self.session_id)

        previous = self._attachment
        attachment = _StreamAttachment()
        self._attachment = attachment
        if previous is not None and not previous.closed:
            logger.info("Session %s: flux #%d remplacé par #%d", self.session_id, previous.number, attachment.number)
            previous.close()
        else:
            logger.info("Session %s: flux #%d attaché", self.session_id, attachment.number)

        headers = dict(SSE_HEADERS)
        headers[MCP_SESSION_ID_HEADER] = self.session_id
        return StreamingResponse(
            self._event_stream(attachment),
            media_type=CONTENT_TYPE_SSE,
            headers=headers,
        )

    async def _event_stream(self, attachment: _StreamAttachment) -> AsyncGenerator[bytes, None]:
        # La déconnexion du client annule ce générateur: c'est la fin normale.
        try:
            while True:
                try:
                    item = await asyncio.wait_for(attachment.queue.get(), timeout=self._stream_idle_timeout)
                except asyncio.TimeoutError:
                    logger.debug("Session %s: flux #%d inactif, fermeture", self.session_id, attachment.number)
                    break
                if item is _CLOSE:
                    break
                yield format_sse_event(item)
        finally:
            self._detach(attachment)

    def _detach(self, attachment: _StreamAttachment) -> None:
        attachment.closed = True
        if self._attachment is attachment:
            self._attachment = None
            logger.info("Session %s: flux #%d détaché", self.session_id, attachment.number)

    def push(self, message: JsonDict) -> bool:
        """
        Pousse un message hors bande sur le flux GET attaché.

        Returns:
            True si un flux actif a reçu le message
        """
        attachment = self._attachment
        if self._closed or attachment is None or attachment.closed:
            return False
        attachment.queue.put_nowait(message)
        return True

    # ------------------------------------------------------------------
    # Fermeture
    # ------------------------------------------------------------------

    def close(self) -> bool:
        """
        Ferme le canal et termine le flux attaché (idempotent).

        Returns:
            True au premier appel, False ensuite
        """
        if self._closed:
            return False
        self._closed = True
        attachment = self._attachment
        self._attachment = None
        if attachment is not None:
            attachment.close()
        logger.debug("Session %s: canal fermé", self.session_id)
        return True
