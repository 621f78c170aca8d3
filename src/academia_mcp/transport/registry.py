"""academia_mcp.transport.registry

Registre des sessions MCP: identifiant → `Session` (et son canal).

Règles de résolution:
- POST avec id connu → `SessionReused`
- POST sans id et méthode `initialize` → `SessionCreated` (id UUID4, 128 bits)
- tout autre POST → `SessionRejected` (-32000, aucune session créée)
- GET: jamais de création; en-tête absent → 400, id inconnu → 404

Les accès à la table sont protégés par un `asyncio.Lock`: une entrée n'est
visible qu'une fois entièrement construite.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from ..core.constants import INITIALIZE_METHOD, INVALID_SESSION
from .channel import SessionChannel
from .envelope import RequestEnvelope

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[str], SessionChannel]


@dataclass
class Session:
    """Session suivie par le serveur (propriété exclusive du registre)."""

    id: str
    channel: SessionChannel
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen_at: float = field(default_factory=time.monotonic)

    def touch(self) -> None:
        self.last_seen_at = time.monotonic()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "has_stream": self.channel.has_stream,
        }


@dataclass(frozen=True)
class SessionReused:
    session: Session


@dataclass(frozen=True)
class SessionCreated:
    session: Session


@dataclass(frozen=True)
class SessionRejected:
    """Refus de résolution.

    `rpc_code` sert aux réponses POST, `http_status` aux deux verbes.
    """

    reason: str
    http_status: int
    rpc_code: int = INVALID_SESSION


SessionOutcome = Union[SessionReused, SessionCreated, SessionRejected]
StreamOutcome = Union[SessionReused, SessionRejected]


def generate_session_id() -> str:
    """Identifiant opaque de 128 bits (source aléatoire cryptographique)."""
    return uuid.uuid4().hex


class SessionRegistry:
    """Table process-wide des sessions, injectable (une instance par app/test)."""

    def __init__(
        self,
        channel_factory: ChannelFactory,
        *,
        id_factory: Callable[[], str] = generate_session_id,
    ) -> None:
        self._channel_factory = channel_factory
        self._id_factory = id_factory
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()
        self._accepting = True

    async def resolve(self, session_id: Optional[str], envelope: RequestEnvelope) -> SessionOutcome:
        """Résout la session d'un POST (réutilisation, création ou refus)."""
        async with self._lock:
            if session_id:
                session = self._sessions.get(session_id)
                if session is None or session.channel.closed:
                    logger.info("Session inconnue refusée: %s", session_id)
                    return SessionRejected(reason="unknown_session", http_status=400)
                session.touch()
                return SessionReused(session)

            if envelope.method != INITIALIZE_METHOD:
                logger.info("Requête %s sans session refusée", envelope.method)
                return SessionRejected(reason="missing_session", http_status=400)

            if not self._accepting:
                return SessionRejected(reason="shutting_down", http_status=503)

            new_id = self._id_factory()
            while new_id in self._sessions:
                new_id = self._id_factory()
            session = Session(id=new_id, channel=self._channel_factory(new_id))
            self._sessions[new_id] = session

        logger.info("Nouvelle session créée: %s (%d active(s))", new_id, len(self._sessions))
        return SessionCreated(session)

    async def resolve_stream(self, session_id: Optional[str]) -> StreamOutcome:
        """Résout la session d'un GET (attache de flux, jamais de création)."""
        if not session_id:
            return SessionRejected(reason="missing_session_header", http_status=400)

        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.channel.closed:
                return SessionRejected(reason="unknown_session", http_status=404)
            session.touch()
            return SessionReused(session)

    async def get(self, session_id: str) -> Optional[Session]:
        async with self._lock:
            return self._sessions.get(session_id)

    async def remove(self, session_id: str) -> Optional[Session]:
        """Retire une session et ferme son canal."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            session.channel.close()
            logger.info("Session supprimée: %s", session_id)
        return session

    async def drain(self) -> list[Session]:
        """Refuse toute nouvelle création et retire toutes les sessions.

        Chaque session n'est retournée qu'une fois, même si `drain()` est
        appelé plusieurs fois: c'est à l'appelant de fermer les canaux.
        """
        async with self._lock:
            self._accepting = False
            sessions = list(self._sessions.values())
            self._sessions.clear()
        return sessions

    async def expire_idle(self, idle_ttl_s: float, *, now: Optional[float] = None) -> list[str]:
        """Ferme et retire les sessions inactives depuis plus de `idle_ttl_s`.

        Une session dont le flux GET est attaché reste active et voit son
        `last_seen_at` rafraîchi.
        """
        current = time.monotonic() if now is None else now
        async with self._lock:
            expired = []
            for session in self._sessions.values():
                if session.channel.has_stream:
                    session.last_seen_at = current
                elif current - session.last_seen_at > idle_ttl_s:
                    expired.append(session)
            for session in expired:
                del self._sessions[session.id]
        for session in expired:
            session.channel.close()
            logger.info("Session expirée (inactive > %ss): %s", idle_ttl_s, session.id)
        return [s.id for s in expired]

    async def snapshot(self) -> list[Session]:
        async with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
