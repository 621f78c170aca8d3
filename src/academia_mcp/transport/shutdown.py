"""academia_mcp.transport.shutdown

Coordinateur d'arrêt: `running → draining → stopped`.

À la réception d'un signal (ou à la fin du lifespan), toutes les sessions sont
retirées du registre et leurs canaux fermés (un échec individuel est journalisé
sans interrompre le drain), puis le dispatcher est fermé et le serveur est prié
d'arrêter d'accepter des connexions. Un second signal pendant le drain réutilise
la même tâche: aucune session n'est fermée deux fois.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from .registry import SessionRegistry

if TYPE_CHECKING:
    from ..features.dispatcher import MethodDispatcher

logger = logging.getLogger(__name__)


class ShutdownState(str, Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class ShutdownCoordinator:
    """Orchestre l'arrêt propre du serveur MCP."""

    def __init__(
        self,
        registry: SessionRegistry,
        dispatcher: "MethodDispatcher",
        *,
        stop_listener: Optional[Callable[[], None]] = None,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._stop_listener = stop_listener
        self._state = ShutdownState.RUNNING
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.closed_sessions = 0
        self.failed_closes = 0

    @property
    def state(self) -> ShutdownState:
        return self._state

    def set_stop_listener(self, stop_listener: Callable[[], None]) -> None:
        self._stop_listener = stop_listener

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Mémorise la boucle du serveur (pour les demandes venant des signaux)."""
        self._loop = loop

    def request_shutdown(self, signum: Optional[int] = None) -> None:
        """Demande d'arrêt depuis un handler de signal (non bloquant)."""
        reason = signal.Signals(signum).name if signum is not None else "request"
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("Arrêt demandé (%s) sans boucle active", reason)
            return
        loop.call_soon_threadsafe(self._ensure_task, reason)

    async def shutdown(self, reason: str = "lifespan") -> None:
        """Lance le drain (une seule fois) et attend sa fin."""
        await self._ensure_task(reason)

    def _ensure_task(self, reason: str) -> asyncio.Task:
        if self._task is None:
            logger.info("Arrêt demandé (%s)", reason)
            self._task = asyncio.ensure_future(self._drain())
        else:
            logger.debug("Arrêt déjà en cours, demande ignorée (%s)", reason)
        return self._task

    async def _drain(self) -> None:
        self._state = ShutdownState.DRAINING
        sessions = await self._registry.drain()
        logger.info("Drain de %d session(s)", len(sessions))

        for session in sessions:
            try:
                if session.channel.close():
                    self.closed_sessions += 1
            except Exception:
                self.failed_closes += 1
                logger.exception("Échec de fermeture de la session %s", session.id)

        try:
            self._dispatcher.close()
        except Exception:
            logger.exception("Échec de fermeture du dispatcher")

        if self._stop_listener is not None:
            self._stop_listener()

        self._state = ShutdownState.STOPPED
        logger.info(
            "Arrêt terminé: %d session(s) fermée(s), %d échec(s)",
            self.closed_sessions,
            self.failed_closes,
        )
