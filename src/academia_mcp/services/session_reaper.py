"""Service: Expiration périodique des sessions MCP inactives.

Objectif:
    - Fermer les canaux des sessions sans requête depuis `idle_ttl_s`
    - Ne jamais faire crasher la boucle sur une erreur ponctuelle

Contraintes:
    - Désactivé si `idle_ttl_s == 0`
    - Aucune dépendance vers l'API (layering: API ← Services ← Transport)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..config.settings import SessionConfig
from ..transport.registry import SessionRegistry

logger = logging.getLogger(__name__)


class SessionReaper:
    """Tâche asyncio de balayage des sessions inactives."""

    def __init__(self, registry: SessionRegistry, config: SessionConfig):
        self._registry = registry
        self._config = config

        self._running = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Démarre le balayage dans une tâche asyncio."""

        if not self._config.expiry_enabled:
            return

        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info(
            "Expiration des sessions active (ttl=%ss, intervalle=%ss)",
            self._config.idle_ttl_s,
            self._config.sweep_interval_s,
        )

    async def stop(self) -> None:
        """Arrête le balayage proprement (annule la tâche)."""

        self._running = False
        if not self._task:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

    async def sweep_once(self) -> list[str]:
        """Exécute un balayage.

        Returns:
            Identifiants des sessions expirées.
        """

        return await self._registry.expire_idle(self._config.idle_ttl_s)

    async def _sweep_loop(self) -> None:
        while self._running:
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Erreur lors du balayage des sessions")

            await asyncio.sleep(self._config.sweep_interval_s)
