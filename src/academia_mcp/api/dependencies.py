"""
Dépendances FastAPI: accès aux services de l'application.

Les services sont portés par `app.state.services` (un jeu par application),
jamais par des singletons de module.
"""
from dataclasses import dataclass

from fastapi import Request

from ..config.settings import Settings
from ..features.dispatcher import MethodDispatcher, ToolRegistry
from ..services.session_reaper import SessionReaper
from ..transport.registry import SessionRegistry
from ..transport.shutdown import ShutdownCoordinator


@dataclass
class AppServices:
    """Services partagés par les routes d'une application."""
    settings: Settings
    tools: ToolRegistry
    dispatcher: MethodDispatcher
    registry: SessionRegistry
    coordinator: ShutdownCoordinator
    reaper: SessionReaper


def get_services(request: Request) -> AppServices:
    """Dépendance FastAPI: retourne les services de l'app courante."""
    return request.app.state.services
