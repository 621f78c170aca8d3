"""
Point d'entrée pour `python -m academia_mcp`.
"""
import argparse
import logging
import sys
from dataclasses import replace
from types import FrameType
from typing import Optional

import uvicorn

from .config.loader import load_settings
from .core.database import init_database, seed_database
from .core.exceptions import AcademiaMCPError
from .main import create_app
from .transport.shutdown import ShutdownCoordinator


class MCPServer(uvicorn.Server):
    """Serveur uvicorn qui déclenche le drain des sessions dès le signal d'arrêt.

    Sans cela, uvicorn attendrait la fin des flux SSE ouverts avant de lancer
    le shutdown du lifespan.
    """

    def __init__(self, config: uvicorn.Config, coordinator: ShutdownCoordinator):
        super().__init__(config)
        self.coordinator = coordinator
        coordinator.set_stop_listener(self._stop_accepting)

    def _stop_accepting(self) -> None:
        self.should_exit = True

    def handle_exit(self, sig: int, frame: Optional[FrameType]) -> None:
        self.coordinator.request_shutdown(sig)
        super().handle_exit(sig, frame)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Academia MCP Server (Streamable HTTP)")
    parser.add_argument("--host", default=None, help="Host (défaut: config.toml puis 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (défaut: config.toml puis 3002)")
    parser.add_argument("--db", default=None, help="Chemin de la base SQLite")
    parser.add_argument("--config", default=None, help="Chemin de config.toml")
    parser.add_argument("--seed", action="store_true", help="Initialiser/peupler la base puis quitter")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    return parser


def main(argv=None):
    """Fonction principale."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config)
    except AcademiaMCPError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(2)

    server_cfg = settings.server
    if args.host:
        server_cfg = replace(server_cfg, host=args.host)
    if args.port:
        server_cfg = replace(server_cfg, port=args.port)
    database_cfg = replace(settings.database, path=args.db) if args.db else settings.database
    settings = replace(settings, server=server_cfg, database=database_cfg)

    if args.seed:
        init_database(settings.database.path)
        inserted = seed_database(settings.database.path)
        print(f"✅ Base {settings.database.path}: {inserted} exercice(s) inséré(s)")
        return

    print(f"🚀 Démarrage d'Academia MCP sur {server_cfg.host}:{server_cfg.port}{server_cfg.mcp_path}")

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=server_cfg.host,
        port=server_cfg.port,
        log_level=args.log_level,
    )
    MCPServer(config, app.state.services.coordinator).run()


if __name__ == "__main__":
    main()
