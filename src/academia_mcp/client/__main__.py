"""
Point d'entrée de `academia-mcp-check`: suite de conformité contre un serveur en cours.
"""
import argparse
import asyncio
import logging
import sys

from ..core.constants import DEFAULT_MCP_PATH, DEFAULT_PORT
from .conformance import run_conformance_suite


def main(argv=None):
    parser = argparse.ArgumentParser(description="Tests de conformité MCP Streamable HTTP")
    parser.add_argument("--url", default=f"http://localhost:{DEFAULT_PORT}", help="URL de base du serveur")
    parser.add_argument("--mcp-path", default=DEFAULT_MCP_PATH)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, format="%(levelname)s %(message)s")

    print("🧪 TESTS DE CONFORMITÉ MCP (Streamable HTTP)")
    print("=" * 60)
    results = asyncio.run(run_conformance_suite(args.url, mcp_path=args.mcp_path))

    for index, (name, passed) in enumerate(results, start=1):
        print(f"{'✅' if passed else '❌'} {index}. {name}")

    passed_count = sum(1 for _, passed in results if passed)
    print("=" * 60)
    print(f"📊 {passed_count}/{len(results)} vérifications réussies")

    if passed_count != len(results):
        sys.exit(1)


if __name__ == "__main__":
    main()
