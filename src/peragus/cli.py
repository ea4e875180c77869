"""Command line entry point for the notebook MCP server."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from peragus.mcp.config import LOG_LEVELS, TRANSPORTS, ServerConfig, load_server_config
from peragus.mcp.server import NotebookMCPServer
from peragus.mcp.transport import HTTPConfig, HTTPTransport, StdioTransport
from peragus.sessions import SessionStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="peragus-mcp",
        description="Expose Peragus notebook sessions over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # HTTP on the default port
  peragus-mcp

  # stdio, for clients that spawn the server
  peragus-mcp --transport stdio --base-dir ~/notebooks
        """,
    )
    parser.add_argument("--transport", choices=TRANSPORTS, help="Transport (default: http)")
    parser.add_argument("--host", help="HTTP bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="HTTP port (default: 2150)")
    parser.add_argument("--base-dir", type=Path, help="Directory holding session folders")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--config", type=Path, help="Explicit mcp-server.json to load")
    return parser


def resolve_config(args: argparse.Namespace) -> ServerConfig:
    """Layer command line flags over the config files."""
    config = load_server_config(working_dir=Path.cwd(), config_path=args.config)
    return config.with_overrides(
        transport=args.transport,
        host=args.host,
        port=args.port,
        base_dir=args.base_dir,
        log_level=args.log_level,
    )


async def run(config: ServerConfig) -> None:
    """Build the server for config and serve until shutdown."""
    store = SessionStore(config.base_dir)
    server = NotebookMCPServer.create(store, config)

    try:
        if config.transport == "stdio":
            await StdioTransport(server).serve()
        else:
            await HTTPTransport(server, HTTPConfig(host=config.host, port=config.port)).serve()
    finally:
        server.close()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
    except (FileNotFoundError, ValueError, TypeError) as e:
        parser.error(str(e))

    # stdout carries protocol traffic for stdio, so logs always go to stderr
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logger.info(f"Sessions directory: {config.base_dir}")

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
