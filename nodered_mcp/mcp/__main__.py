"""Entry point: ``python -m nodered_mcp.mcp`` (or the ``nodered-mcp`` script).

Starts the Node-RED backup MCP server over stdio.

Environment variables
---------------------
NODE_RED_URL              Node-RED base URL (default ``http://localhost:1880``).
NODE_RED_TOKEN            Admin API bearer token.
NODE_RED_TIMEOUT          Request timeout in seconds (default ``30``).
NODE_RED_USER_DIR         Node-RED user directory (default ``~/.node-red``).
MCP_BACKUP_PATH           Directory to hold ``.mcp-backups`` (default: user dir).
MCP_MAX_BACKUPS           Capacity of a new archive (default ``10``).
MCP_BACKUP_AUTO_CLEANUP   Evict oldest backups past capacity (default ``true``).
NODE_RED_MCP_LOG_LEVEL    Python log level (default ``WARNING``).

Command-line flags override the corresponding environment variables.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys
from argparse import ArgumentParser

from dotenv import load_dotenv

from nodered_mcp import __version__
from nodered_mcp.backup import BackupService, BackupSettings
from nodered_mcp.client import NodeRedClient, Settings
from nodered_mcp.mcp.server import create_server
from nodered_mcp.mcp.tools import BackupMCPTools


def _build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="nodered-mcp", description="Node-RED MCP server with flow backups")
    parser.add_argument("-u", "--url", help="Node-RED base URL")
    parser.add_argument("-t", "--token", help="Admin API access token")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--backup-path", help="Custom backup directory path")
    parser.add_argument("--max-backups", type=int, help="Maximum number of backups to keep")
    parser.add_argument("-V", "--version", action="version", version=__version__)
    return parser


async def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = _build_parser().parse_args(argv)

    settings = Settings.from_env()
    if args.url:
        settings = dataclasses.replace(settings, api_endpoint=args.url.rstrip("/"))
    if args.token:
        settings = dataclasses.replace(settings, api_token=args.token)

    logging.basicConfig(
        level="DEBUG" if args.verbose else settings.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    overrides = {}
    if args.backup_path:
        overrides["backup_path"] = args.backup_path
    if args.max_backups is not None:
        overrides["max_backups"] = args.max_backups
    backup_settings = BackupSettings(**overrides)

    client = NodeRedClient(settings)
    try:
        service = BackupService(client.get_flows, backup_settings)
        tools = BackupMCPTools(service, client)
        server = create_server(tools)

        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            init_options = server.create_initialization_options()
            await server.run(read_stream, write_stream, init_options)
    finally:
        await client.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
