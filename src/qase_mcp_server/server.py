import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from typing import Any, Dict, Optional, Sequence

import mcp.server.stdio
from mcp import types
from mcp.server.lowlevel import Server

from . import __version__
from .client import QaseClient
from .config import Config, get_config
from .dispatcher import dispatch, list_tools
from .utils.errors import ConfigError

# Configure basic logging FIRST (stderr; stdout carries the MCP stream)
logging.basicConfig(level=logging.INFO, format='%(asctime)s - SERVER - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_server(config: Config) -> Server:
    """Build the MCP server for a resolved configuration."""

    @asynccontextmanager
    async def qase_lifespan(server: Server) -> AsyncIterator[dict]:
        """
        Manages the QaseClient lifecycle: one client per server process,
        shared read-only by every tool call.
        """
        logger.info(f"Connecting to Qase at {config.api_url}")
        qase_client = QaseClient(api_token=config.api_token, api_url=config.api_url)
        try:
            yield {"qase_client": qase_client}
        finally:
            qase_client.close()
            logger.info("Qase lifespan context manager exiting.")

    server = Server("qase-mcp-server", version=__version__, lifespan=qase_lifespan)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return list_tools()

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> list[types.TextContent]:
        # Errors propagate; the SDK reports them to the client as tool errors
        return await dispatch(server, name, arguments)

    return server


async def run_stdio(server: Server) -> None:
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main(argv: Optional[Sequence[str]] = None):
    """Entry point for the qase-mcp-server script."""
    try:
        config = get_config(argv)
    except ConfigError as e:
        logger.error(e.message)
        print(f"\n{e.message}", file=sys.stderr)
        print(
            "\nPlease provide a valid API token via --token option or QASE_API_TOKEN environment variable.",
            file=sys.stderr,
        )
        print("Run with --help for more information.", file=sys.stderr)
        sys.exit(1)

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled")
        logger.debug(f"Using Qase API token: {config.masked_token()}")

    logger.info("Starting Qase MCP server...")
    asyncio.run(run_stdio(create_server(config)))


if __name__ == "__main__":
    # This allows running the server directly with `python -m qase_mcp_server.server`
    main()
