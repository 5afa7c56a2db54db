"""
Stdio tool server exposing DigitalOcean App Platform, database and
deployment operations to tool-calling clients.

Run with:
    DO_API_TOKEN=... python -m mobile_api.cloud.server
"""

import logging
import sys
from functools import partial

import anyio
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from mobile_api.cloud.do_client import DigitalOceanClient
from mobile_api.cloud.tools import TOOLS, call_tool
from mobile_api.config import settings

logger = logging.getLogger(__name__)

SERVER_NAME = "digitalocean-mcp-server"


class ToolCallFailed(Exception):
    """Raised inside a tool handler so the result is flagged as an error."""


def create_server(client: DigitalOceanClient) -> Server:
    server = Server(SERVER_NAME, version=settings.APP_VERSION)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=tool["name"],
                description=tool["description"],
                inputSchema=tool["inputSchema"],
            )
            for tool in TOOLS
        ]

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        logger.info("Tool call: %s", name)
        # requests is blocking; keep the event loop free for the transport
        result = await anyio.to_thread.run_sync(partial(call_tool, client, name, arguments or {}))
        if result.is_error:
            raise ToolCallFailed(result.text)
        return [types.TextContent(type="text", text=result.text)]

    return server


async def serve(client: DigitalOceanClient) -> None:
    server = create_server(client)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("DigitalOcean tool server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    # stdout carries the protocol; diagnostics go to stderr
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    if not settings.DO_API_TOKEN:
        logger.error("DIGITALOCEAN_TOKEN environment variable is required")
        sys.exit(1)

    client = DigitalOceanClient(
        settings.DO_API_TOKEN,
        base_url=settings.DO_API_BASE,
        timeout=settings.DO_API_TIMEOUT_SECONDS,
    )
    anyio.run(serve, client)


if __name__ == "__main__":
    main()
