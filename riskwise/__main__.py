# riskwise/__main__.py
"""
Entry point for the riskwise MCP server.

CRITICAL: Server imports configure_logging() first to prevent stdout pollution.

FastMCP doesn't have built-in lifecycle hooks, so the record store is opened
here before the server starts and closed when it stops.
"""

import asyncio
import logging

# Import server (which configures logging before anything else)
from riskwise.server import initialize_server, mcp, shutdown_server

logger = logging.getLogger(__name__)


async def main() -> None:
    """Open the store, then run the MCP server over stdio."""
    await initialize_server()
    try:
        logger.info("Starting MCP server on stdio transport")
        await mcp.run_stdio_async()
    finally:
        await shutdown_server()


if __name__ == "__main__":
    asyncio.run(main())
