"""
Deep Graph MCP Server
Exposes remote code graph queries (code retrieval, dependency analysis,
semantic search, folder structure) as MCP tools.
"""

import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server

from .client import GraphClient
from .core.config import ServerConfig
from .core.constants import SERVER_NAME, SERVER_VERSION
from .core.exceptions import MissingCredentialError
from .tools import ToolRegistry

logger = logging.getLogger(__name__)


def create_mcp_server(config: ServerConfig, client: GraphClient | None = None) -> Server:
    """Create an MCP server with the graph tools bound to one configuration."""
    server = Server(SERVER_NAME, version=SERVER_VERSION)
    ToolRegistry(config, client).bind(server)
    return server


def check_stdio_config(config: ServerConfig) -> None:
    """Fail fast when stdio mode has nothing to authenticate or target with."""
    if not config.api_key and not config.repo_url and not config.is_multi_repo:
        raise MissingCredentialError(
            "CODEGPT_API_KEY is not set. Set it via environment variable or pass as CLI argument."
        )


async def run_stdio(config: ServerConfig) -> None:
    """Serve one long-lived MCP connection over stdin/stdout."""
    logger.info("=== DEBUG INFO ===")
    for setting, state in config.describe().items():
        logger.info(f"{setting}: {state}")
    logger.info("==================")

    check_stdio_config(config)

    server = create_mcp_server(config)

    logger.info(f"{SERVER_NAME} Server running on stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
