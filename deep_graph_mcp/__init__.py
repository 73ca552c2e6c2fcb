"""MCP server exposing remote code graph queries as tools."""

from .core import SERVER_NAME, SERVER_VERSION, ServerConfig
from .client import GraphClient
from .tools import ToolRegistry
from .server import create_mcp_server, run_stdio

__version__ = SERVER_VERSION

__all__ = [
    "SERVER_NAME",
    "ServerConfig",
    "GraphClient",
    "ToolRegistry",
    "create_mcp_server",
    "run_stdio",
    "__version__",
]
