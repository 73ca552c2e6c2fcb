"""HTTP server components for the shared MCP server."""

from .session_manager import HTTPSessionManager
from .app import create_app, run_http

__all__ = [
    "HTTPSessionManager",
    "create_app",
    "run_http",
]
