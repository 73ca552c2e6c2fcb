"""Starlette application serving the MCP endpoint and health check."""

import contextlib
import logging

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..core.config import ServerConfig
from ..core.constants import (
    HEALTH_ENDPOINT,
    MCP_ENDPOINT,
    SERVER_NAME,
    SERVER_VERSION,
)
from ..core.types import HealthStatus
from .session_manager import HTTPSessionManager

logger = logging.getLogger(__name__)


def create_app(config: ServerConfig, session_manager: HTTPSessionManager | None = None) -> Starlette:
    """Create the HTTP app. The lifespan runs the session manager."""
    session_manager = session_manager or HTTPSessionManager(config)

    async def health_check(request: Request) -> JSONResponse:
        status: HealthStatus = {
            "status": "healthy",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "transport": "http",
            "active_sessions": session_manager.count(),
        }
        return JSONResponse(status)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        """Manage application lifespan."""
        logger.info("Starting MCP Streamable HTTP Server...")
        async with session_manager.run():
            yield
        logger.info("Server stopped")

    app = Starlette(
        routes=[
            Route(HEALTH_ENDPOINT, health_check, methods=["GET"]),
            # ASGI endpoint, all methods reach the session manager
            Route(MCP_ENDPOINT, session_manager),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
                allow_headers=["Content-Type", "Authorization", "mcp-session-id"],
                expose_headers=["mcp-session-id"],
            ),
        ],
        lifespan=lifespan,
    )
    app.state.session_manager = session_manager
    return app


async def run_http(config: ServerConfig, host: str, port: int, log_level: str = "info") -> None:
    """Serve the HTTP app until interrupted."""
    app = create_app(config)

    logger.info(f"{SERVER_NAME} Server running on HTTP port {port}")
    logger.info(f"MCP endpoint: http://{host}:{port}{MCP_ENDPOINT}")
    logger.info(f"Health check: http://{host}:{port}{HEALTH_ENDPOINT}")

    config_uvi = uvicorn.Config(app, host=host, port=port, log_level=log_level)
    server_uvi = uvicorn.Server(config_uvi)
    await server_uvi.serve()
