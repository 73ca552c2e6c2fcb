#!/usr/bin/env python3
"""
Startup script for the Deep Graph MCP Server.

Usage:
    python -m deep_graph_mcp [API_KEY] [ORG/REPO ...] [--port PORT] [--host HOST]

Runs over stdio unless a port is given, in which case it serves
Streamable HTTP on /mcp.

Environment variables:
    CODEGPT_API_KEY: API key for the remote graph API
    CODEGPT_ORG_ID: Organization ID (optional)
    CODEGPT_GRAPH_ID: Fixed graph ID (optional)
    CODEGPT_REPO_URL: Fixed repository, org/repo (optional)
    CODEGPT_TAG_ERRORS: Tag remote failures as structured JSON (default: off)
    PORT: HTTP port; selects HTTP mode when set
    CODEGPT_HTTP_HOST: HTTP host (default: 0.0.0.0)
    CODEGPT_LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from .core.config import ServerConfig
from .core.constants import DEFAULT_HTTP_HOST

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="CodeGPT Deep Graph MCP Server")
    parser.add_argument("targets", nargs="*", help="API key (sk-...) and/or repositories (org/repo)")
    parser.add_argument("--port", type=int, default=None, help="HTTP port; stdio mode when unset")
    parser.add_argument("--host", default=None, help=f"HTTP host (default: {DEFAULT_HTTP_HOST})")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    # stderr only, stdout carries stdio MCP traffic
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def resolve_port(args: argparse.Namespace) -> int | None:
    if args.port:
        return args.port
    env_port = os.getenv("PORT")
    return int(env_port) if env_port else None


def main(argv: list[str] | None = None) -> None:
    """Select stdio or HTTP mode and serve."""
    load_dotenv()
    args = parse_args(argv)

    log_level = (args.log_level or os.getenv("CODEGPT_LOG_LEVEL", "INFO")).upper()
    configure_logging(log_level)

    try:
        port = resolve_port(args)
        config = ServerConfig.from_env()

        if port is not None:
            from .mcp_http.app import run_http

            host = args.host or os.getenv("CODEGPT_HTTP_HOST", DEFAULT_HTTP_HOST)
            logger.info(f"Starting in HTTP mode (PORT={port})...")
            asyncio.run(run_http(config, host, port, log_level.lower()))
        else:
            from .server import run_stdio

            logger.info("Starting in STDIO mode...")
            asyncio.run(run_stdio(config.with_cli_args(args.targets)))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Error in main(): {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
