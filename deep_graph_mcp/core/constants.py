"""Constants for the deep graph MCP server."""

# Server identity
SERVER_NAME = "CodeGPT Deep Graph MCP"
SERVER_VERSION = "1.2.0"

# Remote graph API
CODEGPT_API_BASE = "https://api-mcp.codegpt.co/api/v1"
REQUEST_TIMEOUT_SECONDS = 120.0

# Session
SESSION_ID_BYTES = 16

# HTTP surface
MCP_ENDPOINT = "/mcp"
HEALTH_ENDPOINT = "/health"
DEFAULT_HTTP_HOST = "0.0.0.0"

# Fallback texts for empty remote payloads
NO_DATA_TEXT = "No response data available"
NO_GRAPHS_TEXT = "No graphs available"

# Positional argument prefix that marks an API key
API_KEY_PREFIX = "sk-"
