"""Core deep graph MCP components."""

from .types import GraphQuery, HealthStatus, JSONPayload
from .constants import *
from .exceptions import *
from .config import ServerConfig, QueryOverrides
from .utils import generate_session_id, extract_repo_info, is_api_key_argument, is_repo_argument, set_or_not

__all__ = [
    # Types
    "GraphQuery",
    "HealthStatus",
    "JSONPayload",
    # Constants
    "SERVER_NAME",
    "SERVER_VERSION",
    "CODEGPT_API_BASE",
    "REQUEST_TIMEOUT_SECONDS",
    "SESSION_ID_BYTES",
    "MCP_ENDPOINT",
    "HEALTH_ENDPOINT",
    "DEFAULT_HTTP_HOST",
    "NO_DATA_TEXT",
    "NO_GRAPHS_TEXT",
    "API_KEY_PREFIX",
    # Exceptions
    "DeepGraphError",
    "MissingCredentialError",
    "InvalidSessionError",
    "MethodNotAllowedError",
    "ToolValidationError",
    "RemoteCallError",
    # Configuration
    "ServerConfig",
    "QueryOverrides",
    # Utils
    "generate_session_id",
    "extract_repo_info",
    "is_api_key_argument",
    "is_repo_argument",
    "set_or_not",
]
