"""Custom exceptions for deep graph MCP operations."""


class DeepGraphError(Exception):
    """Base exception for deep graph MCP operations."""
    status_code = 500


class MissingCredentialError(DeepGraphError):
    """Raised when no API key can be resolved."""
    status_code = 400

    def __init__(self, message: str = "API key required. Pass config.apiKey as query parameter or set CODEGPT_API_KEY env var."):
        super().__init__(message)


class InvalidSessionError(DeepGraphError):
    """Raised when a request references an unknown session."""
    status_code = 400

    def __init__(self, session_id: str | None = None):
        self.session_id = session_id
        super().__init__("Invalid or missing session ID")


class MethodNotAllowedError(DeepGraphError):
    """Raised for HTTP methods the MCP endpoint does not serve."""
    status_code = 405

    def __init__(self, method: str):
        self.method = method
        super().__init__("Method not allowed")


class ToolValidationError(DeepGraphError):
    """Raised when a tool call is missing a required argument."""
    status_code = 400


class RemoteCallError(DeepGraphError):
    """Raised when a call to the remote graph API fails."""
    status_code = 502

    def __init__(self, path: str, reason: str, status: int | None = None):
        self.path = path
        self.reason = reason
        self.status = status
        super().__init__(f"Request to {path} failed: {reason}")
