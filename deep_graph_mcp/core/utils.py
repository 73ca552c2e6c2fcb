"""Utility functions for deep graph MCP operations."""

import secrets

from .constants import API_KEY_PREFIX, SESSION_ID_BYTES


def generate_session_id() -> str:
    """Generate an unguessable session identifier."""
    return secrets.token_hex(SESSION_ID_BYTES)


def extract_repo_info(repo_url: str) -> tuple[str, str]:
    """
    Split a repository URL into (org, name).

    Accepts 'org/repo', 'https://github.com/org/repo' and '.git' suffixed forms.
    Raises ValueError if fewer than two path segments are present.
    """
    cleaned = repo_url.strip().rstrip("/")
    if cleaned.endswith(".git"):
        cleaned = cleaned[:-4]
    if "://" in cleaned:
        cleaned = cleaned.split("://", 1)[1]
    segments = [s for s in cleaned.split("/") if s]
    if len(segments) < 2:
        raise ValueError(f"Invalid repository URL: {repo_url}. Expected format org/repo")
    return segments[-2], segments[-1]


def is_api_key_argument(arg: str) -> bool:
    """Check if a positional CLI argument is an API key."""
    return arg.startswith(API_KEY_PREFIX)


def is_repo_argument(arg: str) -> bool:
    """Check if a positional CLI argument is a repository reference."""
    return "/" in arg and not is_api_key_argument(arg)


def set_or_not(value) -> str:
    """Describe a setting without revealing its value."""
    return "SET" if value else "NOT SET"
