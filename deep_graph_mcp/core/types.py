"""Type definitions for remote graph payloads."""

from typing import Any, TypedDict, NotRequired


class GraphQuery(TypedDict):
    """JSON body sent to the remote graph API."""
    graphId: str | None
    repoUrl: NotRequired[str]
    name: NotRequired[str]
    path: NotRequired[str]
    query: NotRequired[str]


class HealthStatus(TypedDict):
    """Health check response."""
    status: str
    server: str
    version: str
    transport: str
    active_sessions: int


JSONPayload = dict[str, Any] | list[Any] | None
