"""Shared fixtures for deep graph MCP tests."""

import json
from typing import Any

import anyio
import httpx
import pytest

from deep_graph_mcp.client import GraphClient
from deep_graph_mcp.core.config import ServerConfig


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeGraphAPI:
    """Records remote graph calls and answers with canned payloads."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, tuple[int, Any]] = {}
        self.raw: dict[str, bytes] = {}
        self.error: Exception | None = None
        self.delay = 0.0
        self.active = 0
        self.max_active = 0

    def respond(self, path: str, payload: Any, status: int = 200):
        self.responses[path] = (status, payload)

    def respond_raw(self, path: str, content: bytes):
        self.raw[path] = content

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await anyio.sleep(self.delay)
            if self.error is not None:
                raise self.error
        finally:
            self.active -= 1

        path = request.url.path.removeprefix("/api/v1")
        if path in self.raw:
            return httpx.Response(200, content=self.raw[path])
        status, payload = self.responses.get(path, (200, {"content": f"result for {path}"}))
        return httpx.Response(status, json=payload)

    @property
    def bodies(self) -> list[Any]:
        return [json.loads(r.content) if r.content else None for r in self.requests]

    @property
    def paths(self) -> list[str]:
        return [r.url.path.removeprefix("/api/v1") for r in self.requests]

    def client(self, config: ServerConfig) -> GraphClient:
        return GraphClient(config, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_api():
    return FakeGraphAPI()


@pytest.fixture
def config():
    return ServerConfig(api_key="sk-test", org_id="org-1", graph_id="graph-1")


@pytest.fixture
def clean_env(monkeypatch):
    for var in (
        "CODEGPT_API_KEY",
        "CODEGPT_ORG_ID",
        "CODEGPT_GRAPH_ID",
        "CODEGPT_REPO_URL",
        "CODEGPT_API_BASE",
        "CODEGPT_TAG_ERRORS",
        "CODEGPT_LOG_LEVEL",
        "CODEGPT_HTTP_HOST",
        "PORT",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
