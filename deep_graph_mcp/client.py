"""HTTP client for the remote CodeGPT graph API."""

import json
import logging
from typing import Any

import anyio
import httpx

from .core.config import ServerConfig
from .core.constants import REQUEST_TIMEOUT_SECONDS
from .core.exceptions import RemoteCallError
from .core.types import GraphQuery, JSONPayload

logger = logging.getLogger(__name__)


class GraphClient:
    """Issues one authenticated call per logical graph operation."""

    def __init__(
        self,
        config: ServerConfig,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.timeout = timeout
        self._transport = transport

    def _headers(self, with_body: bool) -> dict[str, str]:
        headers = {
            "accept": "application/json",
            "authorization": f"Bearer {self.config.api_key}",
        }
        if self.config.org_id:
            headers["CodeGPT-Org-Id"] = self.config.org_id
        if with_body:
            headers["content-type"] = "application/json"
        return headers

    async def _request(self, method: str, path: str, body: GraphQuery | None = None) -> JSONPayload:
        url = f"{self.config.api_base}{path}"
        try:
            # One deadline for the whole call; httpx only bounds each phase
            with anyio.fail_after(self.timeout):
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.request(
                        method,
                        url,
                        headers=self._headers(with_body=body is not None),
                        json=body,
                    )
        except TimeoutError as e:
            raise RemoteCallError(path, f"no response within {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            raise RemoteCallError(path, f"{type(e).__name__}: {e}") from e

        if response.is_error:
            raise RemoteCallError(
                path,
                f"HTTP {response.status_code}: {response.text[:200]}",
                status=response.status_code,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RemoteCallError(path, f"Malformed JSON response: {e}", status=response.status_code) from e

    async def _post(self, path: str, body: GraphQuery) -> JSONPayload:
        logger.debug(f"POST {path} graphId={body.get('graphId')}")
        return await self._request("POST", path, body)

    @staticmethod
    def _query(graph_id: str | None, repo_url: str | None, **params: Any) -> GraphQuery:
        body: GraphQuery = {"graphId": graph_id}
        if repo_url:
            body["repoUrl"] = repo_url
        for key, value in params.items():
            if value is not None:
                body[key] = value
        return body

    # ========================================================================
    # Graph operations
    # ========================================================================

    async def list_graphs(self) -> JSONPayload:
        """List graphs the API key has access to."""
        return await self._request("GET", "/mcp/graphs")

    async def get_code(self, graph_id: str | None, name: str,
                       repo_url: str | None = None, path: str | None = None) -> JSONPayload:
        return await self._post(
            "/mcp/graphs/get-code",
            self._query(graph_id, repo_url, name=name, path=path or None),
        )

    async def find_direct_connections(self, graph_id: str | None, name: str,
                                      repo_url: str | None = None, path: str | None = None) -> JSONPayload:
        return await self._post(
            "/mcp/graphs/find-direct-connections",
            self._query(graph_id, repo_url, name=name, path=path or None),
        )

    async def nodes_semantic_search(self, graph_id: str | None, query: str,
                                    repo_url: str | None = None) -> JSONPayload:
        return await self._post(
            "/mcp/graphs/nodes-semantic-search",
            self._query(graph_id, repo_url, query=query),
        )

    async def docs_semantic_search(self, graph_id: str | None, query: str,
                                   repo_url: str | None = None) -> JSONPayload:
        return await self._post(
            "/mcp/graphs/docs-semantic-search",
            self._query(graph_id, repo_url, query=query),
        )

    async def folder_tree_structure(self, graph_id: str | None,
                                    repo_url: str | None = None, path: str | None = None) -> JSONPayload:
        """Folder tree below path; the root when path is empty."""
        return await self._post(
            "/mcp/graphs/folder-tree-structure",
            self._query(graph_id, repo_url, path=path or ""),
        )

    async def get_usage_dependency_links(self, graph_id: str | None, name: str,
                                         repo_url: str | None = None, path: str | None = None) -> JSONPayload:
        return await self._post(
            "/mcp/graphs/get-usage-dependency-links",
            self._query(graph_id, repo_url, name=name, path=path or None),
        )
