"""Tests for the remote graph API client."""

import httpx
import pytest

from deep_graph_mcp.client import GraphClient
from deep_graph_mcp.core.config import ServerConfig
from deep_graph_mcp.core.exceptions import RemoteCallError

pytestmark = pytest.mark.anyio


async def test_post_headers_and_body(fake_api, config):
    client = fake_api.client(config)

    payload = await client.get_code("graph-1", "UserService.authenticate", path="src/user.py")

    assert payload == {"content": "result for /mcp/graphs/get-code"}
    request = fake_api.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api-mcp.codegpt.co/api/v1/mcp/graphs/get-code"
    assert request.headers["accept"] == "application/json"
    assert request.headers["authorization"] == "Bearer sk-test"
    assert request.headers["CodeGPT-Org-Id"] == "org-1"
    assert request.headers["content-type"] == "application/json"
    assert fake_api.bodies[0] == {
        "graphId": "graph-1",
        "name": "UserService.authenticate",
        "path": "src/user.py",
    }


async def test_list_graphs_is_a_bodiless_get(fake_api, config):
    fake_api.respond("/mcp/graphs", [{"id": "g1"}])

    payload = await fake_api.client(config).list_graphs()

    assert payload == [{"id": "g1"}]
    request = fake_api.requests[0]
    assert request.method == "GET"
    assert request.content == b""
    assert "content-type" not in request.headers


async def test_org_header_omitted_without_org(fake_api):
    await fake_api.client(ServerConfig(api_key="sk-x")).nodes_semantic_search("g", "login flow")
    assert "CodeGPT-Org-Id" not in fake_api.requests[0].headers


async def test_repo_url_and_empty_path_dropped(fake_api, config):
    client = fake_api.client(config)

    await client.find_direct_connections("g", "main", repo_url=None, path="")
    await client.get_usage_dependency_links("g", "main", repo_url="acme/api")

    assert fake_api.bodies == [
        {"graphId": "g", "name": "main"},
        {"graphId": "g", "repoUrl": "acme/api", "name": "main"},
    ]


async def test_folder_tree_always_sends_path(fake_api, config):
    await fake_api.client(config).folder_tree_structure("g")
    assert fake_api.bodies[0] == {"graphId": "g", "path": ""}


async def test_custom_api_base(fake_api):
    config = ServerConfig(api_key="sk-x", api_base="http://localhost:9999/api/v1")
    await fake_api.client(config).docs_semantic_search("g", "setup")
    assert str(fake_api.requests[0].url) == "http://localhost:9999/api/v1/mcp/graphs/docs-semantic-search"


async def test_network_error_becomes_remote_call_error(fake_api, config):
    fake_api.error = httpx.ConnectError("connection refused")

    with pytest.raises(RemoteCallError) as exc_info:
        await fake_api.client(config).get_code("g", "main")

    assert "connection refused" in str(exc_info.value)
    assert exc_info.value.path == "/mcp/graphs/get-code"


async def test_http_error_status_becomes_remote_call_error(fake_api, config):
    fake_api.respond("/mcp/graphs/get-code", {"detail": "Unauthorized"}, status=401)

    with pytest.raises(RemoteCallError) as exc_info:
        await fake_api.client(config).get_code("g", "main")

    assert exc_info.value.status == 401
    assert "HTTP 401" in str(exc_info.value)


async def test_malformed_json_becomes_remote_call_error(fake_api, config):
    fake_api.respond_raw("/mcp/graphs/get-code", b"<html>gateway timeout</html>")

    with pytest.raises(RemoteCallError) as exc_info:
        await fake_api.client(config).get_code("g", "main")

    assert "Malformed JSON" in str(exc_info.value)


def test_default_timeout_is_two_minutes(config):
    assert GraphClient(config).timeout == 120


async def test_slow_response_becomes_remote_call_error(fake_api, config):
    fake_api.delay = 1.0
    client = GraphClient(config, timeout=0.05, transport=httpx.MockTransport(fake_api.handler))

    with pytest.raises(RemoteCallError) as exc_info:
        await client.get_code("g", "main")

    assert "no response within 0.05s" in str(exc_info.value)
    assert exc_info.value.path == "/mcp/graphs/get-code"
