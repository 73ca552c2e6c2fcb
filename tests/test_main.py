"""Tests for the process entrypoint and stdio startup checks."""

import pytest

import deep_graph_mcp.__main__ as entrypoint
from deep_graph_mcp.core.config import ServerConfig
from deep_graph_mcp.core.exceptions import MissingCredentialError
from deep_graph_mcp.server import check_stdio_config


@pytest.fixture
def recorded(clean_env):
    """Replace both serving modes with recorders."""
    calls = {}

    async def fake_stdio(config):
        calls["stdio"] = config

    async def fake_http(config, host, port, log_level="info"):
        calls["http"] = (config, host, port)

    clean_env.setattr(entrypoint, "load_dotenv", lambda: None)
    clean_env.setattr("deep_graph_mcp.server.run_stdio", fake_stdio)
    clean_env.setattr("deep_graph_mcp.mcp_http.app.run_http", fake_http)
    return calls


def test_stdio_is_default(recorded, clean_env):
    clean_env.setenv("CODEGPT_API_KEY", "sk-env")

    entrypoint.main([])

    assert "http" not in recorded
    assert recorded["stdio"].api_key == "sk-env"


def test_stdio_two_repositories_enable_multi_repo(recorded):
    entrypoint.main(["sk-cli", "acme/api", "acme/web"])

    config = recorded["stdio"]
    assert config.is_multi_repo
    assert config.repo_list == ("acme/api", "acme/web")
    assert config.repo_url is None
    assert config.api_key == "sk-cli"


def test_port_env_selects_http(recorded, clean_env):
    clean_env.setenv("PORT", "8081")
    clean_env.setenv("CODEGPT_API_KEY", "sk-env")

    entrypoint.main([])

    config, host, port = recorded["http"]
    assert port == 8081
    assert host == "0.0.0.0"
    assert config.api_key == "sk-env"
    assert "stdio" not in recorded


def test_port_flag_selects_http(recorded):
    entrypoint.main(["--port", "9000", "--host", "127.0.0.1"])
    assert recorded["http"][1:] == ("127.0.0.1", 9000)


def test_http_mode_ignores_positional_targets(recorded):
    entrypoint.main(["--port", "9000", "acme/api"])
    assert recorded["http"][0].repo_url is None


def test_invalid_port_exits_nonzero(recorded, clean_env):
    clean_env.setenv("PORT", "not-a-port")
    with pytest.raises(SystemExit) as exc_info:
        entrypoint.main([])
    assert exc_info.value.code == 1


def test_stdio_without_credentials_exits_nonzero(clean_env):
    clean_env.setattr(entrypoint, "load_dotenv", lambda: None)
    with pytest.raises(SystemExit) as exc_info:
        entrypoint.main([])
    assert exc_info.value.code == 1


class TestStdioConfigCheck:

    def test_requires_some_credential(self):
        with pytest.raises(MissingCredentialError):
            check_stdio_config(ServerConfig())

    @pytest.mark.parametrize("config", [
        ServerConfig(api_key="sk-x"),
        ServerConfig(repo_url="acme/api"),
        ServerConfig(is_multi_repo=True, repo_list=("a/b", "c/d")),
    ])
    def test_accepts_key_or_repository(self, config):
        check_stdio_config(config)
