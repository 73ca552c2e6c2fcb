"""Configuration resolution for the deep graph MCP server."""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from .constants import CODEGPT_API_BASE
from .utils import extract_repo_info, is_api_key_argument, is_repo_argument, set_or_not

logger = logging.getLogger(__name__)


class QueryOverrides(BaseModel):
    """Per-request configuration passed as query parameters."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    api_key: str | None = Field(None, alias="config.apiKey", description="CodeGPT API key for authentication")
    org_id: str | None = Field(None, alias="config.orgId", description="CodeGPT Organization ID")
    graph_id: str | None = Field(None, alias="config.graphId", description="Specific graph ID to use")
    repo_url: str | None = Field(None, alias="config.repoUrl", description="Repository URL in format org/repo")


@dataclass(frozen=True)
class ServerConfig:
    """Effective credential and target set for one process, request or session."""
    api_key: str | None = None
    org_id: str | None = None
    graph_id: str | None = None
    repo_url: str | None = None
    repo_list: tuple[str, ...] = ()
    is_multi_repo: bool = False
    api_base: str = CODEGPT_API_BASE
    tag_remote_errors: bool = False

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create configuration from environment variables."""
        return cls(
            api_key=os.getenv("CODEGPT_API_KEY") or None,
            org_id=os.getenv("CODEGPT_ORG_ID") or None,
            graph_id=os.getenv("CODEGPT_GRAPH_ID") or None,
            repo_url=os.getenv("CODEGPT_REPO_URL") or None,
            api_base=os.getenv("CODEGPT_API_BASE", CODEGPT_API_BASE),
            tag_remote_errors=os.getenv("CODEGPT_TAG_ERRORS", "").lower() in ("1", "true", "yes"),
        )

    def with_cli_args(self, args: list[str]) -> "ServerConfig":
        """
        Apply stdio positional arguments.

        Arguments containing '/' are repositories; more than one switches to
        multi-repo mode. An argument starting with 'sk-' is the API key.
        """
        repo_urls = [arg for arg in args if is_repo_argument(arg)]
        api_key = next((arg for arg in args if is_api_key_argument(arg)), None)

        if len(repo_urls) > 1:
            return replace(
                self,
                is_multi_repo=True,
                repo_list=tuple(repo_urls),
                repo_url=None,
                api_key=api_key or self.api_key,
            )
        if len(repo_urls) == 1:
            return replace(self, repo_url=repo_urls[0], api_key=api_key or self.api_key)
        if api_key:
            return replace(self, api_key=api_key)
        return self

    def with_query_overrides(self, params: Mapping[str, Any]) -> "ServerConfig":
        """Return a copy with non-empty query parameter overrides applied."""
        overrides = QueryOverrides.model_validate(dict(params))
        changes = {
            field: value
            for field, value in overrides.model_dump().items()
            if value
        }
        return replace(self, **changes) if changes else self

    @property
    def offers_list_graphs(self) -> bool:
        """list-graphs is only useful when no target graph or repository is fixed."""
        return not self.graph_id and not self.repo_url and not self.is_multi_repo

    @property
    def repository_label(self) -> str:
        """'org/repo' label of the single configured repository, or ''."""
        if not self.repo_url or self.is_multi_repo:
            return ""
        try:
            org, name = extract_repo_info(self.repo_url)
        except ValueError as e:
            logger.error(str(e))
            return ""
        return f"{org}/{name}"

    def resolve_graph_id(self, override: str | None = None) -> str | None:
        """Explicit override wins over the configured graph id."""
        return override or self.graph_id

    def resolve_repository(self, override: str | None = None) -> str | None:
        """Per-call repository in multi-repo mode, configured repo URL otherwise."""
        if self.is_multi_repo:
            return override or None
        return self.repo_url

    def describe(self) -> dict[str, str]:
        """Settings state for diagnostics, without revealing values."""
        return {
            "CODEGPT_API_KEY": set_or_not(self.api_key),
            "CODEGPT_ORG_ID": set_or_not(self.org_id),
            "CODEGPT_GRAPH_ID": set_or_not(self.graph_id),
            "CODEGPT_REPO_URL": set_or_not(self.repo_url),
            "IS_MULTI_REPO": set_or_not(self.is_multi_repo),
            "REPO_LIST": set_or_not(self.repo_list),
        }
