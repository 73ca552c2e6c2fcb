"""
Tool registry for the deep graph MCP server.

Declares the graph tools, validates their arguments and turns remote
payloads (or remote failures) into text content.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from mcp.server import Server
from mcp.types import Tool, TextContent

from .client import GraphClient
from .core.config import ServerConfig
from .core.constants import NO_DATA_TEXT, NO_GRAPHS_TEXT
from .core.exceptions import RemoteCallError, ToolValidationError
from .core.types import JSONPayload

logger = logging.getLogger(__name__)

RemoteCall = Callable[[GraphClient, str | None, str | None, dict[str, Any]], Awaitable[JSONPayload]]


# ============================================================================
# Tool Specifications
# ============================================================================

@dataclass(frozen=True)
class ToolSpec:
    """A named graph operation with its parameter schema."""
    name: str
    description: str
    call: RemoteCall
    properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    render: str = "content"  # "content" field, or "json" for the whole document
    fallback: str = NO_DATA_TEXT
    takes_overrides: bool = True


def _required_param(description: str) -> dict[str, Any]:
    return {"type": "string", "minLength": 1, "description": description}


def _optional_param(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


def _override_params(config: ServerConfig) -> dict[str, dict[str, Any]]:
    repository = "Repository to query, in format org/repo. Only used when several repositories are configured."
    if config.is_multi_repo and config.repo_list:
        repository += f" Available repositories: {', '.join(config.repo_list)}"
    return {
        "graphId": {
            "type": "string",
            "description": "Graph ID to query. Overrides the configured graph.",
        },
        "repository": {
            "type": "string",
            "description": repository,
        },
    }


def build_tool_specs(config: ServerConfig) -> list[ToolSpec]:
    """Tool set for a configuration. list-graphs is only offered when no target is fixed."""
    label = config.repository_label
    repo = f"the repository {label}" if label else "the repository"
    specs: list[ToolSpec] = []

    if config.offers_list_graphs:
        specs.append(ToolSpec(
            name="list-graphs",
            description=(
                "List all available repository graphs that you have access to. Returns basic information "
                "about each graph including the graph ID, repository name with branch, and description. "
                "Use this tool when you need to discover available graphs."
            ),
            call=lambda client, graph_id, repo_url, args: client.list_graphs(),
            render="json",
            fallback=NO_GRAPHS_TEXT,
            takes_overrides=False,
        ))

    specs.extend([
        ToolSpec(
            name="get-code",
            description=(
                "Get the complete code implementation of a specific functionality (class, function, method, etc.) "
                f"from {repo} graph. This is the primary tool for code retrieval and should be prioritized over "
                "other tools. The repository is represented as a graph where each node contains code, "
                "documentation, and relationships to other nodes. Use this when you need to examine the actual "
                "implementation of any code entity."
            ),
            call=lambda client, graph_id, repo_url, args: client.get_code(
                graph_id, args["name"], repo_url=repo_url, path=args.get("path")),
            properties={
                "name": _required_param(
                    "The exact name of the functionality to retrieve code for. Names are case-sensitive. "
                    "For methods, include the parent class name as 'ClassName.methodName'. For nested classes, "
                    "use 'OuterClass.InnerClass'. Examples: 'getUserById', 'UserService.authenticate'"
                ),
                "path": _optional_param(
                    "The origin file path where the functionality is defined. Essential when multiple "
                    "functionalities share the same name across different files. Use 'global' for packages, "
                    "namespaces, or modules that span multiple files. Examples: 'src/services/user.service.ts', 'global'"
                ),
            },
            required=("name",),
        ),
        ToolSpec(
            name="find-direct-connections",
            description=(
                f"Explore the immediate relationships of a functionality within the code graph of {repo}. "
                "This reveals first-level connections including: parent functionalities that reference this "
                "node, child functionalities that this node directly calls or uses, declaration/definition "
                "relationships, and usage patterns. Essential for understanding code dependencies and architecture."
            ),
            call=lambda client, graph_id, repo_url, args: client.find_direct_connections(
                graph_id, args["name"], repo_url=repo_url, path=args.get("path")),
            properties={
                "name": _required_param(
                    "The exact name of the functionality to analyze connections for. Names are case-sensitive. "
                    "For methods, include the parent class name as 'ClassName.methodName'. "
                    "Examples: 'processPayment', 'UserController.createUser'"
                ),
                "path": _optional_param(
                    "The origin file path of the functionality. Critical when multiple functionalities have "
                    "identical names in different files. Use 'global' for entities that span multiple files."
                ),
            },
            required=("name",),
        ),
        ToolSpec(
            name="nodes-semantic-search",
            description=(
                f"Search for code functionalities across {repo} graph using semantic similarity based on "
                "natural language queries. Finds relevant functions, classes, methods, and other code entities "
                "that match the conceptual meaning of your query, even if they don't contain the exact keywords."
            ),
            call=lambda client, graph_id, repo_url, args: client.nodes_semantic_search(
                graph_id, args["query"], repo_url=repo_url),
            properties={
                "query": _required_param(
                    "A natural language description of the functionality you're looking for. Be specific about "
                    "the behavior, purpose, or domain. Examples: 'user authentication and login', "
                    "'database connection pooling'"
                ),
            },
            required=("query",),
        ),
        ToolSpec(
            name="docs-semantic-search",
            description=(
                f"Search through the documentation of {repo} using semantic similarity to find relevant "
                "information, guides, API documentation, README content, and explanatory materials. Targets "
                "documentation files rather than code; use it for setup, architecture and usage questions."
            ),
            call=lambda client, graph_id, repo_url, args: client.docs_semantic_search(
                graph_id, args["query"], repo_url=repo_url),
            properties={
                "query": _required_param(
                    "A natural language query describing the documentation or information you're seeking. "
                    "Examples: 'how to set up the development environment', 'deployment instructions'"
                ),
            },
            required=("query",),
            render="json",
        ),
        ToolSpec(
            name="folder-tree-structure",
            description=(
                f"Returns the folder tree structure of the given folder path from {repo} graph. Useful to "
                "understand what files and subfolders are inside the given folder. To access a file content, "
                "use the get-code tool."
            ),
            call=lambda client, graph_id, repo_url, args: client.folder_tree_structure(
                graph_id, repo_url=repo_url, path=args.get("path")),
            properties={
                "path": _optional_param(
                    "The path to the folder to get the tree structure for. Example: 'src/components'. "
                    "Leave empty to get the root folder tree structure."
                ),
            },
        ),
        ToolSpec(
            name="get-usage-dependency-links",
            description=(
                "Generate a comprehensive adjacency list showing all functionalities that would be affected by "
                f"changes to a specific code entity in {repo}. Performs deep dependency analysis through the "
                "code graph to identify the complete impact radius of modifications, formatted as "
                "'file_path::functionality_name' pairs."
            ),
            call=lambda client, graph_id, repo_url, args: client.get_usage_dependency_links(
                graph_id, args["name"], repo_url=repo_url, path=args.get("path")),
            properties={
                "name": _required_param(
                    "The exact name of the functionality to analyze dependencies for. Names are case-sensitive. "
                    "This will be the root node for dependency traversal. "
                    "Examples: 'DatabaseService.connect', 'validateUserInput'"
                ),
                "path": _optional_param(
                    "The origin file path where the functionality is defined. Required when multiple "
                    "functionalities share the same name across different files."
                ),
            },
            required=("name",),
        ),
    ])
    return specs


# ============================================================================
# Registry
# ============================================================================

class ToolRegistry:
    """Binds the graph tools for one configuration onto MCP servers."""

    def __init__(self, config: ServerConfig, client: GraphClient | None = None):
        self.config = config
        self.client = client or GraphClient(config)
        # Availability is fixed at registration time
        self.specs = {spec.name: spec for spec in build_tool_specs(config)}
        self._overrides = _override_params(config)

    def list_tools(self) -> list[Tool]:
        tools = []
        for spec in self.specs.values():
            properties = dict(spec.properties)
            if spec.takes_overrides:
                properties.update(self._overrides)
            tools.append(Tool(
                name=spec.name,
                description=spec.description,
                inputSchema={
                    "type": "object",
                    "properties": properties,
                    "required": list(spec.required),
                },
            ))
        return tools

    async def call(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """
        Run one tool call.

        Raises ToolValidationError for unknown tools or missing required
        arguments, before any network call. Remote failures come back as text.
        """
        spec = self.specs.get(name)
        if spec is None:
            raise ToolValidationError(f"Unknown tool: {name}")

        arguments = arguments or {}
        for param in spec.required:
            if not arguments.get(param):
                raise ToolValidationError(f"{param} is required")

        graph_id = self.config.resolve_graph_id(arguments.get("graphId"))
        repo_url = self.config.resolve_repository(arguments.get("repository"))

        try:
            payload = await spec.call(self.client, graph_id, repo_url, arguments)
        except RemoteCallError as e:
            logger.error(f"Error making CodeGPT request for {name}: {e}")
            return [TextContent(type="text", text=self._error_text(e))]

        return [TextContent(type="text", text=self._render(spec, payload))]

    def _render(self, spec: ToolSpec, payload: JSONPayload) -> str:
        if spec.render == "json":
            # Empty documents still render; only a null body falls back
            return spec.fallback if payload is None else json.dumps(payload, indent=2)
        content = payload.get("content") if isinstance(payload, dict) else None
        if not content:
            return spec.fallback
        return content if isinstance(content, str) else json.dumps(content, indent=2)

    def _error_text(self, error: RemoteCallError) -> str:
        if self.config.tag_remote_errors:
            return json.dumps({"error": {"type": "remote_call_failure", "message": str(error)}})
        return str(error)

    def bind(self, server: Server) -> None:
        """Register list_tools and call_tool handlers on a server."""
        tools = self.list_tools()

        @server.list_tools()
        async def list_tools() -> list[Tool]:
            return tools

        @server.call_tool()
        async def call_tool(name: str, arguments: dict) -> list[TextContent]:
            return await self.call(name, arguments)
