"""Session management for the Streamable HTTP MCP endpoint."""

import contextlib
import json
import logging
from collections.abc import AsyncIterator, Callable

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server import Server
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import Message, Receive, Scope, Send

from ..core.config import ServerConfig
from ..core.exceptions import (
    InvalidSessionError,
    MethodNotAllowedError,
    MissingCredentialError,
)
from ..core.utils import generate_session_id
from ..server import create_mcp_server

logger = logging.getLogger(__name__)

ServerFactory = Callable[[ServerConfig], Server]

_SESSION_HEADER_KEY = MCP_SESSION_ID_HEADER.lower().encode("latin-1")


def carries_request(body: bytes) -> bool:
    """
    Whether a POST body holds at least one JSON-RPC request.

    Notifications and responses are not queued behind in-flight requests,
    so a notifications/cancelled reaches the server while the call it
    cancels is still running. Bodies that do not parse count as requests
    and are left for the transport to reject.
    """
    try:
        message = json.loads(body)
    except ValueError:
        return True
    messages = message if isinstance(message, list) else [message]
    if not messages:
        return True
    return any(not isinstance(m, dict) or ("method" in m and "id" in m) for m in messages)


def _replay(body: bytes, receive: Receive) -> Receive:
    """Hand an already-read body back to the next ASGI app."""
    delivered = False

    async def replay_receive() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay_receive


def _without_session_header(scope: Scope) -> Scope:
    headers = [(k, v) for k, v in scope["headers"] if k.lower() != _SESSION_HEADER_KEY]
    return {**scope, "headers": headers}


class HTTPSessionManager:
    """
    Multiplexes MCP sessions over a single HTTP endpoint.

    Each session owns one StreamableHTTPServerTransport connected to its own
    MCP server, built for the configuration in force when the session was
    created. Sessions are created in two phases: the transport is parked in
    a pending table under a freshly minted id and only committed to the
    session table once it accepts the initialize handshake. The commit runs
    before the response headers carrying the id are sent, so a client can
    never reference a live transport that is not yet registered.

    POST requests and DELETE for one session are serialized. GET streams
    and POSTs carrying only notifications or responses bypass the queue.
    """

    def __init__(
        self,
        config: ServerConfig,
        server_factory: ServerFactory = create_mcp_server,
        json_response: bool = False,
    ):
        self.config = config
        self.server_factory = server_factory
        self.json_response = json_response
        self._sessions: dict[str, StreamableHTTPServerTransport] = {}
        self._pending: dict[str, StreamableHTTPServerTransport] = {}
        self._locks: dict[str, anyio.Lock] = {}
        self._task_group: TaskGroup | None = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Own the task group that per-session servers run in."""
        if self._task_group is not None:
            raise RuntimeError("HTTPSessionManager is already running")

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            logger.info("MCP session manager running")
            try:
                yield
            finally:
                logger.info(f"MCP session manager stopping, closing {self.count()} sessions")
                tg.cancel_scope.cancel()
                self._task_group = None
                self._sessions.clear()
                self._pending.clear()
                self._locks.clear()

    # ========================================================================
    # Routing
    # ========================================================================

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.handle_request(scope, receive, send)

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Route one inbound request to its session transport, or create one."""
        request = Request(scope, receive)
        try:
            await self._route(request, scope, receive, send)
        except (MissingCredentialError, InvalidSessionError, MethodNotAllowedError) as e:
            logger.debug(f"Rejected {request.method} {request.url.path}: {e}")
            response = JSONResponse({"error": str(e)}, status_code=e.status_code)
            await response(scope, receive, send)

    async def _route(self, request: Request, scope: Scope, receive: Receive, send: Send) -> None:
        config = self.config.with_query_overrides(request.query_params)
        if not config.api_key:
            raise MissingCredentialError()

        session_id = request.headers.get(MCP_SESSION_ID_HEADER)

        if request.method == "GET":
            transport = self._require(session_id)
            await transport.handle_request(scope, receive, send)

        elif request.method == "POST":
            if session_id and session_id in self._sessions:
                body = await request.body()
                receive = _replay(body, receive)
                if carries_request(body):
                    await self._delegate(session_id, scope, receive, send)
                else:
                    await self._require(session_id).handle_request(scope, receive, send)
            else:
                await self._create_session(config, scope, receive, send)

        elif request.method == "DELETE":
            self._require(session_id)
            try:
                await self._delegate(session_id, scope, receive, send)
            finally:
                await self._discard(session_id)
                logger.info(f"MCP session deleted: {session_id}")

        else:
            raise MethodNotAllowedError(request.method)

    def _require(self, session_id: str | None) -> StreamableHTTPServerTransport:
        if not session_id or session_id not in self._sessions:
            raise InvalidSessionError(session_id)
        return self._sessions[session_id]

    async def _delegate(self, session_id: str, scope: Scope, receive: Receive, send: Send) -> None:
        """Hand a request to an existing session, one at a time."""
        lock = self._locks[session_id]
        async with lock:
            # The session may have closed while this request was queued
            transport = self._sessions.get(session_id)
            if transport is None:
                raise InvalidSessionError(session_id)
            await transport.handle_request(scope, receive, send)

    # ========================================================================
    # Session creation
    # ========================================================================

    async def _create_session(self, config: ServerConfig, scope: Scope, receive: Receive, send: Send) -> None:
        if self._task_group is None:
            raise RuntimeError("HTTPSessionManager is not running; enter 'async with manager.run()' first")

        session_id = generate_session_id()
        server = self.server_factory(config)
        transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=self.json_response,
        )

        async def run_server(*, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
            async with transport.connect() as (read_stream, write_stream):
                task_status.started()
                try:
                    await server.run(
                        read_stream,
                        write_stream,
                        server.create_initialization_options(),
                        stateless=False,
                    )
                except Exception as e:
                    logger.error(f"MCP session {session_id} crashed: {e}", exc_info=True)
                finally:
                    self._on_transport_closed(transport)

        async def send_and_commit(message: Message) -> None:
            if message["type"] == "http.response.start" and message["status"] < 400:
                self._commit(session_id, transport)
            await send(message)

        self._pending[session_id] = transport
        try:
            await self._task_group.start(run_server)
            # A stale id from an earlier session must not reach the new transport
            await transport.handle_request(_without_session_header(scope), receive, send_and_commit)
        finally:
            self._pending.pop(session_id, None)
            if session_id not in self._sessions and not transport.is_terminated:
                logger.debug(f"Handshake rejected, discarding transport {session_id}")
                await transport.terminate()

    def _commit(self, session_id: str, transport: StreamableHTTPServerTransport) -> None:
        if session_id in self._sessions or transport.is_terminated:
            return
        self._sessions[session_id] = transport
        self._locks[session_id] = anyio.Lock()
        logger.info(f"New MCP session initialized: {session_id}")

    # ========================================================================
    # Session removal
    # ========================================================================

    def _on_transport_closed(self, transport: StreamableHTTPServerTransport) -> None:
        """Drop a closed transport; the id is found by value since it may never have been committed."""
        for table in (self._sessions, self._pending):
            for sid, candidate in list(table.items()):
                if candidate is transport:
                    del table[sid]
                    self._locks.pop(sid, None)
                    logger.info(f"MCP session closed: {sid}")

    async def _discard(self, session_id: str) -> None:
        transport = self._sessions.pop(session_id, None)
        self._locks.pop(session_id, None)
        if transport is not None and not transport.is_terminated:
            await transport.terminate()

    # ========================================================================
    # Introspection
    # ========================================================================

    def count(self) -> int:
        """Return number of active sessions."""
        return len(self._sessions)

    def session_ids(self) -> set[str]:
        return set(self._sessions)

    def get_transport(self, session_id: str) -> StreamableHTTPServerTransport | None:
        return self._sessions.get(session_id)
