"""
Vibe MCP server.

The server is a single process that:
1. Reads JSON-RPC messages from stdin (one per line)
2. Dispatches tools/call to the registered tools
3. Writes JSON-RPC responses to stdout

Tool failures come back as normal results with isError=true. The one
exception is an unknown tool name: that is a routing failure and is
answered with a JSON-RPC error (-32602) instead.

    from vibe_mcp.server import VibeMCPServer

    server = VibeMCPServer()
    server.start()      # blocks until stdin closes or SIGINT/SIGTERM
"""

from __future__ import annotations

import enum
import json
import logging
import signal
import sys
from abc import ABC, abstractmethod
from typing import Any

from vibe_mcp import __version__
from vibe_mcp.envelopes import ToolCallRequest, ToolResult
from vibe_mcp.transport import JsonRpcResponse, StdioServerTransport

SERVER_NAME = "vibe-mcp"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ToolNotFoundError(ValueError):
    """A tools/call named a tool that is not registered."""

    def __init__(self, name: str, available: list[str]):
        super().__init__(f"Tool not found: {name}")
        self.name = name
        self.available = available


class MethodNotFoundError(ValueError):
    pass


class ServerState(enum.Enum):
    CONSTRUCTED = "constructed"
    RUNNING = "running"
    STOPPED = "stopped"


class ToolHandler(ABC):
    """
    Base class for a tool.

    Subclasses define what a tool does. The server handles transport.
    call() must never raise: failures are returned as error results.
    """

    name: str = ""
    description: str = ""
    input_schema: dict[str, Any] = {}

    @abstractmethod
    def call(self, request: ToolCallRequest) -> ToolResult:
        ...

    def get_schema(self) -> dict:
        """Return the tool definition for discovery."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class VibeMCPServer:
    """
    MCP tool server for vibe-cli.

    Protocol:
    - One JSON-RPC message per line
    - Supports methods:
        - "initialize" → protocol handshake
        - "ping"       → health check
        - "tools/list" → returns registered tool definitions
        - "tools/call" → calls a tool by name with arguments
    - Messages without an id are notifications and get no response
    """

    def __init__(
        self,
        tools: list[ToolHandler] | None = None,
        wrapper: Any = None,
        transport: StdioServerTransport | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Args:
            tools: Tools to register. Defaults to the four vibe tools.
            wrapper: VibeCliWrapper shared by the default tools.
            transport: Defaults to stdin/stdout.
            logger: Server logger; tools and the wrapper log to children of it.
        """
        self.logger = logger or logging.getLogger("vibe_mcp")
        self.transport = transport or StdioServerTransport()
        self.state = ServerState.CONSTRUCTED
        self._handlers: dict[str, ToolHandler] = {}

        if tools is None:
            from vibe_mcp.tools import build_tools
            from vibe_mcp.wrapper import VibeCliWrapper

            wrapper = wrapper or VibeCliWrapper(logger=self.logger.getChild("wrapper"))
            tools = build_tools(wrapper, self.logger)

        for tool in tools:
            self.register(tool)
        self.logger.info(f"Registered {len(self._handlers)} tools: {list(self._handlers)}")

    def register(self, handler: ToolHandler) -> None:
        """Register a tool handler."""
        if not handler.name:
            raise ValueError(f"ToolHandler {handler.__class__.__name__} has no name")
        if handler.name in self._handlers:
            raise ValueError(f"Tool already registered: {handler.name}")
        self._handlers[handler.name] = handler

    # ── Tools ────────────────────────────────────────────────

    def list_tools(self) -> list[dict]:
        tools = [h.get_schema() for h in self._handlers.values()]
        self.logger.debug(f"Listed {len(tools)} tools")
        return tools

    def call_tool(self, request: ToolCallRequest) -> ToolResult:
        """
        Route a tool call to its handler.

        Raises:
            ToolNotFoundError: no tool is registered under request.name.
        """
        self.logger.info(f"Tool call initiated: {request.name}")

        handler = self._handlers.get(request.name)
        if handler is None:
            error = ToolNotFoundError(request.name, list(self._handlers))
            self.logger.error(f"{error} (available: {error.available})")
            raise error

        result = handler.call(request)
        if result.is_error:
            self.logger.warning(f"Tool returned an error result: {request.name}")
        else:
            self.logger.info(f"Tool completed successfully: {request.name}")
        return result

    # ── Lifecycle ────────────────────────────────────────────

    def start(self, install_signal_handlers: bool = True) -> None:
        """
        Connect the transport and serve until input ends or a signal arrives.

        Raises:
            RuntimeError: the server was already started.
        """
        if self.state is not ServerState.CONSTRUCTED:
            raise RuntimeError(f"Server cannot be started from state '{self.state.value}'")

        if install_signal_handlers:
            signal.signal(signal.SIGINT, self._handle_signal)
            signal.signal(signal.SIGTERM, self._handle_signal)

        self.logger.info("Starting Vibe MCP Server")
        self.transport.connect()
        self.state = ServerState.RUNNING
        self.logger.info("Server started successfully")

        try:
            self.serve()
        finally:
            self.stop()

    def stop(self) -> None:
        if self.state is not ServerState.RUNNING:
            return
        self.logger.info("Shutting down server...")
        self.transport.close()
        self.state = ServerState.STOPPED

    def _handle_signal(self, signum: int, frame: Any) -> None:
        self.logger.info(f"Received {signal.Signals(signum).name}")
        self.stop()
        sys.exit(0)

    def serve(self) -> None:
        """Main loop: read messages, dispatch, write responses."""
        for line in self.transport.read_lines():
            line = line.strip()
            if not line:
                continue
            response = self.handle_line(line)
            if response is not None:
                self.transport.send(response)

    # ── Dispatch ─────────────────────────────────────────────

    def handle_line(self, line: str) -> dict | None:
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            self.logger.error(f"Parse error: {e}")
            return JsonRpcResponse.failure(None, PARSE_ERROR, f"Parse error: {e}").to_dict()
        return self.handle_message(message)

    def handle_message(self, message: Any) -> dict | None:
        """Handle one decoded JSON-RPC message; None for notifications."""
        if not isinstance(message, dict):
            return JsonRpcResponse.failure(None, INVALID_REQUEST, "Invalid Request").to_dict()

        method = message.get("method", "")
        if "id" not in message:
            self.logger.debug(f"Notification received: {method}")
            return None

        request_id = message.get("id")
        params = message.get("params") or {}

        try:
            result = self._dispatch(method, params)
        except ToolNotFoundError as e:
            return JsonRpcResponse.failure(
                request_id, INVALID_PARAMS, str(e), data={"availableTools": e.available}
            ).to_dict()
        except MethodNotFoundError as e:
            return JsonRpcResponse.failure(request_id, METHOD_NOT_FOUND, str(e)).to_dict()
        except Exception as e:
            self.logger.error(f"Server error while handling '{method}': {e}")
            return JsonRpcResponse.failure(request_id, INTERNAL_ERROR, str(e)).to_dict()

        return JsonRpcResponse(id=request_id, result=result).to_dict()

    def _dispatch(self, method: str, params: dict) -> Any:
        """Route a method call to the appropriate handler."""

        if method == "initialize":
            return {
                "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            }

        if method == "ping":
            return {}

        if method == "tools/list":
            return {"tools": self.list_tools()}

        if method == "tools/call":
            return self.call_tool(ToolCallRequest.from_params(params)).to_dict()

        raise MethodNotFoundError(f"Method not found: {method}")
