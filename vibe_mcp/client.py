"""
MCP client for a vibe-mcp server process.

Launches the server as a subprocess, performs the MCP handshake and
forwards tool calls. Used for smoke checks and integration tests.

Usage:
    with McpClient() as client:
        tools = client.list_tools()
        result = client.call_tool("vibe_status", {"projectPath": "."})
        print(result["content"][0]["text"])
"""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import Any

from vibe_mcp import __version__
from vibe_mcp.server import PROTOCOL_VERSION
from vibe_mcp.transport import JsonRpcRequest, JsonRpcResponse

logger = logging.getLogger(__name__)


class McpError(RuntimeError):
    """The server answered with a JSON-RPC error."""

    def __init__(self, method: str, error: dict):
        super().__init__(f"{method} failed: {error.get('message', error)}")
        self.code = error.get("code")
        self.error = error


class McpClient:
    """
    Drives one vibe-mcp server process over its stdin/stdout pipes.

    Each request is written as one JSON line and answered by one line on
    the server's stdout. Server logs go to its stderr and are only read
    back when the process dies mid-request.
    """

    def __init__(self, command: list[str] | None = None, env: dict[str, str] | None = None):
        """
        Args:
            command: Command to launch the server; defaults to this interpreter
                     running `-m vibe_mcp`.
            env: Environment for the server process; inherits ours when None.
        """
        self.command = command or [sys.executable, "-m", "vibe_mcp"]
        self.env = env
        self.server_info: dict = {}
        self.returncode: int | None = None
        self._process: subprocess.Popen | None = None
        self._last_id = 0

    def __enter__(self) -> "McpClient":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def start(self) -> dict:
        """Launch the server and run the initialize handshake."""
        if self.running:
            raise RuntimeError("Server process already running")

        logger.info(f"Launching {' '.join(self.command)}")
        self._process = subprocess.Popen(
            self.command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=self.env,
            bufsize=1,
        )
        self.returncode = None

        result = self.request("initialize", {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": "vibe-mcp-client", "version": __version__},
        })
        self._write(JsonRpcRequest(method="notifications/initialized", params={}))
        self.server_info = result.get("serverInfo", {})
        logger.info(f"Connected to {self.server_info.get('name')} {self.server_info.get('version')}")
        return result

    def stop(self) -> None:
        """SIGTERM the server and record its exit code in `returncode`."""
        process, self._process = self._process, None
        if process is None:
            return
        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
        for pipe in (process.stdin, process.stdout, process.stderr):
            if pipe:
                pipe.close()
        self.returncode = process.returncode
        logger.info(f"Server process exited with {self.returncode}")

    def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """
        Send a request and return its result.

        Raises:
            McpError: the server answered with a JSON-RPC error.
            RuntimeError: the server process is gone.
        """
        self._last_id += 1
        self._write(JsonRpcRequest(method=method, params=params or {}, id=self._last_id))

        line = self._process.stdout.readline()
        if not line:
            stderr = self._process.stderr.read() if self._process.stderr else ""
            raise RuntimeError(f"Server exited during {method}: {stderr[-500:]}")

        response = JsonRpcResponse.from_json(line)
        if response.is_error:
            raise McpError(method, response.error)
        return response.result

    def _write(self, message: JsonRpcRequest) -> None:
        if not self.running:
            raise RuntimeError("Server process is not running; call start() first")
        self._process.stdin.write(message.to_json() + "\n")
        self._process.stdin.flush()

    def ping(self) -> bool:
        return self.request("ping") == {}

    def list_tools(self) -> list[dict]:
        return self.request("tools/list").get("tools", [])

    def call_tool(self, name: str, arguments: dict[str, Any]) -> dict:
        """Call a tool; returns the raw {content, isError} result."""
        return self.request("tools/call", {"name": name, "arguments": arguments})
