"""
Transport layer for MCP communication.

Implements:
  - JsonRpcRequest / JsonRpcResponse: the message envelopes
  - StdioServerTransport: JSON-RPC over this process's stdin/stdout

One line = one message. The client side lives in client.py.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Iterator, TextIO

logger = logging.getLogger(__name__)


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request. Without an id it is a notification."""
    method: str
    params: dict[str, Any]
    id: int | str | None = None

    def to_json(self) -> str:
        message: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": self.method,
            "params": self.params,
        }
        if self.id is not None:
            message["id"] = self.id
        return json.dumps(message)


@dataclass
class JsonRpcResponse:
    """JSON-RPC 2.0 response."""
    id: int | str | None
    result: Any = None
    error: dict | None = None

    @classmethod
    def failure(cls, id: int | str | None, code: int, message: str, data: Any = None) -> "JsonRpcResponse":
        error: dict[str, Any] = {"code": code, "message": message}
        if data is not None:
            error["data"] = data
        return cls(id=id, error=error)

    @classmethod
    def from_json(cls, data: str) -> "JsonRpcResponse":
        parsed = json.loads(data)
        return cls(
            id=parsed.get("id"),
            result=parsed.get("result"),
            error=parsed.get("error"),
        )

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {"jsonrpc": "2.0", "id": self.id}
        if self.error is not None:
            message["error"] = self.error
        else:
            message["result"] = self.result
        return message

    @property
    def is_error(self) -> bool:
        return self.error is not None


class StdioServerTransport:
    """
    Server end of the stdio transport.

    stdout carries protocol messages only; diagnostics go to stderr
    through logging.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None):
        self._stdin = stdin
        self._stdout = stdout
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        if self._stdin is None:
            self._stdin = sys.stdin
        if self._stdout is None:
            self._stdout = sys.stdout
        self._connected = True
        logger.debug("Stdio server transport connected")

    def read_lines(self) -> Iterator[str]:
        """Yield incoming lines until input ends or the transport is closed."""
        if not self._connected:
            raise RuntimeError("Transport not connected. Call connect() first.")
        for line in self._stdin:
            if not self._connected:
                break
            yield line

    def send(self, message: dict[str, Any]) -> None:
        if not self._connected:
            raise RuntimeError("Transport not connected. Call connect() first.")
        self._stdout.write(json.dumps(message, default=str) + "\n")
        self._stdout.flush()

    def close(self) -> None:
        if not self._connected:
            return
        self._connected = False
        try:
            self._stdout.flush()
        except (OSError, ValueError):
            pass  # stdout already closed by the peer
        logger.debug("Stdio server transport closed")

