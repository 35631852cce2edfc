"""
Request, result and outcome envelopes.

    ToolCallRequest  — what the transport hands to a tool (name + arguments)
    ToolResult       — the only shape a tool call returns over the protocol
    Outcome          — what every wrapper capability returns internally

Failures never cross the protocol boundary as exceptions. A failed tool
call is a ToolResult with is_error=True and a JSON error body in its text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-01T12:00:00.000Z"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class ToolCallRequest:
    """A single tools/call request."""
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "ToolCallRequest":
        arguments = params.get("arguments")
        return cls(
            name=params.get("name", ""),
            arguments={} if arguments is None else arguments,
        )


@dataclass
class ToolResult:
    """Protocol-visible tool response."""
    content: list[dict[str, str]]
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[{"type": "text", "text": text}])

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(content=[{"type": "text", "text": text}], is_error=True)

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "isError": self.is_error}


@dataclass
class Outcome:
    """Uniform success/failure wrapper around a delegate call."""
    success: bool
    message: str
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any, message: str) -> "Outcome":
        return cls(success=True, data=data, message=message)

    @classmethod
    def failed(cls, error: BaseException | str | None, message: str) -> "Outcome":
        if isinstance(error, BaseException):
            text = str(error) or "Unknown error"
        else:
            text = error or "Unknown error"
        return cls(success=False, error=text, message=message)
