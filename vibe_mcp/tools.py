"""
The four vibe tools.

Every tool has the same shape: validate the arguments, call one wrapper
capability, and turn the Outcome into a ToolResult. So there is one tool
class (VibeTool) and the tools themselves are declared as data in
TOOL_SPECS.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable

from vibe_mcp.envelopes import Outcome, ToolCallRequest, ToolResult, utc_timestamp
from vibe_mcp.server import ToolHandler
from vibe_mcp.validators import sanitize_error_message, validate_tool_input


class ToolExecutionError(RuntimeError):
    """The delegate reported a failure for a tool call."""

    def __init__(self, error: str, message: str):
        super().__init__(error)
        self.message = message


def _schema(description: str, options: dict[str, dict]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "projectPath": {"type": "string", "description": description},
            "options": {
                "type": "object",
                "properties": options,
                "additionalProperties": False,
            },
        },
        "required": ["projectPath"],
        "additionalProperties": False,
    }


def _bool_option(description: str) -> dict[str, Any]:
    return {"type": "boolean", "description": description, "default": False}


def _platforms_option(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description, "default": "auto"}


def _field(data: Any, name: str, default: Any = None) -> Any:
    return data.get(name, default) if isinstance(data, dict) else default


def _status_summary(options: dict, data: Any) -> dict[str, Any]:
    summary = _field(data, "summary", {}) or {}
    return {
        "status": summary.get("status"),
        "verbose": options.get("verbose", False),
        "platformsConfigured": summary.get("platformsConfigured", 0),
        "totalRules": summary.get("totalRules", 0),
        "issuesFound": summary.get("issuesFound", 0),
    }


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: dict[str, Any]
    capability: str                  # VibeCliWrapper method name
    result_key: str | None           # None: merge delegate data into the payload
    summarize: Callable[[dict, Any], dict[str, Any]]


TOOL_SPECS = (
    ToolSpec(
        name="repo_analysis",
        description=(
            "Perform comprehensive analysis of a project's tech stack, "
            "AI configurations, and rule coverage"
        ),
        input_schema=_schema(
            "Path to the project root directory to analyze",
            {"verbose": _bool_option("Include detailed analysis information")},
        ),
        capability="analyze",
        result_key=None,
        summarize=lambda options, data: {"verbose": options.get("verbose", False)},
    ),
    ToolSpec(
        name="init_rules",
        description=(
            "Initialize the vibe system in a project: detect platforms, create the "
            "unified vibe/ rules directory and generate platform configurations"
        ),
        input_schema=_schema(
            "Path to the project root directory to initialize",
            {
                "platforms": _platforms_option(
                    'Comma-separated list of platforms to configure (cursor,claude,copilot,gemini) or "auto" for all'
                ),
                "full": _bool_option("Perform full setup including removal of original rule files"),
            },
        ),
        capability="initialize",
        result_key="initialization",
        summarize=lambda options, data: {
            "platforms": options.get("platforms", "auto"),
            "fullSetup": options.get("full", False),
        },
    ),
    ToolSpec(
        name="sync_rules",
        description=(
            "Sync rules from platform directories (Cursor, Copilot, etc.) "
            "to the unified vibe/ directory"
        ),
        input_schema=_schema(
            "Path to the project root directory where sync should be performed",
            {
                "full": _bool_option("Move rules and delete original files after sync"),
                "platforms": _platforms_option(
                    'Comma-separated list of platforms to sync (cursor,copilot,claude) or "auto" for all'
                ),
                "dryRun": _bool_option("Show what would be synced without making changes"),
            },
        ),
        capability="sync",
        result_key="syncResult",
        summarize=lambda options, data: {
            "platforms": options.get("platforms", "auto"),
            "fullSync": options.get("full", False),
            "dryRun": options.get("dryRun", False),
            "newRules": _field(data, "newRules", 0),
            "overwrittenRules": _field(data, "overwrittenRules", 0),
        },
    ),
    ToolSpec(
        name="vibe_status",
        description=(
            "Get comprehensive status of the vibe system including platform "
            "configurations, rule analysis, and detected issues"
        ),
        input_schema=_schema(
            "Path to the project root directory to check status for",
            {"verbose": _bool_option("Include detailed analysis and performance metrics")},
        ),
        capability="status",
        result_key="status",
        summarize=_status_summary,
    ),
)


class VibeTool(ToolHandler):
    """A tool bound to one wrapper capability."""

    def __init__(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        invoke: Callable[[str, dict], Outcome],
        result_key: str | None = None,
        summarize: Callable[[dict, Any], dict[str, Any]] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.name = name
        self.description = description
        self._input_schema = MappingProxyType(copy.deepcopy(input_schema))
        self.invoke = invoke
        self.result_key = result_key
        self.summarize = summarize or (lambda options, data: {})
        self.logger = logger or logging.getLogger(__name__).getChild(name)

    @property
    def input_schema(self) -> dict[str, Any]:
        return copy.deepcopy(dict(self._input_schema))

    def call(self, request: ToolCallRequest) -> ToolResult:
        try:
            params = request.arguments
            self.logger.debug(f"Validating input parameters: {params}")
            validate_tool_input(params, self._input_schema)

            project_path = params["projectPath"]
            options = params.get("options", {})

            self.logger.info(f"Invoking {self.name} for {project_path} with options {options}")
            outcome = self.invoke(project_path, options)

            if not outcome.success:
                raise ToolExecutionError(outcome.error or f"{self.name} failed", outcome.message)

            self.logger.info(f"{outcome.message} ({project_path})")
            payload = self._payload(project_path, options, outcome)
            return ToolResult.text(json.dumps(payload, indent=2, default=str))

        except Exception as e:
            message = sanitize_error_message(e)
            detail = f" ({e.message})" if isinstance(e, ToolExecutionError) else ""
            self.logger.error(f"Tool execution failed: {message}{detail}")
            body = {"error": message, "success": False, "timestamp": utc_timestamp()}
            return ToolResult.error(json.dumps(body, indent=2))

    def _payload(self, project_path: str, options: dict, outcome: Outcome) -> dict[str, Any]:
        summary = {
            "projectPath": project_path,
            "options": dict(options),
            **self.summarize(options, outcome.data),
            "timestamp": utc_timestamp(),
            "success": True,
        }

        if self.result_key is None:
            payload = dict(outcome.data) if isinstance(outcome.data, dict) else {"result": outcome.data}
            payload.setdefault("message", outcome.message)
            if isinstance(payload.get("summary"), dict):
                summary = {**payload["summary"], **summary}
        else:
            payload = {"message": outcome.message, self.result_key: outcome.data}
        payload["summary"] = summary
        return payload


def build_tools(wrapper: Any, logger: logging.Logger | None = None) -> list[VibeTool]:
    """Bind every TOOL_SPECS entry to its capability on wrapper."""
    logger = logger or logging.getLogger("vibe_mcp")
    return [
        VibeTool(
            name=spec.name,
            description=spec.description,
            input_schema=spec.input_schema,
            invoke=getattr(wrapper, spec.capability),
            result_key=spec.result_key,
            summarize=spec.summarize,
            logger=logger.getChild(spec.name),
        )
        for spec in TOOL_SPECS
    ]
