"""
Input validation for tool arguments.

validate_tool_input() runs before any delegate call. It rejects malformed
arguments with a ValidationError that names the offending field, and it
normalizes what it accepts in place:

    - projectPath is replaced by its absolute path
    - boolean options given as strings ("true", "no", ...) become booleans
    - options missing from the arguments get their schema defaults
"""

from __future__ import annotations

import os
from typing import Any

VALID_PLATFORMS = ("cursor", "claude", "copilot", "gemini", "auto")
BOOLEAN_OPTIONS = ("full", "dryRun", "verbose", "json")

_TRUE_TOKENS = ("true", "1", "yes")
_FALSE_TOKENS = ("false", "0", "no")


class ValidationError(ValueError):
    """Malformed or missing tool input, attributable to a field."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


def normalize_project_path(project_path: str) -> str:
    return os.path.abspath(os.path.expanduser(project_path))


def validate_project_path(project_path: Any) -> None:
    """Check that project_path names an existing, readable directory."""
    if not isinstance(project_path, str):
        raise ValidationError("Project path must be a string", "projectPath")
    if not project_path.strip():
        raise ValidationError("Project path is required", "projectPath")

    if not os.path.exists(project_path) or not os.access(project_path, os.R_OK):
        raise ValidationError(
            f"Project path does not exist or is not accessible: {project_path}",
            "projectPath",
        )
    if not os.path.isdir(project_path):
        raise ValidationError(f"Project path must be a directory: {project_path}", "projectPath")


def validate_platforms(platforms: Any) -> None:
    """Check a comma-separated platform list against VALID_PLATFORMS."""
    if platforms is None or platforms == "":
        return  # caller falls back to "auto"

    if not isinstance(platforms, str):
        raise ValidationError("Platforms must be a string", "platforms")

    for platform in (p.strip() for p in platforms.split(",")):
        if platform not in VALID_PLATFORMS:
            raise ValidationError(
                f"Invalid platform: {platform}. Valid platforms: {', '.join(VALID_PLATFORMS)}",
                "platforms",
            )


def validate_boolean(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_TOKENS:
            return True
        if lowered in _FALSE_TOKENS:
            return False

    raise ValidationError(f"{field_name} must be a boolean value", field_name)


def validate_tool_input(params: dict[str, Any], schema: dict[str, Any]) -> None:
    """
    Validate tool arguments against a tool input schema.

    Args:
        params: The tool arguments. Normalized in place.
        schema: JSON-schema-shaped input schema of the tool.

    Raises:
        ValidationError: on the first problem found.
    """
    if not isinstance(params, dict):
        raise ValidationError("Tool arguments must be an object")

    properties = schema.get("properties", {})

    for required in schema.get("required", []):
        if required not in params:
            raise ValidationError(f"Missing required field: {required}", required)

    if schema.get("additionalProperties") is False:
        for key in params:
            if key not in properties:
                raise ValidationError(f"Unknown field: {key}", key)

    if "projectPath" in params:
        project_path = params["projectPath"]
        if not isinstance(project_path, str) or not project_path.strip():
            raise ValidationError("Project path is required and must be a non-empty string", "projectPath")
        params["projectPath"] = normalize_project_path(project_path)
        validate_project_path(params["projectPath"])

    options_schema = properties.get("options")
    if options_schema is None:
        return

    options = params.get("options")
    if options is None:
        options = {}
    if not isinstance(options, dict):
        raise ValidationError("options must be an object", "options")

    option_properties = options_schema.get("properties", {})
    if options_schema.get("additionalProperties") is False:
        for key in options:
            if key not in option_properties:
                raise ValidationError(f"Unknown option: {key}", key)

    if "platforms" in options:
        validate_platforms(options["platforms"])

    for key in BOOLEAN_OPTIONS:
        if key in options:
            options[key] = validate_boolean(options[key], key)

    # Defaults last, so that what the tool reports is what the delegate saw
    for key, prop in option_properties.items():
        if "default" in prop and options.get(key) in (None, ""):
            options[key] = prop["default"]

    params["options"] = options


def sanitize_error_message(error: Any) -> str:
    """Reduce any raised value to a message safe to put in a response."""
    if isinstance(error, BaseException):
        return str(error) or "Unknown error occurred"
    if isinstance(error, str):
        return error
    return "Unknown error occurred"
