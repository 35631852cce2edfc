"""
Capability wrapper around vibe-cli.

Every public method returns an Outcome and never raises. The installation
is re-validated before each call, and every call is made with mcpMode=True
so vibe-cli returns structured data instead of console formatting.
"""

from __future__ import annotations

import io
import logging
import os
from typing import Any

from vibe_mcp.delegate import VibeBackend, VibeLibrary
from vibe_mcp.envelopes import Outcome

RULES_DIR = "vibe"

NOT_INITIALIZED_RECOMMENDATION = (
    "Run init_rules to initialize the vibe system for this project"
)
BASIC_STATUS_RECOMMENDATION = (
    "Full analysis is unavailable; run repo_analysis for details"
)


def _field(value: Any, name: str, default: Any = None) -> Any:
    """Read a field from a delegate result that may be a dict or an object."""
    if isinstance(value, dict):
        return value.get(name, default)
    return getattr(value, name, default)


def _count(value: Any) -> int:
    try:
        return len(value)
    except TypeError:
        return 0


def _platform_name(platform: Any) -> str:
    if isinstance(platform, str):
        return platform
    return str(_field(platform, "name", platform))


class VibeCliWrapper:
    """
    Calls vibe-cli capabilities and normalizes every result into an Outcome.

    Usage:
        wrapper = VibeCliWrapper()
        outcome = wrapper.analyze("/path/to/project", {"verbose": True})
        if outcome.success:
            print(outcome.data)
    """

    def __init__(self, backend: VibeBackend | None = None, logger: logging.Logger | None = None):
        """
        Args:
            backend: The vibe-cli backend. Defaults to the installed package,
                     which raises DelegateUnavailableError if it cannot be found.
            logger: Component logger; defaults to this module's logger.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.backend = backend if backend is not None else VibeLibrary()

    @property
    def state(self):
        return self.backend.state

    @staticmethod
    def _mcp_options(options: dict[str, Any] | None) -> dict[str, Any]:
        return {**(options or {}), "mcpMode": True}

    def _fail(self, error: BaseException, message: str) -> Outcome:
        self.logger.error(f"{message}: {error}")
        return Outcome.failed(error, message)

    # ── Capabilities ─────────────────────────────────────────

    def initialize(self, project_path: str, options: dict[str, Any] | None = None) -> Outcome:
        try:
            self.backend.validate_installation()
            result = self.backend.initialize_vibe_system(project_path, self._mcp_options(options))
            return Outcome.ok(result, "Vibe system initialized successfully")
        except Exception as e:
            return self._fail(e, "Failed to initialize vibe system")

    def analyze(self, project_path: str, options: dict[str, Any] | None = None) -> Outcome:
        try:
            self.backend.validate_installation()
            result = self.backend.analyze_repository(project_path, self._mcp_options(options))
            return Outcome.ok(result, "Analysis completed successfully")
        except Exception as e:
            return self._fail(e, "Failed to analyze repository")

    def sync(self, project_path: str, options: dict[str, Any] | None = None) -> Outcome:
        """
        Sync platform rule files into the unified rules directory.

        Older vibe-cli releases ship no sync entry point. For those the same
        result is assembled from platform detection, rule migration and
        config generation.
        """
        try:
            self.backend.validate_installation()
            mcp_options = self._mcp_options(options)

            if self.backend.has_entry_point("sync"):
                result = self.backend.sync_vibe_system(project_path, mcp_options)
                return Outcome.ok(result, "Sync completed successfully")

            self.logger.info("sync entry point not available, using fallback sync")
            detection = self.backend.detect_platforms(project_path)
            rules_dir = os.path.join(project_path, RULES_DIR)
            result = {
                "migrated": self.backend.migrate_existing_rules(
                    project_path, rules_dir, _field(detection, "rules") or []
                ),
                "generated": self.backend.generate_platform_configs(
                    project_path, _field(detection, "platforms") or [], mcp_options
                ),
            }
            return Outcome.ok(
                result,
                "Sync completed using fallback method (sync not available in this vibe-cli version)",
            )
        except Exception as e:
            return self._fail(e, "Failed to sync vibe system")

    def status(self, project_path: str, options: dict[str, Any] | None = None) -> Outcome:
        """
        Report the state of the vibe system in a project.

        Three shapes, told apart by data["summary"]["status"]:
            not-initialized    — no rules directory; nothing else is consulted
            initialized        — full analysis succeeded
            initialized-basic  — full analysis failed; platform detection only
        """
        try:
            self.backend.validate_installation()
            rules_dir = os.path.join(project_path, RULES_DIR)

            if not os.path.isdir(rules_dir):
                return Outcome.ok(self._not_initialized_status(), "Vibe system is not initialized")

            try:
                data = self._full_status(project_path, rules_dir, self._mcp_options(options))
                return Outcome.ok(data, "Status retrieved successfully")
            except Exception as e:
                self.logger.warning(f"Full status analysis failed, degrading to basic status: {e}")

            data = self._basic_status(project_path)
            return Outcome.ok(data, "Status retrieved using basic platform detection")
        except Exception as e:
            return self._fail(e, "Failed to get system status")

    def fix(self, project_path: str, options: dict[str, Any] | None = None) -> Outcome:
        try:
            self.backend.validate_installation()
            if not self.backend.has_entry_point("fix"):
                return Outcome.failed(
                    "Auto-fix is not supported by this vibe-cli version",
                    "Failed to fix configuration issues",
                )
            result = self.backend.auto_fix_rules(project_path, self._mcp_options(options))
            return Outcome.ok(result, "Configuration issues fixed successfully")
        except Exception as e:
            return self._fail(e, "Failed to fix configuration issues")

    def detect_platforms(self, project_path: str) -> Outcome:
        try:
            self.backend.validate_installation()
            result = self.backend.detect_platforms(project_path)
            return Outcome.ok(result, "Platform detection completed successfully")
        except Exception as e:
            return self._fail(e, "Failed to detect platforms")

    # ── Status snapshots ─────────────────────────────────────

    @staticmethod
    def _not_initialized_status() -> dict[str, Any]:
        return {
            "vibeInitialized": False,
            "platforms": [],
            "rules": [],
            "issues": [],
            "summary": {
                "status": "not-initialized",
                "platformsConfigured": 0,
                "totalRules": 0,
                "issuesFound": 0,
            },
            "recommendations": [NOT_INITIALIZED_RECOMMENDATION],
        }

    def _full_status(self, project_path: str, rules_dir: str, options: dict[str, Any]) -> dict[str, Any]:
        analysis = self.backend.analyze_repository(project_path, options)

        captured = io.StringIO()
        self.backend.show_status(project_path, options, captured)

        detection = self.backend.detect_platforms(project_path)
        platforms = _field(detection, "platforms") or []
        rules = self.backend.analyze_vibe_rules(rules_dir) or []
        issues = self.backend.detect_rule_issues(rules) or []

        return {
            "vibeInitialized": True,
            "analysis": analysis,
            "platforms": platforms,
            "rules": rules,
            "issues": issues,
            "platformLimits": self.backend.platform_limits(),
            "consoleOutput": captured.getvalue(),
            "summary": {
                "status": "initialized",
                "platformsConfigured": _count(platforms),
                "totalRules": _count(rules),
                "issuesFound": _count(issues),
            },
        }

    def _basic_status(self, project_path: str) -> dict[str, Any]:
        detection = self.backend.detect_platforms(project_path)
        # The rules directory exists, so every detected platform counts as configured
        platforms = [
            {"name": _platform_name(p), "configured": True}
            for p in (_field(detection, "platforms") or [])
        ]
        return {
            "vibeInitialized": True,
            "platforms": platforms,
            "rules": [],
            "issues": [],
            "summary": {
                "status": "initialized-basic",
                "platformsConfigured": len(platforms),
                "totalRules": 0,
                "issuesFound": 0,
            },
            "recommendations": [BASIC_STATUS_RECOMMENDATION],
        }
