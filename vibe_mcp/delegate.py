"""
Access to the vibe-cli automation library.

The adapter never reaches into vibe-cli's modules from call sites. Instead:

    VibeBackend   — the capability surface the adapter needs from vibe-cli
    VibeLibrary   — the one implementation, backed by the installed package

VibeLibrary locates the package once, at construction. A package that
cannot be found (or has no lib/ directory) is fatal right there. Everything
else (missing entry points, an incompatible version) is reported by
validate_installation(), which the wrapper calls before every capability.

Expected layout of the installed package:

    vibe_cli/
        lib/
            init.py               initialize_vibe_system()
            status.py             show_status(), analyze_vibe_rules(),
                                  detect_rule_issues(), PLATFORM_LIMITS
            platform_detector.py  detect_platforms()
            analyzer/             analyze_repository()
            sync.py               sync_vibe_system()         (optional)
            rule_migrator.py      migrate_existing_rules()
            config_generator.py   generate_platform_configs()
            fix.py                auto_fix_rules()           (optional)
"""

from __future__ import annotations

import asyncio
import importlib
import importlib.metadata
import importlib.util
import inspect
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, TextIO

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "vibe_cli"
PACKAGE_ENV = "VIBE_CLI_PACKAGE"
REQUIRED_ENTRY_POINTS = ("init", "status", "platform_detector")
MINIMUM_MAJOR_VERSION = 1


class DelegateUnavailableError(RuntimeError):
    """vibe-cli, or a part of it the adapter needs, is missing or incompatible."""


@dataclass(frozen=True)
class DelegateState:
    library_path: str
    version: str | None = None


def run_sync(value: Any) -> Any:
    """Drive an awaitable returned by the delegate to completion."""
    if inspect.isawaitable(value):
        async def _await() -> Any:
            return await value
        return asyncio.run(_await())
    return value


def major_version(version: str) -> int | None:
    head = version.strip().lstrip("vV").split(".", 1)[0]
    try:
        return int(head)
    except ValueError:
        return None


class VibeBackend(ABC):
    """
    Capability surface of vibe-cli as seen by the adapter.

    Implementations may raise anything from the capability methods; the
    wrapper turns every exception into a failed Outcome.
    """

    state: DelegateState

    @abstractmethod
    def validate_installation(self) -> None:
        """Raise DelegateUnavailableError unless every capability can be called."""
        ...

    @abstractmethod
    def has_entry_point(self, name: str) -> bool:
        ...

    @abstractmethod
    def initialize_vibe_system(self, project_path: str, options: dict[str, Any]) -> Any:
        ...

    @abstractmethod
    def analyze_repository(self, project_path: str, options: dict[str, Any]) -> Any:
        ...

    @abstractmethod
    def sync_vibe_system(self, project_path: str, options: dict[str, Any]) -> Any:
        ...

    @abstractmethod
    def show_status(self, project_path: str, options: dict[str, Any], output: TextIO) -> Any:
        """Write the human-readable status report to output."""
        ...

    @abstractmethod
    def analyze_vibe_rules(self, rules_dir: str) -> Any:
        ...

    @abstractmethod
    def detect_rule_issues(self, rules: Any) -> Any:
        ...

    @abstractmethod
    def platform_limits(self) -> Any:
        ...

    @abstractmethod
    def migrate_existing_rules(self, project_path: str, rules_dir: str, rules: list) -> Any:
        ...

    @abstractmethod
    def generate_platform_configs(self, project_path: str, platforms: list, options: dict[str, Any]) -> Any:
        ...

    @abstractmethod
    def auto_fix_rules(self, project_path: str, options: dict[str, Any]) -> Any:
        ...

    @abstractmethod
    def detect_platforms(self, project_path: str) -> Any:
        ...


class VibeLibrary(VibeBackend):
    """VibeBackend backed by the installed vibe-cli package."""

    def __init__(self, package: str | None = None, distribution: str | None = None):
        """
        Args:
            package: Import name of vibe-cli. Defaults to $VIBE_CLI_PACKAGE, then "vibe_cli".
            distribution: Distribution name used to read the version.
                          Defaults to the package name with "_" replaced by "-".

        Raises:
            DelegateUnavailableError: the package or its lib/ directory is missing.
        """
        self.package = package or os.environ.get(PACKAGE_ENV) or DEFAULT_PACKAGE
        self.distribution = distribution or self.package.replace("_", "-")
        self.state = self.locate()

    # ── Location ─────────────────────────────────────────────

    def locate(self) -> DelegateState:
        """Resolve the package directory, its lib/ directory and its version."""
        try:
            spec = importlib.util.find_spec(self.package)
        except (ImportError, ValueError) as e:
            raise DelegateUnavailableError(f"vibe-cli not found ({self.package}): {e}") from e

        if spec is None or not spec.submodule_search_locations:
            raise DelegateUnavailableError(
                f"vibe-cli not found: no importable package named '{self.package}'. "
                "Install vibe-cli into this environment."
            )

        package_dir = list(spec.submodule_search_locations)[0]
        library_path = os.path.join(package_dir, "lib")
        if not os.path.isdir(library_path):
            raise DelegateUnavailableError(f"vibe-cli lib directory not found at: {library_path}")

        version = self._read_version()
        logger.debug(f"Located vibe-cli {version or '(unknown version)'} at {library_path}")
        return DelegateState(library_path=library_path, version=version)

    def _read_version(self) -> str | None:
        try:
            return importlib.metadata.version(self.distribution) or None
        except importlib.metadata.PackageNotFoundError:
            return None

    def has_entry_point(self, name: str) -> bool:
        base = os.path.join(self.state.library_path, name)
        return os.path.isfile(base + ".py") or os.path.isfile(os.path.join(base, "__init__.py"))

    def validate_installation(self) -> None:
        if not os.path.isdir(self.state.library_path):
            logger.error(f"vibe-cli lib directory disappeared: {self.state.library_path}")
            raise DelegateUnavailableError("vibe-cli lib directory not found. Please reinstall vibe-cli.")

        missing = [name for name in REQUIRED_ENTRY_POINTS if not self.has_entry_point(name)]
        if missing:
            raise DelegateUnavailableError(
                f"Missing vibe-cli modules: {', '.join(missing)}. Please reinstall vibe-cli."
            )

        if self.state.version:
            major = major_version(self.state.version)
            if major is not None and major < MINIMUM_MAJOR_VERSION:
                raise DelegateUnavailableError(
                    f"Incompatible vibe-cli version: {self.state.version}. "
                    f"Please upgrade to version {MINIMUM_MAJOR_VERSION}.0.0 or higher."
                )

    # ── Loading ──────────────────────────────────────────────

    def _attr(self, entry_point: str, name: str) -> Any:
        module = importlib.import_module(f"{self.package}.lib.{entry_point}")
        try:
            return getattr(module, name)
        except AttributeError:
            raise DelegateUnavailableError(
                f"vibe-cli module '{entry_point}' does not provide '{name}'"
            ) from None

    def _call(self, entry_point: str, name: str, *args: Any, **kwargs: Any) -> Any:
        return run_sync(self._attr(entry_point, name)(*args, **kwargs))

    # ── Capabilities ─────────────────────────────────────────

    def initialize_vibe_system(self, project_path, options):
        return self._call("init", "initialize_vibe_system", project_path, options)

    def analyze_repository(self, project_path, options):
        return self._call("analyzer", "analyze_repository", project_path, options)

    def sync_vibe_system(self, project_path, options):
        return self._call("sync", "sync_vibe_system", project_path, options)

    def show_status(self, project_path, options, output):
        return self._call("status", "show_status", project_path, options, output=output)

    def analyze_vibe_rules(self, rules_dir):
        return self._call("status", "analyze_vibe_rules", rules_dir)

    def detect_rule_issues(self, rules):
        return self._call("status", "detect_rule_issues", rules)

    def platform_limits(self):
        try:
            return self._attr("status", "PLATFORM_LIMITS")
        except DelegateUnavailableError:
            return {}

    def migrate_existing_rules(self, project_path, rules_dir, rules):
        return self._call("rule_migrator", "migrate_existing_rules", project_path, rules_dir, rules)

    def generate_platform_configs(self, project_path, platforms, options):
        return self._call("config_generator", "generate_platform_configs", project_path, platforms, options)

    def auto_fix_rules(self, project_path, options):
        return self._call("fix", "auto_fix_rules", project_path, options)

    def detect_platforms(self, project_path):
        return self._call("platform_detector", "detect_platforms", project_path)
