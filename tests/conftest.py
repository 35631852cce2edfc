"""
Shared fixtures.

FakeBackend stands in for vibe-cli in wrapper, tool and server tests.
It records every call and can be told to fail specific capabilities.

write_vibe_package() builds a real, importable vibe-cli look-alike on
disk for the locator tests and the subprocess tests.
"""

from __future__ import annotations

import os
import sys
import textwrap
import uuid
from pathlib import Path

import pytest

from vibe_mcp.delegate import DelegateState, DelegateUnavailableError, VibeBackend
from vibe_mcp.wrapper import VibeCliWrapper

PROJECT_ROOT = Path(__file__).resolve().parent.parent

ALL_ENTRY_POINTS = (
    "init",
    "status",
    "platform_detector",
    "analyzer",
    "rule_migrator",
    "config_generator",
)


class FakeBackend(VibeBackend):
    def __init__(
        self,
        entry_points=ALL_ENTRY_POINTS,
        installation_error: Exception | None = None,
        failures: dict[str, Exception] | None = None,
        detection: dict | None = None,
    ):
        self.state = DelegateState(library_path="/fake/vibe_cli/lib", version="1.2.0")
        self.entry_points = set(entry_points)
        self.installation_error = installation_error
        self.failures = dict(failures or {})
        self.detection = detection if detection is not None else {
            "platforms": ["cursor", "claude"],
            "rules": [".cursorrules"],
        }
        self.calls: list[tuple[str, tuple]] = []

    def _record(self, name: str, *args):
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    def called(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]

    def validate_installation(self):
        self._record("validate_installation")
        if self.installation_error is not None:
            raise self.installation_error

    def has_entry_point(self, name):
        return name in self.entry_points

    def initialize_vibe_system(self, project_path, options):
        self._record("initialize_vibe_system", project_path, options)
        return {"created": ["vibe/"], "platforms": ["cursor"]}

    def analyze_repository(self, project_path, options):
        self._record("analyze_repository", project_path, options)
        return {
            "project": {"name": os.path.basename(project_path), "type": "unknown"},
            "techStack": {},
            "gaps": {},
            "recommendations": {},
        }

    def sync_vibe_system(self, project_path, options):
        self._record("sync_vibe_system", project_path, options)
        return {"newRules": 2, "overwrittenRules": 1}

    def show_status(self, project_path, options, output):
        self._record("show_status", project_path, options)
        output.write("Vibe status: 1 rule, 2 platforms\n")

    def analyze_vibe_rules(self, rules_dir):
        self._record("analyze_vibe_rules", rules_dir)
        return [{"name": "react.md"}]

    def detect_rule_issues(self, rules):
        self._record("detect_rule_issues", rules)
        return []

    def platform_limits(self):
        return {"cursor": {"maxRules": 100}}

    def migrate_existing_rules(self, project_path, rules_dir, rules):
        self._record("migrate_existing_rules", project_path, rules_dir, rules)
        return list(rules)

    def generate_platform_configs(self, project_path, platforms, options):
        self._record("generate_platform_configs", project_path, platforms, options)
        return {"platforms": list(platforms)}

    def auto_fix_rules(self, project_path, options):
        self._record("auto_fix_rules", project_path, options)
        return {"fixed": 0}

    def detect_platforms(self, project_path):
        self._record("detect_platforms", project_path)
        return self.detection


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def wrapper(backend) -> VibeCliWrapper:
    return VibeCliWrapper(backend=backend)


@pytest.fixture
def project_dir(tmp_path) -> Path:
    path = tmp_path / "empty-dir"
    path.mkdir()
    return path


@pytest.fixture
def initialized_project(project_dir) -> Path:
    (project_dir / "vibe").mkdir()
    return project_dir


# ── On-disk vibe-cli look-alike ─────────────────────────────────

VIBE_MODULES = {
    "init": """
        def initialize_vibe_system(project_path, options):
            return {"projectPath": project_path, "options": options}
    """,
    "analyzer": """
        async def analyze_repository(project_path, options):
            return {"techStack": {}, "project": {"path": project_path}, "mcpMode": options.get("mcpMode")}
    """,
    "status": """
        PLATFORM_LIMITS = {"cursor": {"maxRules": 100}}

        def show_status(project_path, options, output):
            output.write("vibe status for " + project_path + "\\n")

        def analyze_vibe_rules(rules_dir):
            return []

        def detect_rule_issues(rules):
            return []
    """,
    "platform_detector": """
        def detect_platforms(project_path):
            return {"platforms": [], "rules": []}
    """,
    "rule_migrator": """
        def migrate_existing_rules(project_path, rules_dir, rules):
            return []
    """,
    "config_generator": """
        def generate_platform_configs(project_path, platforms, options):
            return []
    """,
}


def write_vibe_package(root: Path, name: str, modules: dict[str, str] | None = None) -> Path:
    """Write an importable vibe-cli look-alike named `name` under root."""
    modules = VIBE_MODULES if modules is None else modules
    package = root / name
    lib = package / "lib"
    lib.mkdir(parents=True)
    (package / "__init__.py").write_text("")
    (lib / "__init__.py").write_text("")

    for module, source in modules.items():
        source = textwrap.dedent(source).lstrip()
        if module == "analyzer":
            (lib / module).mkdir()
            (lib / module / "__init__.py").write_text(source)
        else:
            (lib / f"{module}.py").write_text(source)
    return package


@pytest.fixture
def vibe_package(tmp_path, monkeypatch):
    """A fresh on-disk vibe-cli package, importable and selected via VIBE_CLI_PACKAGE."""
    root = tmp_path / "site"
    root.mkdir()
    name = f"vibe_cli_fake_{uuid.uuid4().hex[:8]}"
    package = write_vibe_package(root, name)
    monkeypatch.syspath_prepend(str(root))
    monkeypatch.setenv("VIBE_CLI_PACKAGE", name)
    yield package
    for module in [m for m in sys.modules if m == name or m.startswith(name + ".")]:
        del sys.modules[module]


@pytest.fixture
def missing_vibe_package(monkeypatch):
    monkeypatch.setenv("VIBE_CLI_PACKAGE", f"vibe_cli_missing_{uuid.uuid4().hex[:8]}")


def unavailable(message: str = "Missing vibe-cli modules: status") -> DelegateUnavailableError:
    return DelegateUnavailableError(message)
