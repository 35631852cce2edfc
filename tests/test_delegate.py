import io
import shutil

import pytest

from vibe_mcp.delegate import (
    DelegateUnavailableError,
    VibeLibrary,
    major_version,
    run_sync,
)


def test_locates_package_and_lib_directory(vibe_package):
    library = VibeLibrary()

    assert library.state.library_path == str(vibe_package / "lib")
    assert library.state.version is None  # no distribution metadata


def test_explicit_package_name_wins_over_environment(vibe_package, monkeypatch):
    monkeypatch.setenv("VIBE_CLI_PACKAGE", "something_else_entirely")
    library = VibeLibrary(package=vibe_package.name)
    assert library.package == vibe_package.name


def test_missing_package_fails_at_construction(missing_vibe_package):
    with pytest.raises(DelegateUnavailableError, match="vibe-cli not found"):
        VibeLibrary()


def test_missing_lib_directory_names_expected_path(vibe_package):
    shutil.rmtree(vibe_package / "lib")
    with pytest.raises(DelegateUnavailableError) as exc:
        VibeLibrary()
    assert str(vibe_package / "lib") in str(exc.value)


def test_validate_installation_passes(vibe_package):
    VibeLibrary().validate_installation()


def test_missing_required_entry_points_are_listed(vibe_package):
    (vibe_package / "lib" / "status.py").unlink()
    (vibe_package / "lib" / "platform_detector.py").unlink()
    library = VibeLibrary()

    with pytest.raises(DelegateUnavailableError) as exc:
        library.validate_installation()
    assert "status" in str(exc.value)
    assert "platform_detector" in str(exc.value)


def test_lib_removed_after_construction_is_reported_without_path(vibe_package):
    library = VibeLibrary()
    shutil.rmtree(vibe_package / "lib")

    with pytest.raises(DelegateUnavailableError) as exc:
        library.validate_installation()
    assert str(vibe_package) not in str(exc.value)


@pytest.mark.parametrize("version", ["0.9.1", "0.0.1", "v0.5.0"])
def test_major_version_zero_is_rejected(vibe_package, monkeypatch, version):
    monkeypatch.setattr(VibeLibrary, "_read_version", lambda self: version)
    library = VibeLibrary()

    with pytest.raises(DelegateUnavailableError, match="Incompatible vibe-cli version"):
        library.validate_installation()


@pytest.mark.parametrize("version", ["1.0.0", "2.3.4", "1.0.0-beta.1", "dev"])
def test_compatible_or_unparseable_versions_pass(vibe_package, monkeypatch, version):
    monkeypatch.setattr(VibeLibrary, "_read_version", lambda self: version)
    VibeLibrary().validate_installation()


def test_major_version():
    assert major_version("1.2.3") == 1
    assert major_version("v0.1") == 0
    assert major_version("latest") is None


def test_entry_points_as_modules_and_packages(vibe_package):
    library = VibeLibrary()
    assert library.has_entry_point("init")
    assert library.has_entry_point("analyzer")
    assert not library.has_entry_point("sync")
    assert not library.has_entry_point("fix")


def test_calls_sync_and_async_delegate_functions(vibe_package, project_dir):
    library = VibeLibrary()

    init = library.initialize_vibe_system(str(project_dir), {"mcpMode": True})
    analysis = library.analyze_repository(str(project_dir), {"mcpMode": True})

    assert init == {"projectPath": str(project_dir), "options": {"mcpMode": True}}
    assert analysis["techStack"] == {}
    assert analysis["mcpMode"] is True


def test_show_status_writes_to_the_given_sink(vibe_package, project_dir):
    library = VibeLibrary()
    sink = io.StringIO()

    library.show_status(str(project_dir), {}, sink)

    assert sink.getvalue() == f"vibe status for {project_dir}\n"
    assert library.platform_limits() == {"cursor": {"maxRules": 100}}


def test_missing_function_is_reported(vibe_package, project_dir):
    (vibe_package / "lib" / "init.py").write_text("VALUE = 1\n")
    library = VibeLibrary()

    with pytest.raises(DelegateUnavailableError, match="does not provide 'initialize_vibe_system'"):
        library.initialize_vibe_system(str(project_dir), {})


def test_run_sync_passes_plain_values_through():
    assert run_sync({"a": 1}) == {"a": 1}

    async def coro():
        return 5

    assert run_sync(coro()) == 5
