"""
End-to-end: a real server subprocess, driven through McpClient.
"""

import json
import os
import uuid

import pytest

from conftest import PROJECT_ROOT, write_vibe_package
from vibe_mcp.client import McpClient, McpError
from vibe_mcp.server import INVALID_PARAMS


@pytest.fixture
def client(tmp_path):
    site = tmp_path / "site"
    site.mkdir()
    name = f"vibe_cli_fake_{uuid.uuid4().hex[:8]}"
    write_vibe_package(site, name)

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(site), str(PROJECT_ROOT), env.get("PYTHONPATH")) if p
    )
    env["VIBE_CLI_PACKAGE"] = name
    env["VIBE_LOG_LEVEL"] = "error"

    client = McpClient(env=env)
    client.start()
    yield client
    client.stop()


def test_handshake_and_discovery(client):
    assert client.server_info["name"] == "vibe-mcp"
    assert client.ping() is True
    assert [t["name"] for t in client.list_tools()] == [
        "repo_analysis", "init_rules", "sync_rules", "vibe_status",
    ]


def test_repo_analysis_round_trip(client, project_dir):
    result = client.call_tool("repo_analysis", {"projectPath": str(project_dir)})

    assert result["isError"] is False
    payload = json.loads(result["content"][0]["text"])
    assert payload["techStack"] == {}
    assert "error" not in payload


def test_sync_rules_uses_fallback_against_installed_package(client, project_dir):
    result = client.call_tool("sync_rules", {"projectPath": str(project_dir), "options": {"dryRun": "1"}})

    assert result["isError"] is False
    payload = json.loads(result["content"][0]["text"])
    assert set(payload["syncResult"]) == {"migrated", "generated"}
    assert payload["summary"]["dryRun"] is True


def test_business_failure_is_an_error_result(client, project_dir):
    result = client.call_tool("sync_rules", {
        "projectPath": str(project_dir),
        "options": {"platforms": "bogus"},
    })

    assert result["isError"] is True
    assert "bogus" in json.loads(result["content"][0]["text"])["error"]


def test_unknown_tool_is_a_protocol_error(client):
    with pytest.raises(McpError) as exc:
        client.call_tool("no_such_tool", {})

    assert exc.value.code == INVALID_PARAMS
    assert "no_such_tool" in str(exc.value)
    # the server keeps serving after a routing failure
    assert client.ping() is True


def test_termination_signal_exits_cleanly(client):
    client.stop()
    assert client.returncode == 0


def test_requests_need_a_running_server():
    client = McpClient()

    with pytest.raises(RuntimeError, match="not running"):
        client.ping()
    client.stop()
    assert client.returncode is None
