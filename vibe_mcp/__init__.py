"""
Vibe MCP — Model Context Protocol server for vibe-cli.

Architecture:
    ┌──────────────┐     stdio      ┌──────────────┐   calls   ┌──────────┐
    │  MCP client  │ ────────────── │ VibeMCPServer │ ───────── │ vibe-cli │
    │ (AI editor)  │   JSON-RPC     │  (this pkg)   │           │  (lib/)  │
    └──────────────┘                └──────────────┘           └──────────┘

Tools exposed: repo_analysis, init_rules, sync_rules, vibe_status.

VibeMCPServer owns the tool registry and the stdio transport.
VibeCliWrapper calls vibe-cli and turns every result into an Outcome.
VibeLibrary locates the installed vibe-cli package and checks it.
"""

__version__ = "1.0.0"

from vibe_mcp.server import VibeMCPServer, ToolHandler, ToolNotFoundError
from vibe_mcp.wrapper import VibeCliWrapper
from vibe_mcp.delegate import VibeLibrary, DelegateUnavailableError
from vibe_mcp.validators import ValidationError


# Bridge requires langchain — lazy import to keep the server standalone
def to_langchain_tools(*args, **kwargs):
    from vibe_mcp.bridge import to_langchain_tools as _impl
    return _impl(*args, **kwargs)


__all__ = [
    "VibeMCPServer",
    "ToolHandler",
    "ToolNotFoundError",
    "VibeCliWrapper",
    "VibeLibrary",
    "DelegateUnavailableError",
    "ValidationError",
    "to_langchain_tools",
]
