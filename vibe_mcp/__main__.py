"""
Vibe MCP server entry point.

Usage:
    # Serve MCP over stdio (what an MCP client launches)
    vibe-mcp
    python -m vibe_mcp

    # Only check that vibe-cli is installed and usable (exit 0 / 1)
    vibe-mcp --check-deps

Environment:
    VIBE_LOG_LEVEL     error | warn | info | debug   (default: info)
    VIBE_CLI_PACKAGE   import name of vibe-cli       (default: vibe_cli)
"""

from __future__ import annotations

import argparse
import sys

from vibe_mcp import __version__
from vibe_mcp.delegate import DelegateUnavailableError, VibeLibrary
from vibe_mcp.logging_config import configure_logging

INSTALL_HINT = """
To fix this issue, install vibe-cli into the same environment:
   pip install vibe-cli

Or point VIBE_CLI_PACKAGE at the import name of your vibe-cli package.
"""


def check_dependencies(logger) -> VibeLibrary | None:
    """Locate and validate vibe-cli. Returns the library, or None on failure."""
    try:
        library = VibeLibrary()
        library.validate_installation()
    except DelegateUnavailableError as e:
        logger.error(f"vibe-cli dependency check failed: {e}")
        print(INSTALL_HINT, file=sys.stderr)
        return None

    logger.info(f"vibe-cli dependency check passed (version: {library.state.version or 'unknown'})")
    return library


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="vibe-mcp",
        description="Model Context Protocol server for vibe-cli",
    )
    parser.add_argument("--check-deps", action="store_true",
                        help="Check that vibe-cli is installed and compatible, then exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    logger = configure_logging()

    library = check_dependencies(logger)
    if args.check_deps:
        return 0 if library else 1
    if library is None:
        print("Cannot start vibe-mcp server due to missing dependencies.", file=sys.stderr)
        return 1

    from vibe_mcp.server import VibeMCPServer
    from vibe_mcp.wrapper import VibeCliWrapper

    try:
        wrapper = VibeCliWrapper(backend=library, logger=logger.getChild("wrapper"))
        server = VibeMCPServer(wrapper=wrapper, logger=logger)
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        return 1

    try:
        server.start()
    except Exception as e:
        logger.error(f"Server error while serving: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
