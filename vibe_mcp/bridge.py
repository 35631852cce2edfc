"""
Bridge between the vibe tools and LangChain.

Converts the tools registered on a VibeMCPServer into LangChain
StructuredTools, so an in-process agent can use them without going
through stdio.

Usage:
    from vibe_mcp import VibeMCPServer
    from vibe_mcp.bridge import to_langchain_tools

    tools = to_langchain_tools(VibeMCPServer())
    tools[0].invoke({"projectPath": "/path/to/project"})
"""

from typing import Optional

from langchain_core.tools import StructuredTool

from vibe_mcp.envelopes import ToolCallRequest
from vibe_mcp.server import VibeMCPServer


def mcp_to_langchain_tool(
    server: VibeMCPServer,
    tool_name: str,
    description_override: str | None = None,
) -> StructuredTool:
    """
    Create a LangChain StructuredTool that calls one server tool.

    The tool returns the text of the tool result. Error results come back
    as their JSON error body, never as an exception.

    Raises:
        ToolNotFoundError: tool_name is not registered on the server.
    """
    schema = next((t for t in server.list_tools() if t["name"] == tool_name), None)
    if schema is None:
        # Let the server produce its routing error
        server.call_tool(ToolCallRequest(name=tool_name))

    description = description_override or schema.get("description", tool_name)

    def _call_tool(projectPath: str, options: Optional[dict] = None) -> str:
        arguments: dict = {"projectPath": projectPath}
        if options is not None:
            arguments["options"] = options
        result = server.call_tool(ToolCallRequest(name=tool_name, arguments=arguments))
        return "\n".join(block["text"] for block in result.content)

    return StructuredTool.from_function(
        func=_call_tool,
        name=tool_name,
        description=description,
    )


def to_langchain_tools(server: VibeMCPServer) -> list[StructuredTool]:
    """One StructuredTool per tool registered on the server."""
    return [mcp_to_langchain_tool(server, t["name"]) for t in server.list_tools()]
