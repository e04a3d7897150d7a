"""
hello-mcp: a minimal MCP tool server that echoes text back.

Architecture:
    ┌──────────────┐     stdio      ┌──────────────┐
    │    Client    │ ──────────── │  Tool Server  │
    │  (manager)   │  JSON-RPC    │  (subprocess) │
    └──────────────┘     pipes     └──────────────┘

The server is a standalone process that reads JSON-RPC 2.0 messages
(the MCP protocol) from stdin, one per line, and answers on stdout.
Diagnostics go to stderr.

StdioToolServer owns the session loop and the tool registry.
ToolHandler subclasses implement tools; EchoTool is the only one.
ToolServerManager launches servers and calls their tools.
"""

from hello_mcp.server import StdioToolServer, TextContent, ToolHandler, ToolResult
from hello_mcp.manager import ToolServerManager

__version__ = "1.0.0"

__all__ = [
    "StdioToolServer",
    "TextContent",
    "ToolHandler",
    "ToolResult",
    "ToolServerManager",
]
