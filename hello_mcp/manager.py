"""
Tool Server Manager: launches and talks to MCP tool server processes.

Usage:
    manager = ToolServerManager()

    # Register a server
    manager.register_server("echo", ["python", "-m", "hello_mcp.servers.echo"])

    # Start it (initialize handshake + tool discovery)
    manager.start("echo")

    # Call a tool
    result = manager.call("echo", "echo", {"message": "Hello, World!"})
    result.joined_text()  # "Hello, World!"

    # Stop everything
    manager.stop_all()
"""

from __future__ import annotations

import logging
from typing import Any

from hello_mcp.server import LATEST_PROTOCOL_VERSION, ToolResult
from hello_mcp.transport import JsonRpcRequest, StdioTransport

logger = logging.getLogger(__name__)

CLIENT_INFO = {"name": "hello-mcp-manager", "version": "1.0.0"}


class ToolServerManager:
    """
    Manages the lifecycle of MCP tool server processes.

    Responsibilities:
    - Launch tool servers as subprocesses (stdio transport)
    - Run the initialize handshake and discover tools
    - Route tool calls to the correct server
    - Graceful shutdown
    """

    def __init__(self):
        self._servers: dict[str, dict] = {}
        # server_id → {
        #   "command": [...],
        #   "transport": StdioTransport | None,
        #   "env": dict | None,
        #   "server_info": dict (from initialize),
        #   "tools": [descriptor, ...] (discovered after start),
        # }

    def register_server(
        self,
        server_id: str,
        command: list[str],
        env: dict[str, str] | None = None,
    ) -> None:
        """
        Register a tool server (does not start it yet).

        Args:
            server_id: Unique identifier for this server
            command: Command to launch the server process
            env: Optional environment variables
        """
        self._servers[server_id] = {
            "command": command,
            "transport": None,
            "env": env,
            "server_info": {},
            "tools": [],
        }
        logger.info(f"Registered server: {server_id} ({' '.join(command)})")

    def _request(self, server_id: str, transport: StdioTransport, method: str, params: dict) -> Any:
        response = transport.send(
            JsonRpcRequest(method=method, params=params, id=transport.next_id())
        )
        if response.is_error:
            raise RuntimeError(f"{method} failed on {server_id}: {response.error}")
        return response.result

    def start(self, server_id: str) -> list[dict]:
        """
        Start a tool server, initialize the session and discover its tools.

        Returns:
            List of tool descriptors from the server.
        """
        server = self._servers.get(server_id)
        if not server:
            raise ValueError(f"Unknown server: {server_id}")

        transport = StdioTransport(server["command"], server.get("env"))
        transport.start()
        server["transport"] = transport

        try:
            init = self._request(server_id, transport, "initialize", {
                "protocolVersion": LATEST_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": CLIENT_INFO,
            })
            transport.notify(JsonRpcRequest(method="notifications/initialized"))
            listing = self._request(server_id, transport, "tools/list", {})
        except Exception:
            self.stop(server_id)
            raise

        server["server_info"] = (init or {}).get("serverInfo", {})
        server["tools"] = (listing or {}).get("tools", [])
        tool_names = [t["name"] for t in server["tools"]]
        logger.info(f"Started {server_id}: tools={tool_names}")

        return server["tools"]

    def start_all(self) -> dict[str, list[dict]]:
        """Start all registered servers. Returns {server_id: [descriptors]}."""
        results = {}
        for server_id in self._servers:
            try:
                results[server_id] = self.start(server_id)
            except Exception as e:
                logger.error(f"Failed to start {server_id}: {e}")
                results[server_id] = []
        return results

    def stop(self, server_id: str) -> None:
        """Stop a tool server."""
        server = self._servers.get(server_id)
        if server and server["transport"]:
            server["transport"].stop()
            server["transport"] = None
            logger.info(f"Stopped {server_id}")

    def stop_all(self) -> None:
        """Stop all running servers."""
        for server_id in list(self._servers.keys()):
            self.stop(server_id)

    def call(
        self,
        server_id: str,
        tool_name: str,
        arguments: Any,
    ) -> ToolResult:
        """
        Call a tool on a specific server.

        Args:
            server_id: Which server to call
            tool_name: Which tool on that server
            arguments: Tool arguments, sent as given

        Returns:
            The ToolResult. Tool-level failures come back with is_error set;
            only protocol failures raise.
        """
        server = self._servers.get(server_id)
        if not server:
            raise ValueError(f"Unknown server: {server_id}")

        transport = server.get("transport")
        if not transport or not transport.is_alive():
            raise RuntimeError(f"Server {server_id} is not running. Call start() first.")

        result = self._request(server_id, transport, "tools/call", {
            "name": tool_name,
            "arguments": arguments,
        })
        if not isinstance(result, dict):
            raise RuntimeError(f"tools/call on {server_id} returned a malformed result: {result!r}")
        return ToolResult.from_dict(result)

    def server_info(self, server_id: str) -> dict:
        """serverInfo reported by the server during initialize."""
        server = self._servers.get(server_id)
        return server["server_info"] if server else {}

    def list_tools(self, server_id: str) -> list[dict]:
        """List discovered tools for a server."""
        server = self._servers.get(server_id)
        return server["tools"] if server else []

    def list_servers(self) -> dict[str, bool]:
        """List all servers and their running status."""
        return {
            sid: (s["transport"] is not None and s["transport"].is_alive())
            for sid, s in self._servers.items()
        }

    def is_running(self, server_id: str) -> bool:
        """Check if a specific server is running."""
        server = self._servers.get(server_id)
        return (
            server is not None
            and server["transport"] is not None
            and server["transport"].is_alive()
        )
