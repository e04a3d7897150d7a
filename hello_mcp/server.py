"""
MCP tool server base class.

A tool server is a standalone process that:
1. Reads JSON-RPC requests from stdin
2. Dispatches to registered ToolHandlers
3. Writes JSON-RPC responses to stdout

Diagnostics go through logging to stderr, never stdout.

To create a tool server:

    from hello_mcp.server import StdioToolServer, ToolHandler, ToolResult

    class MyTool(ToolHandler):
        name = "my_tool"
        description = "Does something useful"
        parameters = {
            "input": {"type": "string", "description": "The input"},
        }
        required = ("input",)

        def handle(self, arguments) -> ToolResult:
            return ToolResult.text(f"processed: {arguments['input']}")

    if __name__ == "__main__":
        server = StdioToolServer("my-server", "0.1.0")
        server.register(MyTool())
        server.run()
"""

from __future__ import annotations

import copy
import json
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, TextIO

from hello_mcp.transport import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    is_valid_id,
)

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[-1]


@dataclass(frozen=True)
class TextContent:
    """A plain-text content block."""
    text: str
    type: str = "text"

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ToolResult:
    """Result of a tools/call. is_error marks validation or dispatch failures."""
    content: tuple[TextContent, ...]
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=(TextContent(text),), is_error=False)

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(content=(TextContent(text),), is_error=True)

    @classmethod
    def from_dict(cls, data: dict) -> "ToolResult":
        blocks = tuple(
            TextContent(text=block.get("text", ""), type=block.get("type", "text"))
            for block in data.get("content", [])
        )
        return cls(content=blocks, is_error=bool(data.get("isError", False)))

    def to_dict(self) -> dict:
        return {
            "content": [block.to_dict() for block in self.content],
            "isError": self.is_error,
        }

    def joined_text(self) -> str:
        return "\n".join(block.text for block in self.content)


class ToolHandler(ABC):
    """
    Base class for a tool implementation.

    Subclasses define what a tool does. The server handles transport.
    """

    # Subclasses must set these
    name: str = ""
    description: str = ""
    parameters: dict[str, dict] = {}
    required: tuple[str, ...] = ()

    @abstractmethod
    def handle(self, arguments: Any) -> ToolResult:
        """
        Execute the tool with the given arguments.

        Args:
            arguments: The raw "arguments" value of the request. It may be
                missing (None) or not an object at all; the tool validates it.

        Returns:
            A ToolResult. Invalid input is reported with ToolResult.error,
            not by raising.
        """
        ...

    def get_schema(self) -> dict:
        """Return the tool descriptor for discovery. A fresh copy per call."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": copy.deepcopy(self.parameters),
                "required": list(self.required),
            },
        }


class StdioToolServer:
    """
    JSON-RPC tool server that communicates via stdin/stdout.

    Protocol:
    - One JSON-RPC message per line
    - Supports methods:
        - "initialize" → server info and capabilities
        - "ping"       → health check
        - "tools/list" → registered tool descriptors
        - "tools/call" → calls a tool by name with arguments
    - Notifications (no "id") never get a response.

    Tools are registered at startup. Once serving begins the registry is
    frozen; request handling reads it and the request only.
    """

    def __init__(self, name: str, version: str, handlers: Iterable[ToolHandler] = ()):
        self.name = name
        self.version = version
        self._handlers: dict[str, ToolHandler] = {}
        self._serving = False
        for handler in handlers:
            self.register(handler)

    def register(self, handler: ToolHandler) -> None:
        """Register a tool handler."""
        if self._serving:
            raise RuntimeError("Cannot register tools after the server has started")
        if not handler.name:
            raise ValueError(f"ToolHandler {handler.__class__.__name__} has no name")
        if handler.name in self._handlers:
            raise ValueError(f"Tool already registered: {handler.name}")
        self._handlers[handler.name] = handler
        logger.debug(f"Registered tool: {handler.name}")

    @property
    def tools(self) -> MappingProxyType:
        return MappingProxyType(self._handlers)

    # -- Dispatcher -------------------------------------------------------

    def list_tools(self) -> dict:
        """capability-list: every registered descriptor, in registration order."""
        return {"tools": [h.get_schema() for h in self._handlers.values()]}

    def call_tool(self, name: Any, arguments: Any = None) -> ToolResult:
        """capability-invoke: route to the named tool, or report it unknown."""
        handler = self._handlers.get(name) if isinstance(name, str) else None
        if handler is None:
            available = ", ".join(self._handlers)
            return ToolResult.error(f"Unknown tool: {name}. Available tools: {available}")
        return handler.handle(arguments)

    def initialize(self, params: Any) -> dict:
        requested = params.get("protocolVersion") if isinstance(params, dict) else None
        if requested in SUPPORTED_PROTOCOL_VERSIONS:
            version = requested
        else:
            version = LATEST_PROTOCOL_VERSION
        return {
            "protocolVersion": version,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": self.name, "version": self.version},
        }

    def _dispatch(self, method: str, params: Any) -> Any:
        """Route a method call to the appropriate handler."""

        if method == "initialize":
            return self.initialize(params)

        if method == "ping":
            return {}

        if method == "tools/list":
            return self.list_tools()

        if method == "tools/call":
            if not isinstance(params, dict):
                raise JsonRpcError(INVALID_PARAMS, "Invalid params: expected an object")
            name = params.get("name")
            if not isinstance(name, str):
                raise JsonRpcError(INVALID_PARAMS, 'Invalid params: "name" must be a string')
            return self.call_tool(name, params.get("arguments")).to_dict()

        raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    # -- Session ----------------------------------------------------------

    def handle_message(self, message: Any) -> JsonRpcResponse | None:
        """
        Handle one decoded message.

        Returns the response to write, or None for notifications.
        """
        request_id = message.get("id") if isinstance(message, dict) else None
        if not is_valid_id(request_id):
            request_id = None
        try:
            request = JsonRpcRequest.from_message(message)
        except JsonRpcError as e:
            return JsonRpcResponse.failure(request_id, e)

        if request.is_notification:
            # Notifications (e.g. notifications/initialized) are acknowledged by silence
            return None

        try:
            result = self._dispatch(request.method, request.params)
        except JsonRpcError as e:
            return JsonRpcResponse.failure(request.id, e)
        except Exception as e:
            logger.exception(f"Error handling {request.method}")
            return JsonRpcResponse.failure(request.id, JsonRpcError(INTERNAL_ERROR, str(e)))

        return JsonRpcResponse(id=request.id, result=result)

    def handle_line(self, line: str) -> JsonRpcResponse | None:
        """Decode one protocol line and handle it."""
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            return JsonRpcResponse.failure(None, JsonRpcError(PARSE_ERROR, f"Parse error: {e}"))
        return self.handle_message(message)

    def run(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """
        Main loop: read requests from stdin, dispatch, write responses to stdout.

        This blocks until stdin is closed (parent process terminates).
        """
        stdin = stdin if stdin is not None else sys.stdin
        stdout = stdout if stdout is not None else sys.stdout
        self._serving = True
        logger.info("Server started and waiting for requests...")
        logger.debug(f"Serving {len(self._handlers)} tools: {list(self._handlers)}")

        for line in stdin:
            line = line.strip()
            if not line:
                continue

            response = self.handle_line(line)
            if response is not None:
                self._write(stdout, response)

        logger.debug("stdin closed, shutting down")

    @staticmethod
    def _write(stdout: TextIO, response: JsonRpcResponse) -> None:
        stdout.write(response.to_json() + "\n")
        stdout.flush()
