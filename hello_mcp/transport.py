"""
JSON-RPC message types and the stdio transport for MCP tool servers.

Both sides speak the same framing: one JSON object per line.

  - JsonRpcRequest / JsonRpcResponse: the message envelopes
  - JsonRpcError: a protocol failure carrying a JSON-RPC error code
  - StdioTransport: client side, talks to a tool server subprocess
"""

from __future__ import annotations

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def is_valid_id(value: Any) -> bool:
    """MCP request ids are strings or integers, never null."""
    return isinstance(value, (str, int)) and not isinstance(value, bool)


class JsonRpcError(Exception):
    """A protocol-level failure that becomes a JSON-RPC error response."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request. A request without an id is a notification."""
    method: str
    params: dict[str, Any] | None = None
    id: int | str | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None

    def to_json(self) -> str:
        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": self.method}
        if self.params is not None:
            message["params"] = self.params
        if not self.is_notification:
            message["id"] = self.id
        return json.dumps(message)

    @classmethod
    def from_message(cls, message: Any) -> "JsonRpcRequest":
        """Validate a decoded message and build a request from it."""
        if not isinstance(message, dict):
            raise JsonRpcError(INVALID_REQUEST, "Invalid Request: expected a JSON object")
        # A notification has no "id" member at all; a present id must be usable
        if "id" in message and not is_valid_id(message["id"]):
            raise JsonRpcError(INVALID_REQUEST, 'Invalid Request: "id" must be a string or integer')
        if message.get("jsonrpc") != JSONRPC_VERSION:
            raise JsonRpcError(INVALID_REQUEST, 'Invalid Request: "jsonrpc" must be "2.0"')
        method = message.get("method")
        if not isinstance(method, str):
            raise JsonRpcError(INVALID_REQUEST, 'Invalid Request: "method" must be a string')
        return cls(method=method, params=message.get("params"), id=message.get("id"))


@dataclass
class JsonRpcResponse:
    """JSON-RPC 2.0 response."""
    id: int | str | None
    result: Any = None
    error: dict | None = None

    @classmethod
    def from_json(cls, data: str) -> "JsonRpcResponse":
        parsed = json.loads(data)
        return cls(
            id=parsed.get("id"),
            result=parsed.get("result"),
            error=parsed.get("error"),
        )

    @classmethod
    def failure(cls, request_id: Any, error: JsonRpcError) -> "JsonRpcResponse":
        return cls(id=request_id, error=error.to_dict())

    def to_json(self) -> str:
        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            message["error"] = self.error
        else:
            message["result"] = self.result
        return json.dumps(message)

    @property
    def is_error(self) -> bool:
        return self.error is not None


class Transport(ABC):
    """Abstract client-side transport for MCP communication."""

    @abstractmethod
    def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Send a request and return the response."""
        ...

    @abstractmethod
    def notify(self, request: JsonRpcRequest) -> None:
        """Send a notification. No response is read."""
        ...

    @abstractmethod
    def start(self) -> None:
        """Start the transport (e.g., launch subprocess)."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop the transport (e.g., terminate subprocess)."""
        ...

    @abstractmethod
    def is_alive(self) -> bool:
        """Check if the transport is active."""
        ...


class StdioTransport(Transport):
    """
    JSON-RPC over stdin/stdout pipes to a subprocess.

    The tool server runs as a child process. We write JSON-RPC requests
    to its stdin and read responses from its stdout. One line = one
    message. The server's stderr carries its diagnostics.
    """

    def __init__(self, command: list[str], env: dict[str, str] | None = None):
        """
        Args:
            command: Command to launch the tool server process.
                     e.g., ["python", "-m", "hello_mcp.servers.echo"]
            env: Optional environment variables for the subprocess.
        """
        self.command = command
        self.env = env
        self._process: subprocess.Popen | None = None
        self._request_id = 0

    def start(self) -> None:
        """Launch the tool server subprocess."""
        if self._process and self._process.poll() is None:
            logger.warning("Transport already running, stopping first")
            self.stop()

        logger.info(f"Starting stdio transport: {' '.join(self.command)}")
        self._process = subprocess.Popen(
            self.command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            env=self.env,
            bufsize=1,  # Line-buffered
        )

    def stop(self) -> None:
        """Close the server's stdin and wait for it to exit."""
        if self._process:
            if self._process.stdin:
                try:
                    self._process.stdin.close()
                except BrokenPipeError:
                    # Server already exited with unflushed input
                    pass
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.terminate()
                try:
                    self._process.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    self._process.kill()
            for stream in (self._process.stdout, self._process.stderr):
                if stream:
                    stream.close()
            self._process = None
            logger.info("Stdio transport stopped")

    def is_alive(self) -> bool:
        """Check if the subprocess is running."""
        return self._process is not None and self._process.poll() is None

    def _died(self) -> RuntimeError:
        stderr = self._process.stderr.read() if self._process.stderr else ""
        return RuntimeError(f"Tool server process died. stderr: {stderr[:500]}")

    def _write(self, request: JsonRpcRequest) -> None:
        if self._process is None:
            raise RuntimeError("Transport not running. Call start() first.")
        if self._process.poll() is not None:
            raise self._died()
        try:
            self._process.stdin.write(request.to_json() + "\n")
            self._process.stdin.flush()
        except BrokenPipeError:
            raise self._died() from None

    def notify(self, request: JsonRpcRequest) -> None:
        """Write a notification to the server's stdin."""
        self._write(request)

    def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Send JSON-RPC request via stdin, read response from stdout."""
        self._write(request)

        response_line = self._process.stdout.readline()
        if not response_line:
            # Process may have died
            raise self._died()

        return JsonRpcResponse.from_json(response_line.strip())

    def next_id(self) -> int:
        """Generate the next request ID."""
        self._request_id += 1
        return self._request_id
