"""
Echo tool dispatch: discovery, validation order and exact echoing.

Usage: python -m pytest tests/test_echo_tool.py -v
"""

import logging

import pytest

from hello_mcp.config import Settings
from hello_mcp.server import ToolResult
from hello_mcp.servers.echo import INVALID_ARGUMENTS, INVALID_MESSAGE, EchoTool, build_server

EXPECTED_DESCRIPTOR = {
    "name": "echo",
    "description": "Returns the input text exactly as provided",
    "inputSchema": {
        "type": "object",
        "properties": {
            "message": {"type": "string", "description": "Text to echo back"},
        },
        "required": ["message"],
    },
}


@pytest.fixture
def server():
    return build_server(Settings(server_name="hello-world-server", server_version="1.0.0", log_level="INFO"))


def _only_text(result: ToolResult) -> str:
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    return result.content[0].text


# ── capability-list ─────────────────────────────────────────────────────

def test_list_tools_returns_single_echo_descriptor(server):
    assert server.list_tools() == {"tools": [EXPECTED_DESCRIPTOR]}


def test_list_tools_unaffected_by_history(server):
    server.call_tool("echo", {"message": "a"})
    server.call_tool("foo", None)
    server.call_tool("echo", [1, 2])
    assert server.list_tools() == {"tools": [EXPECTED_DESCRIPTOR]}


def test_list_tools_returns_fresh_copies(server):
    listing = server.list_tools()
    listing["tools"][0]["inputSchema"]["properties"]["message"]["type"] = "number"
    listing["tools"][0]["inputSchema"]["required"].append("other")
    assert server.list_tools() == {"tools": [EXPECTED_DESCRIPTOR]}


# ── capability-invoke: success ──────────────────────────────────────────

def test_hello_world(server):
    result = server.call_tool("echo", {"message": "Hello, World!"})
    assert result.to_dict() == {
        "content": [{"type": "text", "text": "Hello, World!"}],
        "isError": False,
    }


@pytest.mark.parametrize("message", [
    "",
    "   padded   ",
    "line one\nline two\r\n\ttabbed\x00nul\x1b[0m",
    "héllo wörld ✓ 你好 🚀",
    '"quoted" \\ backslash <tag> &amp;',
    "x" * 100_000,
])
def test_message_echoed_exactly(server, message):
    result = server.call_tool("echo", {"message": message})
    assert result.is_error is False
    assert _only_text(result) == message


def test_extra_arguments_ignored(server):
    result = server.call_tool("echo", {"message": "hi", "extra": [1, 2, 3]})
    assert result == ToolResult.text("hi")


def test_repeated_invocations_identical(server):
    responses = [server.call_tool("echo", {"message": "same"}).to_dict() for _ in range(5)]
    assert all(r == responses[0] for r in responses)


# ── capability-invoke: validation ───────────────────────────────────────

@pytest.mark.parametrize("name", ["foo", "Echo", "echo ", ""])
def test_unknown_tool(server, name):
    result = server.call_tool(name, {"message": "hi"})
    assert result.is_error is True
    assert _only_text(result) == f"Unknown tool: {name}. Available tools: echo"


def test_unknown_tool_checked_before_arguments(server):
    result = server.call_tool("foo", None)
    assert _only_text(result) == "Unknown tool: foo. Available tools: echo"


@pytest.mark.parametrize("arguments", [None, "a string", [1, 2], 42, True])
def test_arguments_must_be_object(server, arguments):
    result = server.call_tool("echo", arguments)
    assert result.is_error is True
    assert _only_text(result) == INVALID_ARGUMENTS


def test_missing_arguments(server):
    result = server.call_tool("echo")
    assert result == ToolResult.error(INVALID_ARGUMENTS)


@pytest.mark.parametrize("arguments", [{"message": 42}, {"message": None}, {}, {"message": ["a"]}])
def test_message_must_be_string(server, arguments):
    result = server.call_tool("echo", arguments)
    assert result.is_error is True
    assert _only_text(result) == INVALID_MESSAGE


def test_error_messages():
    assert INVALID_ARGUMENTS == 'Invalid arguments: expected an object with a "message" property'
    assert INVALID_MESSAGE == 'Invalid argument: "message" must be a string'


# ── diagnostics ─────────────────────────────────────────────────────────

def test_success_logs_one_diagnostic(caplog):
    caplog.set_level(logging.DEBUG, logger="hello_mcp")
    EchoTool().handle({"message": "Hello"})
    records = [r for r in caplog.records if r.name == "hello_mcp.servers.echo"]
    assert len(records) == 1
    assert records[0].levelno == logging.INFO
    assert records[0].getMessage() == 'Echo tool called with message: "Hello"'


@pytest.mark.parametrize("arguments", [None, [1], {"message": 1}])
def test_failures_log_nothing(server, caplog, arguments):
    caplog.set_level(logging.DEBUG, logger="hello_mcp")
    server.call_tool("echo", arguments)
    server.call_tool("foo", {"message": "x"})
    assert caplog.records == []
