"""
Echo MCP tool server.

Advertises a single tool, "echo", which returns its "message" argument
exactly as provided.

Launch:
    python -m hello_mcp.servers.echo
    hello-mcp-echo --verbose

Test:
    echo '{"jsonrpc":"2.0","method":"tools/call","params":{"name":"echo","arguments":{"message":"hi"}},"id":1}' | python -m hello_mcp.servers.echo
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from hello_mcp.config import DEFAULT_SERVER_NAME, Settings, configure_logging, load_settings
from hello_mcp.server import StdioToolServer, ToolHandler, ToolResult

logger = logging.getLogger(__name__)

INVALID_ARGUMENTS = 'Invalid arguments: expected an object with a "message" property'
INVALID_MESSAGE = 'Invalid argument: "message" must be a string'


class EchoTool(ToolHandler):
    name = "echo"
    description = "Returns the input text exactly as provided"
    parameters = {
        "message": {
            "type": "string",
            "description": "Text to echo back",
        },
    }
    required = ("message",)

    def handle(self, arguments: Any) -> ToolResult:
        if not isinstance(arguments, dict):
            return ToolResult.error(INVALID_ARGUMENTS)

        message = arguments.get("message")
        if not isinstance(message, str):
            return ToolResult.error(INVALID_MESSAGE)

        logger.info(f'Echo tool called with message: "{message}"')
        return ToolResult.text(message)


def build_server(settings: Settings) -> StdioToolServer:
    return StdioToolServer(
        settings.server_name,
        settings.server_version,
        handlers=[EchoTool()],
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the echo MCP tool server over stdio.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")
    parser.add_argument("--log-level", type=str, default=None, help="Log level override (e.g., WARNING)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    server_name = DEFAULT_SERVER_NAME

    try:
        settings = load_settings()
        server_name = settings.server_name
        if args.verbose or args.log_level:
            settings = Settings(
                server_name=settings.server_name,
                server_version=settings.server_version,
                log_level="DEBUG" if args.verbose else args.log_level,
            )
        configure_logging(settings)
        server = build_server(settings)
    except Exception as e:
        # Logging may not be configured yet
        print(f"[{server_name}] Failed to start server: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
