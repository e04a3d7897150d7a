"""
Server settings, read from the environment (and a .env file if present).

    HELLO_MCP_LOG_LEVEL       diagnostic log level (default INFO)
    HELLO_MCP_SERVER_NAME     serverInfo.name and log prefix
    HELLO_MCP_SERVER_VERSION  serverInfo.version
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv

DEFAULT_SERVER_NAME = "hello-world-server"
DEFAULT_SERVER_VERSION = "1.0.0"
DEFAULT_LOG_LEVEL = "INFO"


def _env(key: str, default: str) -> str:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass
class Settings:
    server_name: str = field(default_factory=lambda: _env("HELLO_MCP_SERVER_NAME", DEFAULT_SERVER_NAME))
    server_version: str = field(default_factory=lambda: _env("HELLO_MCP_SERVER_VERSION", DEFAULT_SERVER_VERSION))
    log_level: str = field(default_factory=lambda: _env("HELLO_MCP_LOG_LEVEL", DEFAULT_LOG_LEVEL))

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")


def load_settings(dotenv: bool = True) -> Settings:
    """Build Settings from the environment, loading .env first unless disabled."""
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Send all diagnostics to stderr so stdout stays pure protocol."""
    logging.basicConfig(
        level=settings.log_level,
        format=f"[{settings.server_name}] %(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
