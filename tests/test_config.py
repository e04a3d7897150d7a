"""
Settings from the environment and .env, and stderr logging setup.

Usage: python -m pytest tests/test_config.py -v
"""

import logging

import pytest

from hello_mcp.config import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_SERVER_NAME,
    DEFAULT_SERVER_VERSION,
    Settings,
    configure_logging,
    load_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("HELLO_MCP_LOG_LEVEL", "HELLO_MCP_SERVER_NAME", "HELLO_MCP_SERVER_VERSION"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_defaults():
    settings = Settings()
    assert settings.server_name == DEFAULT_SERVER_NAME == "hello-world-server"
    assert settings.server_version == DEFAULT_SERVER_VERSION == "1.0.0"
    assert settings.log_level == DEFAULT_LOG_LEVEL


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("HELLO_MCP_SERVER_NAME", "custom")
    monkeypatch.setenv("HELLO_MCP_SERVER_VERSION", "9.9.9")
    monkeypatch.setenv("HELLO_MCP_LOG_LEVEL", "warning")
    settings = Settings()
    assert settings.server_name == "custom"
    assert settings.server_version == "9.9.9"
    assert settings.log_level == "WARNING"


def test_blank_env_falls_back(monkeypatch):
    monkeypatch.setenv("HELLO_MCP_SERVER_NAME", "  ")
    assert Settings().server_name == DEFAULT_SERVER_NAME


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("HELLO_MCP_LOG_LEVEL", "LOUD")
    with pytest.raises(ValueError, match="Unknown log level"):
        Settings()


def test_load_settings_reads_dotenv(tmp_path, monkeypatch):
    # Registered with monkeypatch so the value load_dotenv sets is undone
    monkeypatch.setenv("HELLO_MCP_SERVER_NAME", "placeholder")
    monkeypatch.delenv("HELLO_MCP_SERVER_NAME")
    (tmp_path / ".env").write_text("HELLO_MCP_SERVER_NAME=from-dotenv\n")
    monkeypatch.chdir(tmp_path)
    assert load_settings().server_name == "from-dotenv"


def test_load_settings_without_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("HELLO_MCP_SERVER_NAME=from-dotenv\n")
    monkeypatch.chdir(tmp_path)
    assert load_settings(dotenv=False).server_name == DEFAULT_SERVER_NAME


def test_configure_logging_targets_stderr(restore_root_logger, capsys):
    configure_logging(Settings(server_name="srv", log_level="DEBUG"))
    logging.getLogger("hello_mcp.test").debug("diagnostic line")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[srv] DEBUG: diagnostic line" in captured.err
    assert restore_root_logger.level == logging.DEBUG
