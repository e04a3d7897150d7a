"""Runnable MCP tool servers."""
