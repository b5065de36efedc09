"""Shared pytest fixtures for HostBill MCP server tests.

This module provides common fixtures used across multiple test modules,
reducing duplication and ensuring consistency in test data.
"""

from __future__ import annotations

import pytest

from hostbill_mcp.observability import clear_context

# Load hostbill_mcp.testing fixtures (fake_source, fake_clock, server_config)
pytest_plugins = ["hostbill_mcp.testing.fixtures"]

HOSTBILL_ENV = {
    "HOSTBILL_URL": "https://billing.example.com/",
    "HOSTBILL_API_ID": "test-api-id",
    "HOSTBILL_API_KEY": "test-api-key-0123456789",
}


@pytest.fixture(autouse=True)
def _clear_log_context() -> None:
    """Drop structlog context bound by a previous test."""
    clear_context()


@pytest.fixture
def hostbill_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set the required HostBill environment variables for the test."""
    for name, value in HOSTBILL_ENV.items():
        monkeypatch.setenv(name, value)
    return dict(HOSTBILL_ENV)
