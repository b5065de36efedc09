"""Pytest fixtures and context managers for HostBill MCP tests.

Fixtures (use with pytest):
    fake_source: FakeCapabilitySource with a small HostBill-like API.
    fake_clock: FakeClock for deterministic cache expiry.
    server_config: ServerConfig with dummy credentials.

Context managers:
    started_session(): Async context manager yielding a started Session.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import pytest
from pydantic import SecretStr

from hostbill_mcp.config import ServerConfig
from hostbill_mcp.session import Session
from hostbill_mcp.testing.mocks import FakeCapabilitySource, FakeClock

DEFAULT_TEST_BASE_URL = "https://billing.example.com"

SAMPLE_METHODS = [
    "getClients",
    "getClientDetails",
    "addClient",
    "getOrders",
    "addOrder",
    "getInvoices",
    "getInvoiceDetails",
    "getTickets",
    "addTicketReply",
    "getDomains",
    "getProducts",
    "getServerInfo",
]

SAMPLE_DETAILS = {
    "getClientDetails": {
        "description": "Get client details",
        "parameters": [
            {"name": "id", "type": "int", "description": "Client ID", "required": True},
        ],
    },
    "addClient": {
        "description": "Create a new client",
        "parameters": {
            "firstname": {"type": "string", "description": "First name", "required": "1"},
            "email": {"type": "email", "description": "Email address", "required": "1"},
            "credit": {"type": "float", "description": "Starting credit"},
        },
    },
}


@pytest.fixture
def fake_source() -> FakeCapabilitySource:
    """Create a FakeCapabilitySource reporting twelve HostBill methods."""
    return FakeCapabilitySource(SAMPLE_METHODS, details=SAMPLE_DETAILS)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def server_config() -> ServerConfig:
    """Create a ServerConfig with dummy credentials."""
    return ServerConfig(
        hostbill_url=DEFAULT_TEST_BASE_URL,
        api_id=SecretStr("test-api-id"),
        api_key=SecretStr("test-api-key-0123456789"),
    )


@asynccontextmanager
async def started_session(
    source: FakeCapabilitySource, threshold: int = 50
) -> AsyncIterator[Session]:
    """Async context manager yielding a started Session; closes it on exit.

    Example:
        >>> async with started_session(FakeCapabilitySource(["ping"])) as session:
        ...     assert session.mode is SurfaceMode.DIRECT
    """
    session = Session(source, threshold=threshold)
    try:
        await session.start()
        yield session
    finally:
        await session.close()


__all__ = [
    "DEFAULT_TEST_BASE_URL",
    "SAMPLE_DETAILS",
    "SAMPLE_METHODS",
    "fake_clock",
    "fake_source",
    "server_config",
    "started_session",
]
