"""HostBill MCP testing utilities for easier test authoring.

Modules:
    fixtures: Pytest fixtures (fake_source, fake_clock, server_config)
              and the started_session() context manager.
    mocks: FakeCapabilitySource, an in-memory capability source with
           pre-set methods and results plus call recording.
    streams: StringIO helpers for driving the stdio serve loop.

Example:
    >>> from hostbill_mcp.testing import FakeCapabilitySource, rpc_lines
    >>> source = FakeCapabilitySource(["getClients"])
"""

from hostbill_mcp.testing.mocks import FakeCapabilitySource, FakeClock, method_names
from hostbill_mcp.testing.streams import read_responses, request, rpc_lines, tool_call

__all__ = [
    "FakeCapabilitySource",
    "FakeClock",
    "method_names",
    "read_responses",
    "request",
    "rpc_lines",
    "tool_call",
]
