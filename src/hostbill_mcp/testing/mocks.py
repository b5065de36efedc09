"""Fake capability sources for HostBill MCP tests.

This module provides FakeCapabilitySource: an in-memory stand-in for
HostBillClient that can pre-set methods, details and results, and records
every call for assertions.

Features:
    - Pre-set method list, per-method details and per-method results.
    - Call recording (list/details/invoke counters and invoke arguments).
    - Configurable failures for error-path tests.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from hostbill_mcp.errors import DiscoveryError, HostBillAPIError


class FakeCapabilitySource:
    """Configurable in-memory capability source.

    Implements ``CapabilitySource`` without any network access.

    Attributes:
        connected: Value returned by test_connection().
        invocations: (method, args) pairs passed to invoke(), in call order.
        list_calls: Number of list_methods() calls.
        detail_calls: Number of get_method_details() calls per method.
        closed: True once aclose() has been awaited.
    """

    def __init__(
        self,
        methods: Iterable[str] = (),
        *,
        connected: bool = True,
        details: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        """Initialize the fake source.

        Args:
            methods: Method names reported by list_methods().
            connected: Whether test_connection() succeeds.
            details: Raw details payload per method name.
        """
        self.methods = list(methods)
        self.connected = connected
        self._details: dict[str, dict[str, Any]] = dict(details or {})
        self._results: dict[str, Any] = {}
        self._invoke_failures: dict[str, BaseException] = {}
        self._failing_details: set[str] = set()
        self._list_failure: BaseException | None = None
        self._connection_failure: BaseException | None = None
        self._server_info: dict[str, Any] = {"version": "2024.1", "name": "HostBill"}
        self.invocations: list[tuple[str, dict[str, Any]]] = []
        self.list_calls = 0
        self.detail_calls: dict[str, int] = {}
        self.closed = False

    def set_details(self, method: str, payload: dict[str, Any]) -> None:
        self._details[method] = payload

    def fail_details(self, *methods: str) -> None:
        """Make get_method_details() raise for ``methods``."""
        self._failing_details.update(methods)

    def set_result(self, method: str, result: Any) -> None:
        """Pre-set the value invoke() returns for ``method``."""
        self._results[method] = result

    def set_invoke_failure(self, method: str, exception: BaseException) -> None:
        self._invoke_failures[method] = exception

    def set_list_failure(self, exception: BaseException | None) -> None:
        self._list_failure = exception

    def set_connection_failure(self, exception: BaseException | None) -> None:
        """Make test_connection() raise instead of returning a flag."""
        self._connection_failure = exception

    def set_server_info(self, info: dict[str, Any]) -> None:
        self._server_info = info

    def invocations_for(self, method: str) -> list[dict[str, Any]]:
        """Return the argument dicts passed to invoke() for ``method``."""
        return [args for name, args in self.invocations if name == method]

    async def test_connection(self) -> bool:
        if self._connection_failure is not None:
            raise self._connection_failure
        return self.connected

    async def list_methods(self) -> list[str]:
        self.list_calls += 1
        if self._list_failure is not None:
            raise self._list_failure
        return list(self.methods)

    async def get_method_details(self, name: str) -> dict[str, Any]:
        self.detail_calls[name] = self.detail_calls.get(name, 0) + 1
        if name in self._failing_details:
            raise DiscoveryError(f"No details available for {name}")
        return dict(self._details.get(name, {"description": "", "parameters": []}))

    async def invoke(self, name: str, args: dict[str, Any]) -> Any:
        self.invocations.append((name, dict(args)))
        if name in self._invoke_failures:
            raise self._invoke_failures[name]
        if name not in self.methods:
            raise HostBillAPIError(name, f"API Error: Unknown method {name}")
        return self._results.get(name, {"success": True, "call": name})

    async def server_info(self) -> dict[str, Any]:
        if not self.connected:
            return {"error": "Request failed: connection refused"}
        return dict(self._server_info)

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock for cache TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def method_names(count: int, prefix: str = "getItem") -> list[str]:
    """Generate ``count`` distinct method names (``getItem0``, ``getItem1``...)."""
    return [f"{prefix}{i}" for i in range(count)]


__all__ = ["FakeCapabilitySource", "FakeClock", "method_names"]
