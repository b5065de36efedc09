"""Tests for the session lifecycle and surface selection at startup."""

from __future__ import annotations

import asyncio

import pytest

from hostbill_mcp.errors import DiscoveryError, HostBillAPIError, InvalidTransitionError
from hostbill_mcp.session import Session, SessionState, can_transition
from hostbill_mcp.testing import FakeCapabilitySource, FakeClock, method_names
from hostbill_mcp.testing.fixtures import started_session
from hostbill_mcp.tools.strategy import SurfaceMode


class TestTransitions:
    def test_valid_path(self) -> None:
        assert can_transition(SessionState.UNINITIALIZED, SessionState.PROBING)
        assert can_transition(SessionState.PROBING, SessionState.READY)
        assert can_transition(SessionState.PROBING, SessionState.DEGRADED)
        assert can_transition(SessionState.READY, SessionState.SERVING)
        assert can_transition(SessionState.DEGRADED, SessionState.SERVING)
        assert can_transition(SessionState.SERVING, SessionState.TERMINATED)

    def test_interrupted_probe_may_terminate(self) -> None:
        assert can_transition(SessionState.PROBING, SessionState.TERMINATED)

    def test_no_way_back_to_probing(self) -> None:
        for state in SessionState:
            if state is not SessionState.UNINITIALIZED:
                assert not can_transition(state, SessionState.PROBING)

    def test_terminated_is_terminal(self) -> None:
        assert not any(can_transition(SessionState.TERMINATED, s) for s in SessionState)


class TestStart:
    """start() picks exactly one surface from the probe outcome."""

    @pytest.mark.asyncio
    async def test_twelve_methods_direct_mode(self, fake_source: FakeCapabilitySource) -> None:
        async with started_session(fake_source) as session:
            assert session.mode is SurfaceMode.DIRECT
            assert session.state is SessionState.READY
            assert len(session.registry) == 12
            assert "hostbill_getclientdetails" in session.registry
            assert session.registry.frozen

    @pytest.mark.asyncio
    async def test_large_api_meta_mode(self) -> None:
        source = FakeCapabilitySource(method_names(120))
        async with started_session(source) as session:
            assert session.mode is SurfaceMode.META
            assert session.registry.names() == ["list_methods", "get_method_details", "call_api"]
            assert len(session.methods) == 120
            # Meta mode never fetches details while probing
            assert source.detail_calls == {}

    @pytest.mark.asyncio
    async def test_unreachable_source_fallback_mode(self) -> None:
        source = FakeCapabilitySource(method_names(5), connected=False)
        async with started_session(source) as session:
            assert session.mode is SurfaceMode.FALLBACK
            assert session.state is SessionState.DEGRADED
            assert session.registry.names() == ["test_connection", "server_info"]
            assert source.list_calls == 0

    @pytest.mark.asyncio
    async def test_connection_exception_fallback_mode(self) -> None:
        source = FakeCapabilitySource(method_names(5))
        source.set_connection_failure(OSError("network down"))
        async with started_session(source) as session:
            assert session.mode is SurfaceMode.FALLBACK

    @pytest.mark.asyncio
    async def test_failing_method_list_fallback_mode(self) -> None:
        source = FakeCapabilitySource(method_names(5))
        source.set_list_failure(DiscoveryError("Failed to retrieve API methods"))
        async with started_session(source) as session:
            assert session.mode is SurfaceMode.FALLBACK
            assert session.methods == []
            assert len(session.registry) == 2

    @pytest.mark.asyncio
    async def test_failing_details_keep_direct_mode(self) -> None:
        source = FakeCapabilitySource(["getClients", "getOrders"])
        source.fail_details("getOrders")
        async with started_session(source) as session:
            assert session.mode is SurfaceMode.DIRECT
            tool = session.registry.require("hostbill_getorders")
            assert tool.description.startswith("Execute getOrders API call")

    @pytest.mark.asyncio
    async def test_escape_lookalike_names_stay_direct(self) -> None:
        source = FakeCapabilitySource(["getClients", "client.details", "client_2e_details"])
        async with started_session(source) as session:
            assert session.mode is SurfaceMode.DIRECT
            assert session.registry.names() == [
                "hostbill_getclients",
                "hostbill_client_2e_details",
                "hostbill_client__2e__details",
            ]

    @pytest.mark.asyncio
    async def test_case_only_collision_skips_later_method(self) -> None:
        source = FakeCapabilitySource(["getClients", "GETCLIENTS", "getOrders"])
        async with started_session(source) as session:
            assert session.mode is SurfaceMode.DIRECT
            assert session.registry.names() == ["hostbill_getclients", "hostbill_getorders"]
            await session.registry.require("hostbill_getclients").invoke({})
            assert source.invocations_for("getClients") == [{}]
            assert source.invocations_for("GETCLIENTS") == []

    @pytest.mark.asyncio
    async def test_custom_threshold(self) -> None:
        source = FakeCapabilitySource(method_names(6))
        async with started_session(source, threshold=5) as session:
            assert session.mode is SurfaceMode.META

    @pytest.mark.asyncio
    async def test_empty_api_is_direct_with_no_tools(self) -> None:
        async with started_session(FakeCapabilitySource([])) as session:
            assert session.mode is SurfaceMode.DIRECT
            assert len(session.registry) == 0

    @pytest.mark.asyncio
    async def test_cannot_start_twice(self, fake_source: FakeCapabilitySource) -> None:
        async with started_session(fake_source) as session:
            with pytest.raises(InvalidTransitionError):
                await session.start()

    @pytest.mark.asyncio
    async def test_discovery_uses_session_cache(self) -> None:
        clock = FakeClock()
        source = FakeCapabilitySource(method_names(3))
        session = Session(source, cache_ttl=300.0, clock=clock)
        await session.start()

        await session.discovery.methods()
        assert source.list_calls == 1
        clock.advance(301.0)
        await session.discovery.methods()
        assert source.list_calls == 2
        await session.close()


class TestServingAndClose:
    @pytest.mark.asyncio
    async def test_full_lifecycle(self, fake_source: FakeCapabilitySource) -> None:
        session = Session(fake_source)
        assert session.state is SessionState.UNINITIALIZED

        await session.start()
        session.mark_serving()
        assert session.state is SessionState.SERVING

        await session.close()
        assert session.state is SessionState.TERMINATED
        assert fake_source.closed
        assert len(session.discovery.cache) == 0

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, fake_source: FakeCapabilitySource) -> None:
        session = Session(fake_source)
        await session.close()
        await session.close()
        assert session.state is SessionState.TERMINATED

    @pytest.mark.asyncio
    async def test_close_after_interrupted_start(self, fake_source: FakeCapabilitySource) -> None:
        fake_source.set_connection_failure(asyncio.CancelledError())
        session = Session(fake_source)

        with pytest.raises(asyncio.CancelledError):
            await session.start()
        assert session.state is SessionState.PROBING

        await session.close()

        assert session.state is SessionState.TERMINATED
        assert fake_source.closed

    def test_cannot_serve_before_start(self, fake_source: FakeCapabilitySource) -> None:
        with pytest.raises(InvalidTransitionError):
            Session(fake_source).mark_serving()

    @pytest.mark.asyncio
    async def test_registry_frozen_while_serving(self, fake_source: FakeCapabilitySource) -> None:
        async with started_session(fake_source) as session:
            session.mark_serving()
            with pytest.raises(RuntimeError):
                session.registry.register(session.registry.require("hostbill_getclients"))

    @pytest.mark.asyncio
    async def test_invoke_error_in_direct_tool_propagates(self) -> None:
        source = FakeCapabilitySource(["getClients"])
        source.set_invoke_failure("getClients", HostBillAPIError("getClients", "API Error: x"))
        async with started_session(source) as session:
            with pytest.raises(HostBillAPIError):
                await session.registry.require("hostbill_getclients").invoke({})
