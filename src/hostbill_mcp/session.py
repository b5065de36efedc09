"""Server session lifecycle.

A session spans one server lifetime: probing at startup, serving until the
input stream closes, then teardown. The session owns its DiscoveryCache and
ToolRegistry; nothing is shared across sessions.

State machine::

    uninitialized -> probing -> ready | degraded -> serving -> terminated

Every earlier state may also go straight to terminated. From probing that
only happens when start() is interrupted.

The surface strategy is chosen once, while probing. There is no way back to
probing; a fresh session is needed to re-discover the API.

Example:
    >>> session = Session(source, threshold=50)
    >>> await session.start()
    >>> session.mode
    <SurfaceMode.DIRECT: 'direct'>
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum

from hostbill_mcp.discovery.cache import DEFAULT_TTL, DiscoveryCache
from hostbill_mcp.discovery.service import Discovery
from hostbill_mcp.discovery.source import CapabilitySource
from hostbill_mcp.errors import InvalidTransitionError
from hostbill_mcp.observability import get_logger
from hostbill_mcp.tools.registry import ToolRegistry
from hostbill_mcp.tools.strategy import (
    DEFAULT_THRESHOLD,
    SurfaceMode,
    build_direct_tools,
    build_fallback_tools,
    build_meta_tools,
    select_mode,
)

logger = get_logger(__name__)


class SessionState(str, Enum):
    """Session lifecycle states. TERMINATED is terminal."""

    UNINITIALIZED = "uninitialized"
    PROBING = "probing"
    READY = "ready"
    DEGRADED = "degraded"
    SERVING = "serving"
    TERMINATED = "terminated"


VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.UNINITIALIZED: {SessionState.PROBING, SessionState.TERMINATED},
    SessionState.PROBING: {SessionState.READY, SessionState.DEGRADED, SessionState.TERMINATED},
    SessionState.READY: {SessionState.SERVING, SessionState.TERMINATED},
    SessionState.DEGRADED: {SessionState.SERVING, SessionState.TERMINATED},
    SessionState.SERVING: {SessionState.TERMINATED},
    SessionState.TERMINATED: set(),
}


def can_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """Check if a session may move from ``from_state`` to ``to_state``.

    Example:
        >>> can_transition(SessionState.READY, SessionState.SERVING)
        True
        >>> can_transition(SessionState.SERVING, SessionState.PROBING)
        False
    """
    return to_state in VALID_TRANSITIONS.get(from_state, set())


class Session:
    """One probing-to-teardown lifetime of the server.

    Attributes:
        registry: Tools exposed for this session.
        discovery: Cached discovery over the session's source.
        mode: Surface strategy chosen while probing (None before start()).
        methods: Method names discovered while probing.
    """

    def __init__(
        self,
        source: CapabilitySource,
        *,
        threshold: int = DEFAULT_THRESHOLD,
        cache_ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the session.

        Args:
            source: Capability source to probe and invoke.
            threshold: Largest method count still exposed in direct mode.
            cache_ttl: Discovery cache TTL in seconds.
            clock: Monotonic clock for the discovery cache.
        """
        self._source = source
        self._threshold = threshold
        self._state = SessionState.UNINITIALIZED
        self.registry = ToolRegistry()
        self.discovery = Discovery(source, DiscoveryCache(ttl=cache_ttl, clock=clock))
        self.mode: SurfaceMode | None = None
        self.methods: list[str] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def source(self) -> CapabilitySource:
        return self._source

    @property
    def threshold(self) -> int:
        return self._threshold

    def _transition(self, new_state: SessionState) -> None:
        if not can_transition(self._state, new_state):
            raise InvalidTransitionError(self._state.value, new_state.value)
        logger.debug("session.transition", from_state=self._state.value, to_state=new_state.value)
        self._state = new_state

    async def start(self) -> SurfaceMode:
        """Probe the source, choose a strategy and populate the registry.

        Never raises for source failures: an unreachable API or a failing
        method listing puts the session in fallback mode.

        Raises:
            InvalidTransitionError: If the session was already started.
        """
        self._transition(SessionState.PROBING)
        logger.info("session.probe.started")

        try:
            connected = await self._source.test_connection()
        except Exception as e:
            logger.warning("session.probe.connection_error", error=str(e))
            connected = False

        if not connected:
            logger.warning("session.probe.unreachable")
            return self._degrade()

        try:
            self.methods = await self.discovery.methods()
            logger.info("session.probe.discovered", methods=len(self.methods))
            mode = select_mode(len(self.methods), self._threshold)
            if mode is SurfaceMode.META:
                tools = build_meta_tools(self.discovery, self._source, self.methods)
            else:
                tools = await build_direct_tools(self.discovery, self._source, self.methods)
            self.registry.register_all(tools)
        except Exception as e:
            logger.warning("session.probe.discovery_failed", error=str(e))
            return self._degrade()

        self.registry.freeze()
        self.mode = mode
        self._transition(SessionState.READY)
        logger.info("session.mode.selected", mode=mode.value, tools=len(self.registry))
        return mode

    def _degrade(self) -> SurfaceMode:
        self.methods = []
        self.registry.clear()
        self.registry.register_all(build_fallback_tools(self._source))
        self.registry.freeze()
        self.mode = SurfaceMode.FALLBACK
        self._transition(SessionState.DEGRADED)
        logger.info("session.mode.selected", mode=self.mode.value, tools=len(self.registry))
        return self.mode

    def mark_serving(self) -> None:
        """Enter the serving state once the registry is populated."""
        self._transition(SessionState.SERVING)

    async def close(self) -> None:
        """Tear the session down: drop cached discovery and close the source."""
        if self._state is SessionState.TERMINATED:
            return
        self._transition(SessionState.TERMINATED)
        self.discovery.cache.clear()
        await self._source.aclose()
        logger.info("session.closed")
