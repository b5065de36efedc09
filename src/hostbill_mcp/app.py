"""Server bootstrap: configuration to a serving session.

Probing completes before the first request line is read. When HostBill
cannot be reached the server still starts, exposing the fallback tools.
"""

from __future__ import annotations

import io

from hostbill_mcp import __version__
from hostbill_mcp.config import ServerConfig
from hostbill_mcp.discovery.client import HostBillClient
from hostbill_mcp.discovery.source import CapabilitySource
from hostbill_mcp.mcp.protocol import Implementation
from hostbill_mcp.mcp.server import ProtocolEngine
from hostbill_mcp.mcp.transport import LineTransport, StdioTransport
from hostbill_mcp.observability import bind_context, get_logger
from hostbill_mcp.session import Session
from hostbill_mcp.tools.strategy import SurfaceMode
from hostbill_mcp.utils.sanitization import sanitize_secret, sanitize_url

logger = get_logger(__name__)

_INSTRUCTIONS: dict[SurfaceMode, str] = {
    SurfaceMode.DIRECT: (
        "Each HostBill API method is exposed as its own tool. "
        "Tool arguments are passed to the API call unchanged."
    ),
    SurfaceMode.META: (
        "The HostBill API is too large to expose method by method. "
        "Use list_methods to find a method, get_method_details to learn its "
        "parameters, then call_api to execute it."
    ),
    SurfaceMode.FALLBACK: (
        "The HostBill API could not be reached at startup. "
        "Use test_connection and server_info to diagnose; restart the server "
        "to retry discovery."
    ),
}


def build_source(config: ServerConfig) -> HostBillClient:
    """Create the HostBill client described by ``config``."""
    return HostBillClient(
        config.hostbill_url,
        config.api_id.get_secret_value(),
        config.api_key.get_secret_value(),
        timeout=config.http_timeout,
    )


def build_session(config: ServerConfig, source: CapabilitySource | None = None) -> Session:
    return Session(
        source if source is not None else build_source(config),
        threshold=config.tool_threshold,
        cache_ttl=config.cache_ttl,
    )


def build_engine(session: Session, config: ServerConfig) -> ProtocolEngine:
    """Create the protocol engine for a started session."""
    mode = session.mode or SurfaceMode.FALLBACK
    return ProtocolEngine(
        session.registry,
        Implementation(name=config.server_name, version=__version__, title="HostBill MCP Server"),
        instructions=_INSTRUCTIONS[mode],
        invoke_timeout=config.invoke_timeout,
    )


async def run_server(
    config: ServerConfig,
    source: CapabilitySource | None = None,
    *,
    transport: LineTransport | None = None,
    stdin: io.TextIOBase | None = None,
    stdout: io.TextIOBase | None = None,
) -> Session:
    """Probe, serve until end of input, then tear the session down.

    Args:
        config: Validated server configuration.
        source: Capability source to use instead of a HostBillClient.
        transport: Line transport to serve on (default: stdio).
        stdin: Optional input stream for the default stdio transport.
        stdout: Optional output stream for the default stdio transport.

    Returns:
        The terminated session, for inspection.
    """
    session = build_session(config, source)
    logger.info(
        "server.starting",
        name=config.server_name,
        version=__version__,
        hostbill_url=sanitize_url(config.hostbill_url),
        credential=sanitize_secret(config.api_id.get_secret_value()),
    )
    try:
        mode = await session.start()
        bind_context(surface=mode.value)
        engine = build_engine(session, config)
        session.mark_serving()
        await engine.serve(transport or StdioTransport(stdin=stdin, stdout=stdout))
    finally:
        await session.close()
    return session
