"""Observability module for the HostBill MCP server.

Structured logging (structlog) routed to stderr, with console output for
development and JSON output for production.

Example:
    >>> from hostbill_mcp.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("session.mode.selected", mode="direct", methods=12)
"""

from hostbill_mcp.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    is_debug_mode,
    sanitize_for_logging,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "is_debug_mode",
    "sanitize_for_logging",
]
