"""Utility helpers for the HostBill MCP server."""

from hostbill_mcp.utils.sanitization import sanitize_secret, sanitize_url

__all__ = ["sanitize_secret", "sanitize_url"]
