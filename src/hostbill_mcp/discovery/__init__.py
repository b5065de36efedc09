"""Capability discovery for the HostBill MCP server.

This package provides:
- CapabilitySource: the contract for probing and invoking an API
- HostBillClient: the HostBill HTTP implementation of that contract
- DiscoveryCache: time-bounded memoization of discovery results
- Discovery: cached method list and per-method details with degradation

Example:
    >>> from hostbill_mcp.discovery import Discovery, DiscoveryCache, HostBillClient
    >>> client = HostBillClient("https://billing.example.com", "id", "key")
    >>> discovery = Discovery(client, DiscoveryCache())
    >>> methods = await discovery.methods()
"""

from hostbill_mcp.discovery.cache import DEFAULT_TTL, CacheEntry, DiscoveryCache, details_key
from hostbill_mcp.discovery.client import HostBillClient
from hostbill_mcp.discovery.service import Discovery
from hostbill_mcp.discovery.source import CapabilitySource, MethodDetails, MethodParameter

__all__ = [
    "DEFAULT_TTL",
    "CacheEntry",
    "CapabilitySource",
    "Discovery",
    "DiscoveryCache",
    "HostBillClient",
    "MethodDetails",
    "MethodParameter",
    "details_key",
]
