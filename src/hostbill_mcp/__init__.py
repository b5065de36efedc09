"""HostBill MCP server.

Exposes a HostBill billing platform's administrative API as Model Context
Protocol tools. The server probes the API for the methods the configured
credentials may call and serves one tool per method, three meta-tools for
large APIs, or two fallback tools when the API cannot be reached.

Example:
    >>> # From terminal:
    >>> # HOSTBILL_URL=https://billing.example.com HOSTBILL_API_ID=... \\
    >>> #     HOSTBILL_API_KEY=... hostbill-mcp serve
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
