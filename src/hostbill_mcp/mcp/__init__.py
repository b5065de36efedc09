"""Model Context Protocol (MCP) surface of the HostBill server.

JSON-RPC 2.0 over stdio with initialize, tools/list, tools/call and ping.
The engine lives in ``hostbill_mcp.mcp.server`` and the line transports in
``hostbill_mcp.mcp.transport``.

Example:
    >>> from hostbill_mcp.mcp.server import ProtocolEngine
    >>> from hostbill_mcp.mcp.transport import StdioTransport
    >>> # await ProtocolEngine(registry, server_info).serve(StdioTransport())
"""

from hostbill_mcp.mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    TOOL_NOT_FOUND,
    CallToolRequestParams,
    CallToolResult,
    Implementation,
    InitializeResult,
    JSONRPCError,
    JSONRPCErrorResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    ListToolsResult,
    TextContent,
    Tool,
)

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "MCP_PROTOCOL_VERSION",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "TOOL_NOT_FOUND",
    "CallToolRequestParams",
    "CallToolResult",
    "Implementation",
    "InitializeResult",
    "JSONRPCError",
    "JSONRPCErrorResponse",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "ListToolsResult",
    "TextContent",
    "Tool",
]
