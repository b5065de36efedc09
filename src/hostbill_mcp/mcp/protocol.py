"""Wire types for the MCP subset this server speaks (revision 2024-11-05).

Covers the JSON-RPC 2.0 envelope plus the payloads of initialize,
tools/list and tools/call. Unknown fields sent by newer clients are
dropped rather than rejected.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MCP_PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# A tool name the session does not serve is a bad parameter, not a bad method
TOOL_NOT_FOUND = INVALID_PARAMS

RequestId = str | int


class _WireModel(BaseModel):
    """Base for every message type: lenient on input, camelCase on output."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _Envelope(_WireModel):
    jsonrpc: Literal["2.0"] = "2.0"


class JSONRPCError(_WireModel):
    code: int
    message: str
    data: Any = None


class JSONRPCRequest(_Envelope):
    """A call that expects exactly one response. ``id`` may not be null."""

    id: RequestId
    method: str
    params: dict[str, Any] | None = None


class JSONRPCNotification(_Envelope):
    """A message without ``id``; never answered."""

    method: str
    params: dict[str, Any] | None = None


class JSONRPCResponse(_Envelope):
    id: RequestId
    result: dict[str, Any]


class JSONRPCErrorResponse(_Envelope):
    """Error reply. ``id`` is null when the request id could not be read."""

    id: RequestId | None
    error: JSONRPCError


class Implementation(_WireModel):
    """Name and version of a client or server (clientInfo / serverInfo)."""

    name: str
    version: str
    title: str | None = None


class InitializeResult(_WireModel):
    protocol_version: str = Field(default=MCP_PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    server_info: Implementation = Field(alias="serverInfo")
    instructions: str | None = None


class Tool(_WireModel):
    """One entry of a tools/list result.

    ``inputSchema`` is always a JSON Schema object, never null.
    """

    name: str
    description: str
    input_schema: dict[str, Any] = Field(alias="inputSchema")
    title: str | None = None


class ListToolsResult(_WireModel):
    tools: list[Tool] = Field(default_factory=list)


class CallToolRequestParams(_WireModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class TextContent(_WireModel):
    type: Literal["text"] = "text"
    text: str


class CallToolResult(_WireModel):
    content: list[dict[str, Any]] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")
