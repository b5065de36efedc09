"""MCP protocol engine.

Reads JSON-RPC messages (one per line), dispatches them to lifecycle
handlers or to the session's tool registry, and writes exactly one response
per request line.

Requests are processed sequentially: each request, including any HostBill
call it triggers, completes before the next line is read. Responses are
therefore emitted in request order, and a slow tool call delays the
requests queued behind it.
"""

from __future__ import annotations

import asyncio
import io
import json
from typing import Any

import jsonschema
from pydantic import ValidationError

from hostbill_mcp.errors import (
    HostBillMCPError,
    InvalidToolArgumentsError,
    ToolExecutionError,
    ToolNotFoundError,
)
from hostbill_mcp.mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
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
from hostbill_mcp.mcp.transport import LineTransport, StdioTransport
from hostbill_mcp.observability import get_logger, is_debug_mode, sanitize_for_logging
from hostbill_mcp.tools.registry import ToolRegistry

logger = get_logger(__name__)

RequestId = str | int | None


class ProtocolError(Exception):
    """A request that must be answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def _error_payload(rid: RequestId, code: int, message: str) -> dict[str, Any]:
    payload = JSONRPCErrorResponse(
        id=rid,
        error=JSONRPCError(code=code, message=message),
    ).model_dump(by_alias=True)
    payload["error"].pop("data", None)
    return payload


def _result_text(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


def _valid_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


class ProtocolEngine:
    """JSON-RPC engine serving one session's tool registry.

    Handles initialize, tools/list, tools/call and ping. Every request line
    gets exactly one response; notifications get none.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        server_info: Implementation,
        *,
        instructions: str | None = None,
        invoke_timeout: float | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            registry: Tools to expose; must be fully populated.
            server_info: Name and version reported by initialize.
            instructions: Optional instructions for the client/LLM.
            invoke_timeout: Seconds before a tool call is abandoned (None = no limit).
        """
        self._registry = registry
        self._server_info = server_info
        self._instructions = instructions
        self._invoke_timeout = invoke_timeout

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client = params.get("clientInfo") if isinstance(params, dict) else None
        if isinstance(client, dict):
            logger.info(
                "mcp.initialize",
                client=client.get("name"),
                client_version=client.get("version"),
                requested_version=params.get("protocolVersion"),
            )
        result = InitializeResult(
            protocolVersion=MCP_PROTOCOL_VERSION,
            # The tool surface is fixed for the session
            capabilities={"tools": {"listChanged": False}},
            serverInfo=self._server_info,
            instructions=self._instructions,
        )
        return result.model_dump(by_alias=True, exclude_none=True)

    def _handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        tools = [
            Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_schema,
                title=tool.title,
            )
            for tool in self._registry
        ]
        return ListToolsResult(tools=tools).model_dump(by_alias=True, exclude_none=True)

    async def _handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run one tool and wrap its result.

        Raises:
            ProtocolError: For unknown tools, bad arguments, disallowed
                methods (-32602) and failed invocations (-32603).
        """
        if params.get("arguments", {}) is None:
            params = {k: v for k, v in params.items() if k != "arguments"}
        try:
            parsed = CallToolRequestParams.model_validate(params)
        except ValidationError as e:
            raise ProtocolError(INVALID_PARAMS, f"Invalid params: {e.errors()[0]['msg']}") from e

        try:
            tool = self._registry.require(parsed.name)
        except ToolNotFoundError as e:
            raise ProtocolError(e.rpc_code, e.message) from e

        try:
            jsonschema.validate(instance=parsed.arguments, schema=tool.input_schema)
        except jsonschema.ValidationError as e:
            err = InvalidToolArgumentsError(e.message)
            raise ProtocolError(err.rpc_code, err.message) from e
        except jsonschema.SchemaError as e:
            logger.warning("mcp.tool.schema_invalid", tool=tool.name, error=e.message)

        logger.info(
            "mcp.tool.call",
            tool=tool.name,
            arguments=sanitize_for_logging(parsed.arguments),
        )
        try:
            if self._invoke_timeout is not None:
                result = await asyncio.wait_for(
                    tool.invoke(parsed.arguments), timeout=self._invoke_timeout
                )
            else:
                result = await tool.invoke(parsed.arguments)
        except asyncio.TimeoutError as e:
            err = ToolExecutionError(tool.name, f"timed out after {self._invoke_timeout}s")
            logger.warning("mcp.tool.timeout", tool=tool.name, timeout=self._invoke_timeout)
            raise ProtocolError(err.rpc_code, err.message) from e
        except HostBillMCPError as e:
            logger.warning("mcp.tool.error", tool=tool.name, code=e.code, error=e.message)
            if e.rpc_code == INVALID_PARAMS:
                raise ProtocolError(e.rpc_code, e.message) from e
            err = ToolExecutionError(tool.name, e.message)
            raise ProtocolError(err.rpc_code, err.message) from e
        except Exception as e:
            logger.exception("mcp.tool.error", tool=tool.name, error=str(e))
            err = ToolExecutionError(tool.name, str(e) or type(e).__name__)
            raise ProtocolError(err.rpc_code, err.message) from e

        return CallToolResult(
            content=[TextContent(text=_result_text(result)).model_dump(by_alias=True)],
            isError=False,
        ).model_dump(by_alias=True, exclude_none=True)

    async def _dispatch_request(self, req: JSONRPCRequest) -> dict[str, Any]:
        """Dispatch a JSON-RPC request and return the response payload."""
        method = req.method
        params = req.params or {}
        rid = req.id

        try:
            if method == "initialize":
                result = self._handle_initialize(params)
            elif method == "tools/list":
                result = self._handle_tools_list(params)
            elif method == "tools/call":
                result = await self._handle_tools_call(params)
            elif method == "ping":
                result = {}
            else:
                raise ProtocolError(METHOD_NOT_FOUND, f"Method not found: {method}")
        except ProtocolError as e:
            return _error_payload(rid, e.code, e.message)
        return JSONRPCResponse(id=rid, result=result).model_dump(by_alias=True)

    def _handle_notification(self, note: JSONRPCNotification) -> None:
        method = note.method
        if method == "notifications/initialized":
            logger.debug("mcp.initialized")
        elif method == "notifications/cancelled":
            # Calls run to completion; cancellation is acknowledged only in logs
            logger.debug("mcp.cancelled", params=note.params)
        else:
            logger.debug("mcp.notification", method=method)

    async def handle_message(self, raw: Any) -> dict[str, Any] | None:
        """Handle one decoded message; return the response payload or None."""
        if not isinstance(raw, dict):
            return _error_payload(None, INVALID_REQUEST, "Invalid Request: expected a JSON object")

        has_id = "id" in raw
        rid = raw.get("id")
        if has_id and not _valid_id(rid):
            return _error_payload(None, INVALID_REQUEST, "Invalid Request: invalid id")

        method = raw.get("method")
        if not isinstance(method, str) or not method:
            return _error_payload(rid, INVALID_REQUEST, "Invalid Request: missing method")

        if not has_id:
            try:
                self._handle_notification(JSONRPCNotification.model_validate(raw))
            except ValidationError as e:
                logger.debug("mcp.notification_invalid", method=method, error=str(e))
            return None

        try:
            req = JSONRPCRequest.model_validate(raw)
        except ValidationError as e:
            return _error_payload(
                rid, INVALID_REQUEST, f"Invalid Request: {e.errors()[0]['msg']}"
            )

        try:
            return await self._dispatch_request(req)
        except Exception as e:
            logger.exception("mcp.request_error", method=method, error=str(e))
            message = (str(e) or type(e).__name__) if is_debug_mode() else "Internal error"
            return _error_payload(rid, INTERNAL_ERROR, message)

    async def handle_line(self, line: str | bytes) -> str | None:
        """Handle one input line; return the response line or None.

        Blank lines and notifications produce no response. A line that is
        not valid UTF-8 or not valid JSON produces a parse error with ``id``
        null.
        """
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.debug("mcp.decode_error", length=len(line), position=e.start)
                return json.dumps(_error_payload(None, PARSE_ERROR, "Parse error"))
        line = line.strip()
        if not line:
            return None
        try:
            raw = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("mcp.parse_error", length=len(line))
            response: dict[str, Any] | None = _error_payload(None, PARSE_ERROR, "Parse error")
        else:
            response = await self.handle_message(raw)
        if response is None:
            return None
        return json.dumps(response, ensure_ascii=False)

    async def serve(self, transport: LineTransport) -> None:
        """Serve requests from ``transport`` until it reaches end of stream."""
        logger.info("mcp.serve.started", tools=len(self._registry))
        while True:
            line = await transport.readline()
            if line is None:
                break
            response = await self.handle_line(line)
            if response is not None:
                await transport.write_line(response)
        logger.info("mcp.serve.stopped")

    async def serve_stdio(
        self,
        stdin: io.TextIOBase | None = None,
        stdout: io.TextIOBase | None = None,
    ) -> None:
        """Run the engine over stdio. Blocks until stdin closes.

        Args:
            stdin: Optional input stream (default: sys.stdin).
            stdout: Optional output stream (default: sys.stdout).
        """
        await self.serve(StdioTransport(stdin=stdin, stdout=stdout))
