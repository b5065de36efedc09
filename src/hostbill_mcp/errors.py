"""HostBill MCP Error Taxonomy.

Every failure raised by the server derives from HostBillMCPError and carries
a stable ``hostbill:<area>/<reason>`` code plus a details dict.

Errors that surface to MCP clients carry a JSON-RPC error code in
``rpc_code`` so the protocol engine can map them without inspecting
messages.
"""

from __future__ import annotations

from typing import Any

from hostbill_mcp.mcp.protocol import INTERNAL_ERROR, INVALID_PARAMS, TOOL_NOT_FOUND


class HostBillMCPError(Exception):
    """Base exception for all HostBill MCP errors.

    Attributes:
        code: Error code following the hostbill:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
        rpc_code: JSON-RPC error code used when the error reaches a client
    """

    rpc_code: int = INTERNAL_ERROR

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(HostBillMCPError):
    """Raised when process configuration is missing or invalid.

    Attributes:
        missing: Names of required environment variables that are unset
    """

    def __init__(
        self,
        message: str,
        missing: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="hostbill:config/invalid",
            message=message,
            details={"missing": list(missing or []), **(details or {})},
        )
        self.missing = list(missing or [])


class HostBillAPIError(HostBillMCPError):
    """Raised when a call to the HostBill API fails.

    Covers transport errors, non-200 responses, undecodable bodies and
    error payloads returned by HostBill itself.

    Attributes:
        call: The API call name that failed
        status_code: HTTP status code, when a response was received
    """

    def __init__(
        self,
        call: str,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="hostbill:api/error",
            message=message,
            details={"call": call, "status_code": status_code, **(details or {})},
        )
        self.call = call
        self.status_code = status_code


class DiscoveryError(HostBillMCPError):
    """Raised when the API does not report its methods or method details."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="hostbill:discovery/failed", message=message, details=details)


class ToolNotFoundError(HostBillMCPError):
    """Raised when tools/call names a tool that is not registered."""

    rpc_code = TOOL_NOT_FOUND

    def __init__(self, tool_name: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="hostbill:tool/not_found",
            message=f"Tool not found: {tool_name}",
            details={"tool": tool_name, **(details or {})},
        )
        self.tool_name = tool_name


class MethodNotPermittedError(HostBillMCPError):
    """Raised when a caller asks for an API method outside the discovered set.

    Only methods the HostBill API reported for the configured credentials
    may be called, whatever name the client sends.
    """

    rpc_code = INVALID_PARAMS

    def __init__(self, method: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="hostbill:tool/not_permitted",
            message=f"Method '{method}' is not available or not permitted",
            details={"method": method, **(details or {})},
        )
        self.method = method


class InvalidToolArgumentsError(HostBillMCPError):
    """Raised when tool arguments are missing or do not match the input schema."""

    rpc_code = INVALID_PARAMS

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="hostbill:tool/invalid_arguments",
            message=f"Invalid arguments: {reason}",
            details=details,
        )
        self.reason = reason


class ToolExecutionError(HostBillMCPError):
    """Raised when a tool handler fails while running.

    Attributes:
        tool_name: Name of the tool that failed
    """

    def __init__(self, tool_name: str, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="hostbill:tool/execution_failed",
            message=f"Tool execution failed: {reason}",
            details={"tool": tool_name, **(details or {})},
        )
        self.tool_name = tool_name
        self.reason = reason


class DuplicateToolError(HostBillMCPError):
    """Raised when two tools with the same name are registered in one session."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(
            code="hostbill:tool/duplicate",
            message=f"Tool already registered: {tool_name}",
            details={"tool": tool_name},
        )
        self.tool_name = tool_name


class InvalidTransitionError(HostBillMCPError):
    """Raised when a session attempts a state change its lifecycle forbids.

    Attributes:
        from_state: The current session state
        to_state: The attempted target state
    """

    def __init__(
        self, from_state: str, to_state: str, details: dict[str, Any] | None = None
    ) -> None:
        message = f"Invalid transition from '{from_state}' to '{to_state}'"
        super().__init__(
            code="hostbill:session/invalid_state",
            message=message,
            details={"from_state": from_state, "to_state": to_state, **(details or {})},
        )
        self.from_state = from_state
        self.to_state = to_state
