"""Surface strategies: how discovered methods become exposed tools.

Three mutually exclusive modes:

- direct: one tool per discovered method, while the method count is at or
  below the threshold.
- meta: exactly three indirection tools (list, describe, call) for APIs
  larger than the threshold, so the advertised surface stays bounded.
- fallback: two diagnostic tools when the API cannot be reached or
  discovery fails, so the server is always minimally useful.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from hostbill_mcp.discovery.service import Discovery
from hostbill_mcp.discovery.source import CapabilitySource
from hostbill_mcp.errors import InvalidToolArgumentsError, MethodNotPermittedError
from hostbill_mcp.observability import get_logger
from hostbill_mcp.tools.registry import EMPTY_INPUT_SCHEMA, Tool, ToolHandler
from hostbill_mcp.tools.synthesizer import synthesize, tool_name

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 50

LIST_METHODS_TOOL = "list_methods"
GET_METHOD_DETAILS_TOOL = "get_method_details"
CALL_API_TOOL = "call_api"
TEST_CONNECTION_TOOL = "test_connection"
SERVER_INFO_TOOL = "server_info"

# Category name -> keywords matched against method names (case-insensitive).
# Best-effort and hand-maintained; categories overlap on purpose where
# HostBill's own areas overlap (invoices are both orders and billing).
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "orders": ("order", "invoice", "payment"),
    "billing": ("invoice", "payment", "transaction", "credit", "estimate"),
    "clients": ("client", "contact", "affiliate"),
    "support": ("ticket", "reply", "department", "knowledgebase"),
    "domains": ("domain", "dns", "tld", "registrar"),
    "services": ("account", "service", "addon", "server"),
    "products": ("product", "categor", "configuration"),
    "system": ("ping", "serverinfo", "apimethod", "log", "admin"),
}


class SurfaceMode(str, Enum):
    """Exposure strategy chosen once per session."""

    DIRECT = "direct"
    META = "meta"
    FALLBACK = "fallback"


def select_mode(method_count: int, threshold: int = DEFAULT_THRESHOLD) -> SurfaceMode:
    """Choose direct or meta mode from the discovered method count.

    Fallback mode is never chosen here; the session enters it when probing
    or discovery fails.

    Example:
        >>> select_mode(12)
        <SurfaceMode.DIRECT: 'direct'>
        >>> select_mode(120)
        <SurfaceMode.META: 'meta'>
    """
    if method_count > threshold:
        return SurfaceMode.META
    return SurfaceMode.DIRECT


def filter_methods(
    methods: Sequence[str],
    filter_text: str | None = None,
    category: str | None = None,
) -> list[str]:
    """Filter method names by substring and category, case-insensitively.

    A known category matches any of its keywords; an unknown category is
    treated as a plain substring.
    """
    result = list(methods)
    if filter_text:
        needle = filter_text.lower()
        result = [m for m in result if needle in m.lower()]
    if category:
        key = category.strip().lower()
        keywords = CATEGORY_KEYWORDS.get(key, (key,))
        result = [m for m in result if any(k in m.lower() for k in keywords)]
    return result


def _optional_str(arguments: dict[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidToolArgumentsError(f"'{key}' must be a string")
    return value


def _required_method(arguments: dict[str, Any]) -> str:
    method = arguments.get("method")
    if not isinstance(method, str) or not method.strip():
        raise InvalidToolArgumentsError("Method name is required")
    return method.strip()


def _direct_handler(source: CapabilitySource, method: str) -> ToolHandler:
    async def handler(arguments: dict[str, Any]) -> Any:
        return await source.invoke(method, arguments)

    return handler


async def build_direct_tools(
    discovery: Discovery,
    source: CapabilitySource,
    methods: Sequence[str],
) -> list[Tool]:
    """One tool per method, each calling ``source.invoke`` for that method.

    A method whose tool name is already taken (same name up to case) is
    skipped with a warning; the first method listed keeps the name.
    """
    tools: list[Tool] = []
    owners: dict[str, str] = {}
    for method in methods:
        name = tool_name(method)
        if name in owners:
            logger.warning("tool.name_collision", method=method, tool=name, kept=owners[name])
            continue
        owners[name] = method
        details = await discovery.details(method)
        tools.append(synthesize(method, details, _direct_handler(source, method)))
    return tools


def build_meta_tools(
    discovery: Discovery,
    source: CapabilitySource,
    methods: Sequence[str],
) -> list[Tool]:
    """The three indirection tools used for large APIs.

    ``methods`` is the discovered set captured at session start; it is the
    capability boundary for ``call_api``.
    """
    discovered = tuple(methods)
    allowed = frozenset(discovered)

    async def list_methods(arguments: dict[str, Any]) -> dict[str, Any]:
        matched = filter_methods(
            discovered,
            filter_text=_optional_str(arguments, "filter"),
            category=_optional_str(arguments, "category"),
        )
        return {
            "total_methods": len(discovered),
            "filtered_methods": len(matched),
            "methods": matched,
        }

    async def get_method_details(arguments: dict[str, Any]) -> dict[str, Any]:
        method = _required_method(arguments)
        details = await discovery.details(method)
        return details.model_dump(mode="json")

    async def call_api(arguments: dict[str, Any]) -> Any:
        method = _required_method(arguments)
        if method not in allowed:
            logger.warning("tool.call_api.not_permitted", method=method)
            raise MethodNotPermittedError(method)
        parameters = arguments.get("parameters") or {}
        if not isinstance(parameters, dict):
            raise InvalidToolArgumentsError("'parameters' must be an object")
        return await source.invoke(method, parameters)

    return [
        Tool(
            name=LIST_METHODS_TOOL,
            description="List available HostBill API methods with optional filtering",
            input_schema={
                "type": "object",
                "properties": {
                    "filter": {
                        "type": "string",
                        "description": "Filter methods by name (case-insensitive substring)",
                    },
                    "category": {
                        "type": "string",
                        "description": "Filter by method category, e.g. "
                        + ", ".join(sorted(CATEGORY_KEYWORDS)),
                    },
                },
            },
            handler=list_methods,
        ),
        Tool(
            name=GET_METHOD_DETAILS_TOOL,
            description="Get detailed information about a specific API method",
            input_schema={
                "type": "object",
                "properties": {
                    "method": {"type": "string", "description": "The API method name"},
                },
                "required": ["method"],
            },
            handler=get_method_details,
        ),
        Tool(
            name=CALL_API_TOOL,
            description="Execute a HostBill API method with parameters",
            input_schema={
                "type": "object",
                "properties": {
                    "method": {"type": "string", "description": "The API method to call"},
                    "parameters": {
                        "type": "object",
                        "description": "Parameters to pass to the API method",
                    },
                },
                "required": ["method"],
            },
            handler=call_api,
        ),
    ]


def build_fallback_tools(source: CapabilitySource) -> list[Tool]:
    """The two diagnostic tools used when discovery is unavailable."""

    async def test_connection(arguments: dict[str, Any]) -> str:
        connected = await source.test_connection()
        return "Connection successful" if connected else "Connection failed"

    async def server_info(arguments: dict[str, Any]) -> dict[str, Any]:
        try:
            return await source.server_info()
        except Exception as e:
            logger.warning("tool.server_info.failed", error=str(e))
            return {"error": str(e)}

    return [
        Tool(
            name=TEST_CONNECTION_TOOL,
            description="Test connection to HostBill API",
            input_schema=dict(EMPTY_INPUT_SCHEMA),
            handler=test_connection,
        ),
        Tool(
            name=SERVER_INFO_TOOL,
            description="Get HostBill server information",
            input_schema=dict(EMPTY_INPUT_SCHEMA),
            handler=server_info,
        ),
    ]
