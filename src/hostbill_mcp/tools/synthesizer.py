"""Tool synthesis from discovered HostBill API methods.

Turns one discovered method and its (possibly degraded) details into a Tool:
a deterministic tool name, a description, and a JSON Schema for arguments.

Example:
    >>> tool_name("getClientDetails")
    'hostbill_getclientdetails'
    >>> tool_name("client.details")
    'hostbill_client_2e_details'
"""

from __future__ import annotations

import string
from typing import Any

from hostbill_mcp.discovery.source import MethodDetails, MethodParameter
from hostbill_mcp.tools.registry import OPEN_INPUT_SCHEMA, Tool, ToolHandler

TOOL_PREFIX = "hostbill_"

_NAME_ALPHABET = frozenset(string.ascii_lowercase + string.digits)

# Source type labels -> JSON Schema types
_TYPE_MAP: dict[str, str] = {
    "int": "integer",
    "integer": "integer",
    "long": "integer",
    "float": "number",
    "double": "number",
    "decimal": "number",
    "number": "number",
    "bool": "boolean",
    "boolean": "boolean",
    "array": "array",
    "list": "array",
    "object": "object",
    "dict": "object",
    "map": "object",
    "string": "string",
    "str": "string",
    "text": "string",
    "date": "string",
    "datetime": "string",
    "email": "string",
}

# Keyword found in a method name -> hint appended to its description.
# Cosmetic only: hints never influence which method a tool calls.
DESCRIPTION_HINTS: tuple[tuple[str, str], ...] = (
    ("ticket", "Support desk operation (tickets and replies)."),
    ("invoice", "Billing operation on invoices."),
    ("payment", "Billing operation on payments and transactions."),
    ("transaction", "Billing operation on payments and transactions."),
    ("order", "Order management operation."),
    ("client", "Client account operation."),
    ("domain", "Domain registration or DNS operation."),
    ("account", "Hosting account or service operation."),
    ("product", "Product catalog operation."),
)


def tool_name(method: str, prefix: str = TOOL_PREFIX) -> str:
    """Derive the tool name for ``method``.

    The method name is lower-cased. Letters and digits are kept, a literal
    underscore is doubled, and every other character is escaped as
    ``_<hex code point>_``. Hex digits never contain ``_``, so each escape is
    delimited and the encoding can be read back unambiguously: ``a.b`` gives
    ``a_2e_b`` while a method literally named ``a_2e_b`` gives ``a__2e__b``.

    Names differing only in case map to the same tool; HostBill method
    names are case-insensitive.
    """
    parts: list[str] = []
    for char in method.lower():
        if char == "_":
            parts.append("__")
        elif char in _NAME_ALPHABET:
            parts.append(char)
        else:
            parts.append(f"_{ord(char):x}_")
    return prefix + "".join(parts)


def description_hint(method: str) -> str | None:
    """Return the first contextual hint whose keyword occurs in ``method``."""
    lowered = method.lower()
    for keyword, hint in DESCRIPTION_HINTS:
        if keyword in lowered:
            return hint
    return None


def describe(method: str, details: MethodDetails | None) -> str:
    """Tool description: the source's text when present, else a generic one."""
    text = (details.description if details else "").strip()
    if not text:
        text = f"Execute {method} API call"
    hint = description_hint(method)
    if hint and hint not in text:
        text = f"{text} {hint}"
    return text


def _json_type(label: str) -> str:
    return _TYPE_MAP.get(label.strip().lower(), "string")


def _property(param: MethodParameter) -> dict[str, Any]:
    return {"type": _json_type(param.type), "description": param.description}


def input_schema(details: MethodDetails | None) -> dict[str, Any]:
    """Build the argument schema from a method's parameter list.

    Unknown parameter metadata yields an open schema so any argument still
    reaches the API.
    """
    params = [p for p in (details.parameters if details else ()) if p.name]
    if not params:
        return dict(OPEN_INPUT_SCHEMA)

    properties: dict[str, Any] = {}
    required: list[str] = []
    for param in params:
        properties[param.name] = _property(param)
        if param.required and param.name not in required:
            required.append(param.name)

    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": True,
    }
    if required:
        schema["required"] = required
    return schema


def synthesize(
    method: str,
    details: MethodDetails | None,
    handler: ToolHandler,
    prefix: str = TOOL_PREFIX,
) -> Tool:
    """Create the Tool exposing ``method``."""
    return Tool(
        name=tool_name(method, prefix),
        description=describe(method, details),
        input_schema=input_schema(details),
        handler=handler,
        title=method,
    )
