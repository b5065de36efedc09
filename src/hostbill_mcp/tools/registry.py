"""Tool registry for one server session."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from hostbill_mcp.errors import DuplicateToolError, ToolNotFoundError

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]

# Schema for tools that take no arguments
EMPTY_INPUT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}

# Schema used when a method's parameters are unknown: anything passes through
OPEN_INPUT_SCHEMA: dict[str, Any] = {"type": "object", "additionalProperties": True}


@dataclass(frozen=True)
class Tool:
    """A named, schema-described unit a client can invoke.

    Attributes:
        name: Unique name within the session.
        description: Human-readable description for the client.
        input_schema: JSON Schema for the argument object.
        handler: Coroutine function receiving the argument dict.
        title: Optional display title.
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler = field(compare=False, repr=False)
    title: str | None = None

    async def invoke(self, arguments: dict[str, Any]) -> Any:
        return await self.handler(arguments)

    def describe(self) -> dict[str, Any]:
        """Wire form used in tools/list."""
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
        if self.title:
            data["title"] = self.title
        return data


class ToolRegistry:
    """Authoritative mapping from tool name to Tool for one session.

    Populated once while the session probes; read-only while serving.
    Iteration follows registration order.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._frozen = False

    def register(self, tool: Tool) -> None:
        """Add ``tool``.

        Raises:
            DuplicateToolError: If a tool with the same name exists.
            RuntimeError: If the registry has been frozen.
        """
        if self._frozen:
            raise RuntimeError("Tool registry is frozen; start a new session to change tools")
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool

    def register_all(self, tools: list[Tool]) -> None:
        for tool in tools:
            self.register(tool)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def require(self, name: str) -> Tool:
        """Return the tool called ``name``.

        Raises:
            ToolNotFoundError: If no such tool is registered.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> list[dict[str, Any]]:
        return [tool.describe() for tool in self._tools.values()]

    def clear(self) -> None:
        self._tools.clear()
        self._frozen = False

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))
