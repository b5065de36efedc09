"""Tool synthesis, surface strategies and the per-session tool registry.

Example:
    >>> from hostbill_mcp.tools import SurfaceMode, select_mode, tool_name
    >>> select_mode(12)
    <SurfaceMode.DIRECT: 'direct'>
    >>> tool_name("getClients")
    'hostbill_getclients'
"""

from hostbill_mcp.tools.registry import (
    EMPTY_INPUT_SCHEMA,
    OPEN_INPUT_SCHEMA,
    Tool,
    ToolHandler,
    ToolRegistry,
)
from hostbill_mcp.tools.strategy import (
    CATEGORY_KEYWORDS,
    DEFAULT_THRESHOLD,
    SurfaceMode,
    build_direct_tools,
    build_fallback_tools,
    build_meta_tools,
    filter_methods,
    select_mode,
)
from hostbill_mcp.tools.synthesizer import (
    TOOL_PREFIX,
    describe,
    input_schema,
    synthesize,
    tool_name,
)

__all__ = [
    "CATEGORY_KEYWORDS",
    "DEFAULT_THRESHOLD",
    "EMPTY_INPUT_SCHEMA",
    "OPEN_INPUT_SCHEMA",
    "TOOL_PREFIX",
    "SurfaceMode",
    "Tool",
    "ToolHandler",
    "ToolRegistry",
    "build_direct_tools",
    "build_fallback_tools",
    "build_meta_tools",
    "describe",
    "filter_methods",
    "input_schema",
    "select_mode",
    "synthesize",
    "tool_name",
]
