"""
Shared helper for running chuk-mcp-viewscout MCP tools directly from Python.

Provides a ToolRunner class that registers all MCP tools against a
ViewScoutManager, without requiring a full MCP transport layer.
Demo scripts use this to call tools as plain async functions.

Usage:
    from tool_runner import ToolRunner

    async def main():
        runner = ToolRunner()
        result = await runner.run("viewscout_list_sources")
        print(result)
"""

from __future__ import annotations

import json
from typing import Any

from chuk_mcp_viewscout.core.terrain import TerrainSampler
from chuk_mcp_viewscout.core.viewscout_manager import ViewScoutManager
from chuk_mcp_viewscout.tools.analysis import register_analysis_tools
from chuk_mcp_viewscout.tools.discovery import register_discovery_tools


class _MiniMCP:
    """Minimal MCP server that captures tools registered via @mcp.tool."""

    def __init__(self) -> None:
        self._tools: dict[str, Any] = {}

    def tool(self) -> Any:
        """Decorator factory matching @mcp.tool() usage."""

        def decorator(fn: Any) -> Any:
            self._tools[fn.__name__] = fn
            return fn

        return decorator

    def get_tool(self, name: str) -> Any:
        return self._tools[name]

    def get_tools(self) -> list[Any]:
        return list(self._tools.values())


class ToolRunner:
    """
    Run chuk-mcp-viewscout MCP tools directly from Python.

    All 11 tools are registered and callable via run(tool_name, **kwargs).
    Returns parsed JSON (dict/list) by default. Use run_text() for
    human-readable output. Pass a sampler to run against synthetic terrain
    instead of the Copernicus DEM.
    """

    def __init__(self, sampler: TerrainSampler | None = None) -> None:
        self._mcp = _MiniMCP()
        self.manager = ViewScoutManager(sampler=sampler)
        register_discovery_tools(self._mcp, self.manager)
        register_analysis_tools(self._mcp, self.manager)

    @property
    def tool_names(self) -> list[str]:
        return list(self._mcp._tools.keys())

    async def run(self, tool_name: str, **kwargs: Any) -> dict[str, Any]:
        """Call a tool by name and return parsed JSON."""
        fn = self._mcp.get_tool(tool_name)
        raw = await fn(**kwargs)
        return json.loads(raw)

    async def run_text(self, tool_name: str, **kwargs: Any) -> str:
        """Call a tool by name with output_mode='text' and return plaintext."""
        fn = self._mcp.get_tool(tool_name)
        return await fn(output_mode="text", **kwargs)

    async def run_raw(self, tool_name: str, **kwargs: Any) -> str:
        """Call a tool by name and return the raw JSON string."""
        fn = self._mcp.get_tool(tool_name)
        return await fn(**kwargs)
