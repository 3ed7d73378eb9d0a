#!/usr/bin/env python3
"""
Capabilities Demo -- chuk-mcp-viewscout

Quick-start script showing what the server can do, without any network
access. Lists DEM sources, observer height presets, server status, full
capabilities, and demonstrates the dual output mode (JSON vs text).

Usage:
    python examples/capabilities_demo.py
"""

import asyncio

from tool_runner import ToolRunner


async def main() -> None:
    runner = ToolRunner()

    print("=" * 60)
    print("chuk-mcp-viewscout -- Server Capabilities")
    print("=" * 60)

    # List all registered tools
    print(f"\nRegistered tools ({len(runner.tool_names)}):")
    for name in sorted(runner.tool_names):
        print(f"  - {name}")

    # List DEM sources
    sources = await runner.run("viewscout_list_sources")
    print(f"\nDEM Sources ({len(sources['sources'])}):")
    print(f"  Default: {sources['default']}")
    for s in sources["sources"]:
        print(f"  {s['id']:8s}  {s['name']:20s}  {s['resolution_m']:4d}m  {s['coverage']}")

    # Observer height presets
    heights = await runner.run("viewscout_observer_heights")
    print("\nObserver heights:")
    for p in heights["presets"]:
        marker = "  <- default" if p["preset"] == heights["default_preset"] else ""
        print(f"  {p['preset']:8s}  {p['height_m']:5.1f}m{marker}")

    # Full capabilities
    caps = await runner.run("viewscout_capabilities")
    print("\nCapabilities:")
    print(f"  Tools: {caps['tool_count']}")
    print(f"  Analysis tools: {', '.join(caps['analysis_tools'])}")
    for key, value in caps["defaults"].items():
        print(f"  {key}: {value:g}")
    print(f"  Guidance: {caps['llm_guidance']}")

    # ---------------------------------------------------------------
    # Dual output mode: text vs JSON
    # ---------------------------------------------------------------
    print("\n" + "-" * 60)
    print("Dual Output Mode Demo")
    print("-" * 60)

    print("\nviewscout_status (output_mode='text'):")
    print(await runner.run_text("viewscout_status"))

    print("\nviewscout_status (output_mode='json'):")
    print(await runner.run_raw("viewscout_status"))

    print("\n" + "=" * 60)
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
