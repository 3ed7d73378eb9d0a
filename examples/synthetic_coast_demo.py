#!/usr/bin/env python3
"""
Synthetic Coast Demo -- chuk-mcp-viewscout

Runs entirely offline against a synthetic terrain sampler: a headland that
slopes down to the sea on its western side. Shows how observer height
changes the ViewScore, and how a slow stale analysis is discarded when a
newer one lands first (last request wins).

Usage:
    python examples/synthetic_coast_demo.py
"""

import asyncio

from chuk_mcp_viewscout.core.geodesy import distance_between
from chuk_mcp_viewscout.core.terrain import ElevationSample

from tool_runner import ToolRunner

HEADLAND = (36.50, -121.90)  # (lat, lon) of the summit


class HeadlandSampler:
    """60 m headland, sea to the west, rolling land to the east."""

    def __init__(self, delay_s: float = 0.0) -> None:
        self.delay_s = delay_s

    def height(self, lat: float, lon: float) -> float:
        d = distance_between(HEADLAND[0], HEADLAND[1], lat, lon)
        if lon < HEADLAND[1]:
            return max(0.0, 60.0 - d / 40.0)
        return 60.0 + 25.0 * ((d // 1500) % 2)

    async def sample_elevations(self, points):
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        return [
            ElevationSample(lat=lat, lon=lon, height=self.height(lat, lon)) for lat, lon in points
        ]


async def main() -> None:
    runner = ToolRunner(sampler=HeadlandSampler())
    observer = [HEADLAND[1], HEADLAND[0]]

    print("=" * 60)
    print("Synthetic Headland -- Observer Height Sweep")
    print("=" * 60)

    result = await runner.run("viewscout_analyze", observer=observer, height_preset="ground")
    print(f"\n  ground   -> {result['score']:3d}/100  water {result['water']['classification']}")
    for preset in ("1_story", "2_story", "3_story", "4_story"):
        result = await runner.run("viewscout_set_observer_height", height_preset=preset)
        print(
            f"  {preset:8s} -> {result['score']:3d}/100  water {result['water']['classification']}"
        )

    print("\n" + "-" * 60)
    print("Last request wins")
    print("-" * 60)

    slow = ToolRunner(sampler=HeadlandSampler(delay_s=0.2))
    slow_task = asyncio.create_task(
        slow.run("viewscout_analyze", observer=observer, height_preset="ground")
    )
    await asyncio.sleep(0)

    # A second request on the same manager with a fast sampler lands first
    slow.manager._sampler_override = HeadlandSampler()
    fast = await slow.run("viewscout_analyze", observer=observer, height_preset="4_story")
    stale = await slow_task

    print(f"  Request #{fast['request_id']} (fast): superseded={fast['superseded']}")
    print(f"  Request #{stale['request_id']} (slow): superseded={stale['superseded']}")
    print(f"  Retained: #{slow.manager.last_result.request_id}")

    print("\n" + "=" * 60)
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
