#!/usr/bin/env python3
"""
Viewpoint Scoring Demo -- chuk-mcp-viewscout

Scores a viewpoint above Monterey Bay from real Copernicus GLO-30 terrain:
runs the analysis, raises the observer to a 4th-floor window, checks line of
sight to a target on the bay, and writes the last analysis as GeoJSON.

Usage:
    python examples/viewscout_demo.py

Output:
    examples/output/viewscout_overlay.geojson

Requirements:
    pip install chuk-mcp-viewscout
    (Requires network access to Copernicus DEM S3 buckets)
"""

import asyncio
import json
import sys
from pathlib import Path

from tool_runner import ToolRunner

# -- Configuration -----------------------------------------------------------

OBSERVER = [-121.8863, 36.5925]  # Hillside above Monterey harbour, CA
TARGET = [-121.8900, 36.6300]  # Out on the bay
RADIUS_M = 8000.0
OUTPUT_DIR = Path(__file__).parent / "output"


def _summarise(result: dict) -> None:
    b = result["breakdown"]
    water = result["water"]
    print(f"  Request #{result['request_id']}: {result['message']}")
    print(
        f"  Ground {result['terrain_height_m']:.1f}m, eye {result['observer_elevation_m']:.1f}m"
    )
    print(
        f"  Terrain {b['terrain_visibility']}/30, water {b['water_bonus']}/30, "
        f"elevation {b['elevation_advantage']}/20, distance {b['view_distance']}/20"
    )
    print(f"  Water: {water['classification']} ({water['arc_degrees']:.0f} deg)")


async def main() -> None:
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    runner = ToolRunner()

    print("=" * 60)
    print("Monterey -- Viewpoint Scoring")
    print("=" * 60)

    # Step 1: Analyse at the default (1st floor) height
    print(f"\nStep 1: Analysing ({OBSERVER[0]}, {OBSERVER[1]}) within {RADIUS_M:.0f}m...")
    result = await runner.run("viewscout_analyze", observer=OBSERVER, radius_m=RADIUS_M)
    if "error" in result:
        print(f"  ERROR: {result['error']}")
        sys.exit(1)
    _summarise(result)

    # Step 2: Same spot from a 4th floor window
    print("\nStep 2: Re-running from a 4th floor window...")
    higher = await runner.run("viewscout_set_observer_height", height_preset="4_story")
    if "error" in higher:
        print(f"  ERROR: {higher['error']}")
        sys.exit(1)
    _summarise(higher)
    print(f"  Score change: {higher['score'] - result['score']:+d}")

    # Step 3: Line of sight to a target on the bay
    print("\nStep 3: Profile to the bay...")
    print(await runner.run_text("viewscout_profile", end=TARGET, num_samples=100))

    # Step 4: Export the overlay
    print("\nStep 4: Exporting GeoJSON overlay...")
    overlay = await runner.run("viewscout_overlay")
    if "error" in overlay:
        print(f"  ERROR: {overlay['error']}")
        sys.exit(1)
    out_path = OUTPUT_DIR / "viewscout_overlay.geojson"
    out_path.write_text(json.dumps(overlay["geojson"]))
    print(f"  {overlay['message']}")
    print(f"  Saved: {out_path}")

    print("\n" + "=" * 60)
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
