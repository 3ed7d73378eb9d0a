"""
GeoJSON overlay export for viewshed results.

Produces a FeatureCollection with the observer point followed by one Point
per ray sample (property `visible`), ready for any map client.
"""

from typing import Any

from .viewshed import ViewshedResult
from .water import WaterVisibility, is_water_sample


def _point(lon: float, lat: float, properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": properties,
    }


def viewshed_to_geojson(
    result: ViewshedResult,
    water: WaterVisibility | None = None,
) -> dict[str, Any]:
    """Build a GeoJSON FeatureCollection from a viewshed result.

    Args:
        result: Viewshed to export
        water: Optional water visibility; when it reports water, the first
            water hit on each ray gets `water: true`

    Returns:
        GeoJSON FeatureCollection dict
    """
    flag_water = water is not None and water.ocean_visible

    features: list[dict[str, Any]] = [
        _point(
            result.observer_lon,
            result.observer_lat,
            {
                "kind": "observer",
                "terrain_height": result.terrain_height,
                "observer_height": result.observer_height,
                "observer_elevation": result.observer_elevation,
            },
        )
    ]

    for ray in result.rays:
        hit_found = False
        for sample in ray.samples:
            props: dict[str, Any] = {
                "kind": "sample",
                "azimuth": ray.azimuth,
                "distance": sample.distance,
                "elevation": sample.elevation,
                "visible": sample.visible,
            }
            if flag_water and not hit_found and is_water_sample(sample):
                props["water"] = True
                hit_found = True
            features.append(_point(sample.lon, sample.lat, props))

    return {"type": "FeatureCollection", "features": features}
