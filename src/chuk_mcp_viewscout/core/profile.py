"""
Elevation profile extraction between two points.

Sample coordinates are interpolated linearly in latitude/longitude, which
is close enough to the great circle at the short ranges profiled here.
"""

import math
from dataclasses import dataclass

from ..constants import DEFAULT_PROFILE_SAMPLES, ErrorMessages
from .geodesy import distance_between, validate_lat_lon
from .terrain import TerrainSampler


@dataclass
class ProfilePoint:
    distance: float
    elevation: float
    lat: float
    lon: float


@dataclass
class ProfileSummary:
    """Aggregate statistics for a profile."""

    total_distance: float
    elevation_range: list[float]
    elevation_gain: float
    elevation_loss: float


async def get_elevation_profile(
    sampler: TerrainSampler,
    from_lon: float,
    from_lat: float,
    to_lon: float,
    to_lat: float,
    num_samples: int = DEFAULT_PROFILE_SAMPLES,
) -> list[ProfilePoint]:
    """Sample terrain along the line between two points.

    Args:
        sampler: Batched terrain-height oracle
        from_lon: Start longitude
        from_lat: Start latitude
        to_lon: End longitude
        to_lat: End latitude
        num_samples: Number of intervals; num_samples + 1 points are returned

    Returns:
        Profile points from start to end inclusive
    """
    validate_lat_lon(from_lat, from_lon)
    validate_lat_lon(to_lat, to_lon)
    if num_samples < 1:
        raise ValueError(ErrorMessages.INVALID_PROFILE_SAMPLES.format(num_samples))

    points: list[tuple[float, float]] = []
    for i in range(num_samples + 1):
        t = i / num_samples
        points.append((from_lat + (to_lat - from_lat) * t, from_lon + (to_lon - from_lon) * t))

    sampled = await sampler.sample_elevations(points)
    if len(sampled) != len(points):
        raise RuntimeError(ErrorMessages.SAMPLER_LENGTH_MISMATCH.format(len(sampled), len(points)))

    total_dist = distance_between(from_lat, from_lon, to_lat, to_lon)

    return [
        ProfilePoint(
            distance=(i / num_samples) * total_dist,
            elevation=sample.height if sample.height is not None else 0.0,
            lat=sample.lat if sample.lat is not None else lat,
            lon=sample.lon if sample.lon is not None else lon,
        )
        for i, ((lat, lon), sample) in enumerate(zip(points, sampled))
    ]


def summarize_profile(points: list[ProfilePoint]) -> ProfileSummary:
    """Compute distance, elevation range, and cumulative gain/loss."""
    if not points:
        return ProfileSummary(
            total_distance=0.0, elevation_range=[0.0, 0.0], elevation_gain=0.0, elevation_loss=0.0
        )

    elevations = [p.elevation for p in points]
    gain = 0.0
    loss = 0.0
    for i in range(1, len(elevations)):
        diff = elevations[i] - elevations[i - 1]
        if diff > 0:
            gain += diff
        else:
            loss += abs(diff)

    return ProfileSummary(
        total_distance=points[-1].distance,
        elevation_range=[min(elevations), max(elevations)],
        elevation_gain=round(gain, 1),
        elevation_loss=round(loss, 1),
    )


def line_of_sight_clear(points: list[ProfilePoint], observer_height: float) -> bool:
    """Whether the sight line from the observer's eye to the end point's ground
    passes above every intermediate sample."""
    if len(points) < 3:
        return True

    eye = points[0].elevation + observer_height
    target = points[-1].elevation
    total = points[-1].distance
    if total <= 0 or not math.isfinite(total):
        return True

    for p in points[1:-1]:
        sight = eye + (target - eye) * (p.distance / total)
        if p.elevation > sight:
            return False
    return True
