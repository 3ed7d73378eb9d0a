"""
Viewshed engine — radial line-of-sight analysis over a spherical earth.

Rays are cast from the observer at uniformly spaced bearings. Terrain along
every ray is fetched in a single batched sampler call, then each ray is
walked near-to-far with a running-maximum horizon-angle test.
"""

import logging
import math
from dataclasses import dataclass, field

from ..constants import (
    DEFAULT_NUM_AZIMUTHS,
    DEFAULT_NUM_SAMPLES_PER_RAY,
    DEFAULT_RADIUS_M,
    EARTH_RADIUS_M,
    ErrorMessages,
)
from .geodesy import destination_point, validate_lat_lon
from .terrain import ElevationSample, TerrainSampler

logger = logging.getLogger(__name__)


@dataclass
class RaySample:
    """One terrain sample along a ray."""

    distance: float
    lat: float
    lon: float
    elevation: float
    visible: bool


@dataclass
class RayResult:
    """Samples along a single bearing, ordered by increasing distance."""

    azimuth: float
    samples: list[RaySample] = field(default_factory=list)


@dataclass
class ViewshedResult:
    """Result of a radial viewshed analysis."""

    observer_lon: float
    observer_lat: float
    observer_height: float
    terrain_height: float
    rays: list[RayResult]
    visible_count: int
    total_count: int
    visible_fraction: float

    @property
    def observer_elevation(self) -> float:
        """Absolute eye height: ground elevation plus height above ground."""
        return self.terrain_height + self.observer_height

    @property
    def angular_step(self) -> float:
        return 360.0 / len(self.rays) if self.rays else 0.0


def curvature_drop(distance_m: float) -> float:
    """Apparent drop of a point at distance_m caused by earth curvature."""
    return (distance_m * distance_m) / (2.0 * EARTH_RADIUS_M)


def trace_ray(
    azimuth: float,
    distances: list[float],
    samples: list[ElevationSample],
    observer_elevation: float,
) -> RayResult:
    """Apply the horizon test to one ray's samples (near-to-far).

    A sample is visible when its curvature-corrected elevation angle is
    strictly greater than every nearer sample's angle. The first sample is
    always visible.
    """
    max_angle = -math.inf
    ray = RayResult(azimuth=azimuth)

    for i, (dist, sample) in enumerate(zip(distances, samples)):
        elevation = sample.height if sample.height is not None else 0.0
        effective = elevation - curvature_drop(dist)
        angle = math.atan2(effective - observer_elevation, dist)

        visible = angle > max_angle or i == 0
        if angle > max_angle:
            max_angle = angle

        ray.samples.append(
            RaySample(
                distance=dist,
                lat=sample.lat,
                lon=sample.lon,
                elevation=elevation,
                visible=visible,
            )
        )

    return ray


async def compute_viewshed(
    sampler: TerrainSampler,
    lon: float,
    lat: float,
    observer_height_above_ground: float = 3.0,
    radius_m: float = DEFAULT_RADIUS_M,
    num_azimuths: int = DEFAULT_NUM_AZIMUTHS,
    num_samples_per_ray: int = DEFAULT_NUM_SAMPLES_PER_RAY,
) -> ViewshedResult:
    """Compute a radial viewshed from an observer.

    Args:
        sampler: Batched terrain-height oracle
        lon: Observer longitude in degrees
        lat: Observer latitude in degrees
        observer_height_above_ground: Eye height above terrain in metres
        radius_m: Length of each ray in metres
        num_azimuths: Number of rays, spaced 360/num_azimuths apart from 0
        num_samples_per_ray: Samples per ray, spaced radius_m/num_samples_per_ray apart

    Returns:
        ViewshedResult with per-ray visibility and aggregate counts

    Raises:
        ValueError: Degenerate parameters
        RuntimeError: The sampler returned a batch of the wrong size
    """
    validate_viewshed_inputs(
        lon, lat, observer_height_above_ground, radius_m, num_azimuths, num_samples_per_ray
    )

    observer = await _sample_batch(sampler, [(lat, lon)])
    terrain_height = observer[0].height if observer[0].height is not None else 0.0
    observer_elevation = terrain_height + observer_height_above_ground

    az_step = 360.0 / num_azimuths
    dist_step = radius_m / num_samples_per_ray
    azimuths = [az_step * a for a in range(num_azimuths)]
    distances = [dist_step * s for s in range(1, num_samples_per_ray + 1)]

    points: list[tuple[float, float]] = []
    for azimuth in azimuths:
        for dist in distances:
            points.append(destination_point(lat, lon, azimuth, dist))

    samples = await _sample_batch(sampler, points)

    rays: list[RayResult] = []
    visible_count = 0
    for a, azimuth in enumerate(azimuths):
        start = a * num_samples_per_ray
        ray = trace_ray(
            azimuth,
            distances,
            samples[start : start + num_samples_per_ray],
            observer_elevation,
        )
        visible_count += sum(1 for s in ray.samples if s.visible)
        rays.append(ray)

    total_count = num_azimuths * num_samples_per_ray

    return ViewshedResult(
        observer_lon=lon,
        observer_lat=lat,
        observer_height=observer_height_above_ground,
        terrain_height=terrain_height,
        rays=rays,
        visible_count=visible_count,
        total_count=total_count,
        visible_fraction=visible_count / total_count,
    )


async def _sample_batch(
    sampler: TerrainSampler,
    points: list[tuple[float, float]],
) -> list[ElevationSample]:
    """Sample a batch and fill in requested coordinates where the sampler omits them."""
    sampled = await sampler.sample_elevations(points)
    if len(sampled) != len(points):
        raise RuntimeError(ErrorMessages.SAMPLER_LENGTH_MISMATCH.format(len(sampled), len(points)))

    result = []
    for (lat, lon), sample in zip(points, sampled):
        result.append(
            ElevationSample(
                lat=sample.lat if sample.lat is not None else lat,
                lon=sample.lon if sample.lon is not None else lon,
                height=sample.height,
            )
        )
    return result


def validate_viewshed_inputs(
    lon: float,
    lat: float,
    observer_height: float,
    radius_m: float,
    num_azimuths: int,
    num_samples_per_ray: int,
) -> None:
    """Raise ValueError for parameters no viewshed can be computed from."""
    validate_lat_lon(lat, lon)
    if not math.isfinite(observer_height):
        raise ValueError(
            ErrorMessages.INVALID_COORDINATE.format("observer height", observer_height)
        )
    if observer_height < 0:
        raise ValueError(ErrorMessages.INVALID_OBSERVER_HEIGHT.format(observer_height))
    if not math.isfinite(radius_m) or radius_m <= 0:
        raise ValueError(ErrorMessages.INVALID_RADIUS.format(radius_m))
    if num_azimuths < 1:
        raise ValueError(ErrorMessages.INVALID_NUM_AZIMUTHS.format(num_azimuths))
    if num_samples_per_ray < 1:
        raise ValueError(ErrorMessages.INVALID_NUM_SAMPLES.format(num_samples_per_ray))
