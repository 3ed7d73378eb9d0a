"""
ViewScout Manager — central orchestrator for viewpoint analysis.

Runs the viewshed -> water -> score pipeline against a terrain sampler,
retains the latest landed analysis, and enforces last-request-wins so a
slow stale run can never replace a newer result.
"""

import logging
import math
from dataclasses import dataclass, replace

from ..constants import (
    DEFAULT_INTERPOLATION,
    DEFAULT_NUM_AZIMUTHS,
    DEFAULT_NUM_SAMPLES_PER_RAY,
    DEFAULT_OBSERVER_HEIGHT_M,
    DEFAULT_PROFILE_SAMPLES,
    DEFAULT_RADIUS_M,
    DEFAULT_SOURCE,
    DEM_SOURCES,
    INTERPOLATION_METHODS,
    MAX_BATCH_POINTS,
    MAX_RADIUS_M,
    OBSERVER_HEIGHTS,
    ErrorMessages,
)
from .geodesy import validate_lat_lon
from .profile import (
    ProfilePoint,
    ProfileSummary,
    get_elevation_profile,
    line_of_sight_clear,
    summarize_profile,
)
from .score import ViewScore, compute_view_score
from .terrain import DEMTerrainSampler, ElevationSample, TerrainSampler
from .viewshed import ViewshedResult, compute_viewshed, validate_viewshed_inputs
from .water import WaterVisibility, detect_water_visibility

logger = logging.getLogger(__name__)


@dataclass
class AnalysisRequest:
    """Parameters of one analysis run, kept so it can be re-run."""

    observer_lon: float
    observer_lat: float
    observer_height: float
    radius_m: float
    num_azimuths: int
    num_samples_per_ray: int
    source: str


@dataclass
class AnalysisResult:
    """Result of a full viewpoint analysis."""

    request_id: int
    request: AnalysisRequest
    viewshed: ViewshedResult
    water: WaterVisibility
    score: ViewScore
    superseded: bool = False


@dataclass
class ProfileResult:
    """Result of an elevation profile extraction."""

    source: str
    points: list[ProfilePoint]
    summary: ProfileSummary
    observer_height: float
    line_of_sight_clear: bool


class ViewScoutManager:
    """Central manager for viewpoint analysis."""

    def __init__(
        self,
        default_source: str = DEFAULT_SOURCE,
        interpolation: str = DEFAULT_INTERPOLATION,
        sampler: TerrainSampler | None = None,
    ) -> None:
        self._get_source(default_source)
        if interpolation not in INTERPOLATION_METHODS:
            raise ValueError(
                ErrorMessages.INVALID_INTERPOLATION.format(
                    interpolation, ", ".join(INTERPOLATION_METHODS)
                )
            )
        self.default_source = default_source
        self.interpolation = interpolation

        # An injected sampler serves every source
        self._sampler_override = sampler
        self._samplers: dict[str, DEMTerrainSampler] = {}

        # Last-request-wins bookkeeping
        self._request_counter: int = 0
        self._latest_landed_id: int = 0
        self._last_result: AnalysisResult | None = None

    # ------------------------------------------------------------------
    # Discovery (sync, no I/O)
    # ------------------------------------------------------------------

    def list_sources(self) -> list[dict]:
        """List all available DEM sources."""
        return [
            {
                "id": src["id"],
                "name": src["name"],
                "resolution_m": src["resolution_m"],
                "coverage": src["coverage"],
                "vertical_datum": src["vertical_datum"],
            }
            for src in DEM_SOURCES.values()
        ]

    def describe_source(self, source: str) -> dict:
        """Get detailed metadata for a DEM source."""
        return dict(self._get_source(source))

    def resolve_observer_height(
        self,
        observer_height_m: float | None = None,
        height_preset: str | None = None,
    ) -> float:
        """Resolve an explicit height or a named preset to metres.

        An explicit height wins over a preset; with neither, the default
        preset applies.
        """
        if observer_height_m is not None:
            return float(observer_height_m)
        if height_preset is not None:
            if height_preset not in OBSERVER_HEIGHTS:
                raise ValueError(
                    ErrorMessages.UNKNOWN_HEIGHT_PRESET.format(
                        height_preset, ", ".join(OBSERVER_HEIGHTS.keys())
                    )
                )
            return OBSERVER_HEIGHTS[height_preset]
        return DEFAULT_OBSERVER_HEIGHT_M

    @property
    def last_result(self) -> AnalysisResult | None:
        return self._last_result

    @property
    def cache_size_bytes(self) -> int:
        return sum(s.cache_size_bytes for s in self._samplers.values())

    # ------------------------------------------------------------------
    # Analysis (async)
    # ------------------------------------------------------------------

    async def run_analysis(
        self,
        observer: list[float],
        observer_height_m: float = DEFAULT_OBSERVER_HEIGHT_M,
        radius_m: float = DEFAULT_RADIUS_M,
        num_azimuths: int = DEFAULT_NUM_AZIMUTHS,
        num_samples_per_ray: int = DEFAULT_NUM_SAMPLES_PER_RAY,
        source: str | None = None,
    ) -> AnalysisResult:
        """Run viewshed, water detection, and scoring for an observer.

        Args:
            observer: [lon, lat] of the observer
            observer_height_m: Eye height above ground in metres
            radius_m: Analysis radius in metres
            num_azimuths: Number of rays
            num_samples_per_ray: Samples along each ray
            source: DEM source id (defaults to the manager's source)

        Returns:
            AnalysisResult; `superseded` is set when a newer run landed first

        Raises:
            ValueError: Invalid parameters
            RuntimeError: Terrain data unavailable
        """
        lon, lat = self._parse_point(observer)
        request = AnalysisRequest(
            observer_lon=lon,
            observer_lat=lat,
            observer_height=observer_height_m,
            radius_m=radius_m,
            num_azimuths=num_azimuths,
            num_samples_per_ray=num_samples_per_ray,
            source=source or self.default_source,
        )
        return await self._run(request)

    async def rerun_with_height(
        self,
        observer_height_m: float | None = None,
        height_preset: str | None = None,
    ) -> AnalysisResult:
        """Re-run the retained analysis at a new observer height."""
        if self._last_result is None:
            raise ValueError(ErrorMessages.NO_ANALYSIS)
        height = self.resolve_observer_height(observer_height_m, height_preset)
        request = replace(self._last_result.request, observer_height=height)
        return await self._run(request)

    def clear_analysis(self) -> bool:
        """Forget the retained analysis.

        Runs still in flight are superseded so they cannot bring it back.
        Returns True if there was something to clear.
        """
        had_result = self._last_result is not None
        self._last_result = None
        self._latest_landed_id = self._request_counter
        return had_result

    async def _run(self, request: AnalysisRequest) -> AnalysisResult:
        self._get_source(request.source)
        validate_viewshed_inputs(
            request.observer_lon,
            request.observer_lat,
            request.observer_height,
            request.radius_m,
            request.num_azimuths,
            request.num_samples_per_ray,
        )
        if request.radius_m > MAX_RADIUS_M:
            raise ValueError(ErrorMessages.RADIUS_TOO_LARGE.format(request.radius_m, MAX_RADIUS_M))
        total_points = request.num_azimuths * request.num_samples_per_ray
        if total_points > MAX_BATCH_POINTS:
            raise ValueError(ErrorMessages.TOO_MANY_POINTS.format(total_points, MAX_BATCH_POINTS))

        self._request_counter += 1
        request_id = self._request_counter
        logger.info(
            f"Analysis #{request_id}: observer ({request.observer_lon}, {request.observer_lat}), "
            f"height {request.observer_height}m, radius {request.radius_m}m, "
            f"{request.num_azimuths}x{request.num_samples_per_ray} samples"
        )

        sampler = self._get_sampler(request.source)
        try:
            viewshed = await compute_viewshed(
                sampler,
                request.observer_lon,
                request.observer_lat,
                observer_height_above_ground=request.observer_height,
                radius_m=request.radius_m,
                num_azimuths=request.num_azimuths,
                num_samples_per_ray=request.num_samples_per_ray,
            )
        except Exception as e:
            logger.error(f"Analysis #{request_id} failed: {e}")
            raise RuntimeError(ErrorMessages.TERRAIN_UNAVAILABLE.format(e)) from e

        water = detect_water_visibility(viewshed)
        score = compute_view_score(viewshed, water)
        result = AnalysisResult(
            request_id=request_id,
            request=request,
            viewshed=viewshed,
            water=water,
            score=score,
        )

        if request_id <= self._latest_landed_id:
            result.superseded = True
            logger.warning(f"Analysis #{request_id} superseded by a newer run; discarded")
            return result

        self._latest_landed_id = request_id
        self._last_result = result
        logger.info(
            f"Analysis #{request_id} complete: score {score.total}, "
            f"{viewshed.visible_fraction * 100:.1f}% visible, water {water.classification}"
        )
        return result

    # ------------------------------------------------------------------
    # Profile & raw sampling (async)
    # ------------------------------------------------------------------

    async def fetch_profile(
        self,
        end: list[float],
        start: list[float] | None = None,
        num_samples: int = DEFAULT_PROFILE_SAMPLES,
        observer_height_m: float | None = None,
        source: str | None = None,
    ) -> ProfileResult:
        """Extract an elevation profile, starting from the retained observer by default."""
        end_lon, end_lat = self._parse_point(end)

        if start is not None:
            start_lon, start_lat = self._parse_point(start)
        elif self._last_result is not None:
            start_lon = self._last_result.request.observer_lon
            start_lat = self._last_result.request.observer_lat
        else:
            raise ValueError(ErrorMessages.NO_PROFILE_START)

        if observer_height_m is None:
            if self._last_result is not None:
                observer_height_m = self._last_result.request.observer_height
            else:
                observer_height_m = DEFAULT_OBSERVER_HEIGHT_M
        if not math.isfinite(observer_height_m):
            raise ValueError(
                ErrorMessages.INVALID_COORDINATE.format("observer height", observer_height_m)
            )
        if observer_height_m < 0:
            raise ValueError(ErrorMessages.INVALID_OBSERVER_HEIGHT.format(observer_height_m))
        if num_samples + 1 > MAX_BATCH_POINTS:
            raise ValueError(
                ErrorMessages.TOO_MANY_POINTS.format(num_samples + 1, MAX_BATCH_POINTS)
            )

        if source is None and start is None and self._last_result is not None:
            source = self._last_result.request.source
        source = source or self.default_source
        sampler = self._get_sampler(source)

        points = await get_elevation_profile(
            sampler, start_lon, start_lat, end_lon, end_lat, num_samples
        )

        return ProfileResult(
            source=source,
            points=points,
            summary=summarize_profile(points),
            observer_height=observer_height_m,
            line_of_sight_clear=line_of_sight_clear(points, observer_height_m),
        )

    async def sample_points(
        self,
        points: list[list[float]],
        source: str | None = None,
    ) -> list[ElevationSample]:
        """Sample terrain heights at [lon, lat] points."""
        if not points:
            raise ValueError(ErrorMessages.EMPTY_POINTS)
        if len(points) > MAX_BATCH_POINTS:
            raise ValueError(ErrorMessages.TOO_MANY_POINTS.format(len(points), MAX_BATCH_POINTS))

        lat_lons: list[tuple[float, float]] = []
        for p in points:
            lon, lat = self._parse_point(p)
            lat_lons.append((lat, lon))

        sampler = self._get_sampler(source or self.default_source)
        samples = await sampler.sample_elevations(lat_lons)
        if len(samples) != len(lat_lons):
            raise RuntimeError(
                ErrorMessages.SAMPLER_LENGTH_MISMATCH.format(len(samples), len(lat_lons))
            )
        return samples

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_source(self, source: str) -> dict:
        """Get source metadata, raising ValueError if unknown."""
        if source not in DEM_SOURCES:
            raise ValueError(
                ErrorMessages.UNKNOWN_SOURCE.format(source, ", ".join(DEM_SOURCES.keys()))
            )
        return DEM_SOURCES[source]

    def _get_sampler(self, source: str) -> TerrainSampler:
        """Get the sampler for a source, creating one DEM sampler per source."""
        self._get_source(source)
        if self._sampler_override is not None:
            return self._sampler_override
        if source not in self._samplers:
            self._samplers[source] = DEMTerrainSampler(source, self.interpolation)
        return self._samplers[source]

    @staticmethod
    def _parse_point(point: list[float]) -> tuple[float, float]:
        """Validate a [lon, lat] pair and return it as floats."""
        if not isinstance(point, (list, tuple)) or len(point) != 2:
            raise ValueError(ErrorMessages.INVALID_POINT.format(point))
        try:
            lon, lat = float(point[0]), float(point[1])
        except (TypeError, ValueError) as e:
            raise ValueError(ErrorMessages.INVALID_POINT.format(point)) from e
        validate_lat_lon(lat, lon)
        return lon, lat
