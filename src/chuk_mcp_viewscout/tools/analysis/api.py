"""
Analysis tools — viewpoint analysis, observer height, profile, overlay, sampling.

Each analysis runs viewshed -> water detection -> ViewScore. The latest
landed analysis is retained by the manager for re-runs, profiles, and
overlay export.
"""

import logging

from ...constants import (
    DEFAULT_NUM_AZIMUTHS,
    DEFAULT_NUM_SAMPLES_PER_RAY,
    DEFAULT_PROFILE_SAMPLES,
    DEFAULT_RADIUS_M,
    ErrorMessages,
    SuccessMessages,
)
from ...core.geodesy import parse_lat_lon
from ...core.overlay import viewshed_to_geojson
from ...models.responses import (
    AnalysisResponse,
    ClearResponse,
    ElevationPointInfo,
    ElevationsResponse,
    ErrorResponse,
    OverlayResponse,
    ProfilePointInfo,
    ProfileResponse,
    RayInfo,
    RaySampleInfo,
    ScoreBreakdownInfo,
    WaterInfo,
    WaterSegmentInfo,
    format_response,
)

logger = logging.getLogger(__name__)


def _analysis_response(result, include_rays: bool = False) -> AnalysisResponse:
    """Build an AnalysisResponse from a manager AnalysisResult."""
    viewshed = result.viewshed
    water = result.water
    score = result.score
    request = result.request

    rays = None
    if include_rays:
        rays = [
            RayInfo(
                azimuth=ray.azimuth,
                samples=[
                    RaySampleInfo(
                        distance_m=s.distance,
                        lon=s.lon,
                        lat=s.lat,
                        elevation_m=s.elevation,
                        visible=s.visible,
                    )
                    for s in ray.samples
                ],
            )
            for ray in viewshed.rays
        ]

    if result.superseded:
        message = SuccessMessages.ANALYSIS_SUPERSEDED
    else:
        message = SuccessMessages.ANALYSIS_COMPLETE.format(
            score.total,
            viewshed.visible_fraction * 100,
            request.radius_m,
            water.classification,
        )

    return AnalysisResponse(
        request_id=result.request_id,
        superseded=result.superseded,
        source=request.source,
        observer=[viewshed.observer_lon, viewshed.observer_lat],
        observer_height_m=viewshed.observer_height,
        terrain_height_m=viewshed.terrain_height,
        observer_elevation_m=viewshed.observer_elevation,
        radius_m=request.radius_m,
        num_azimuths=request.num_azimuths,
        num_samples_per_ray=request.num_samples_per_ray,
        visible_count=viewshed.visible_count,
        total_count=viewshed.total_count,
        visible_percentage=round(viewshed.visible_fraction * 100, 2),
        score=score.total,
        rating=score.rating,
        breakdown=ScoreBreakdownInfo(**score.breakdown.as_dict()),
        water=WaterInfo(
            ocean_visible=water.ocean_visible,
            arc_degrees=water.arc_degrees,
            classification=water.classification,
            segments=[
                WaterSegmentInfo(start_bearing=s.start_bearing, end_bearing=s.end_bearing)
                for s in water.segments
            ],
            nearest_water_distance_m=water.nearest_water_distance,
            nearest_water_bearing=water.nearest_water_bearing,
        ),
        rays=rays,
        message=message,
    )


def register_analysis_tools(mcp, manager):
    """Register analysis tools with the MCP server."""

    @mcp.tool()
    async def viewscout_analyze(
        observer: list[float],
        observer_height_m: float | None = None,
        height_preset: str | None = None,
        radius_m: float = DEFAULT_RADIUS_M,
        num_azimuths: int = DEFAULT_NUM_AZIMUTHS,
        num_samples_per_ray: int = DEFAULT_NUM_SAMPLES_PER_RAY,
        source: str | None = None,
        include_rays: bool = False,
        output_mode: str = "json",
    ) -> str:
        """Score a viewpoint: terrain visibility, visible water, elevation advantage, view distance.

        Casts rays from the observer over a spherical earth, marks each terrain
        sample visible or hidden, detects near-sea-level water within view, and
        combines everything into a 0-100 ViewScore.

        Args:
            observer: Observer point [lon, lat]
            observer_height_m: Eye height above ground in metres (overrides height_preset)
            height_preset: Named eye height (ground, 1_story, 2_story, 3_story, 4_story)
            radius_m: Analysis radius in metres (default 10000, max 50000)
            num_azimuths: Number of rays (default 72, a 5 degree step)
            num_samples_per_ray: Samples along each ray (default 40)
            source: DEM source (cop30, cop90); defaults to the server's source
            include_rays: Include per-ray samples in the response
            output_mode: "json" or "text"

        Returns:
            ViewScore, breakdown, visible percentage, and water visibility
        """
        try:
            height = manager.resolve_observer_height(observer_height_m, height_preset)
            result = await manager.run_analysis(
                observer=observer,
                observer_height_m=height,
                radius_m=radius_m,
                num_azimuths=num_azimuths,
                num_samples_per_ray=num_samples_per_ray,
                source=source,
            )
            return format_response(_analysis_response(result, include_rays), output_mode)

        except Exception as e:
            logger.error(f"viewscout_analyze failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_analyze_query(
        query: str,
        observer_height_m: float | None = None,
        height_preset: str | None = None,
        radius_m: float = DEFAULT_RADIUS_M,
        num_azimuths: int = DEFAULT_NUM_AZIMUTHS,
        num_samples_per_ray: int = DEFAULT_NUM_SAMPLES_PER_RAY,
        source: str | None = None,
        include_rays: bool = False,
        output_mode: str = "json",
    ) -> str:
        """Score a viewpoint given as a "lat, lon" text query (e.g. "36.57, -121.95").

        Args:
            query: Coordinates as "lat, lon" in decimal degrees
            observer_height_m: Eye height above ground in metres (overrides height_preset)
            height_preset: Named eye height (ground, 1_story, 2_story, 3_story, 4_story)
            radius_m: Analysis radius in metres (default 10000, max 50000)
            num_azimuths: Number of rays (default 72)
            num_samples_per_ray: Samples along each ray (default 40)
            source: DEM source (cop30, cop90)
            include_rays: Include per-ray samples in the response
            output_mode: "json" or "text"

        Returns:
            ViewScore, breakdown, visible percentage, and water visibility
        """
        try:
            lat, lon = parse_lat_lon(query)
            height = manager.resolve_observer_height(observer_height_m, height_preset)
            result = await manager.run_analysis(
                observer=[lon, lat],
                observer_height_m=height,
                radius_m=radius_m,
                num_azimuths=num_azimuths,
                num_samples_per_ray=num_samples_per_ray,
                source=source,
            )
            return format_response(_analysis_response(result, include_rays), output_mode)

        except Exception as e:
            logger.error(f"viewscout_analyze_query failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_set_observer_height(
        observer_height_m: float | None = None,
        height_preset: str | None = None,
        include_rays: bool = False,
        output_mode: str = "json",
    ) -> str:
        """Change the observer eye height and re-run the last analysis at the same spot.

        Args:
            observer_height_m: Eye height above ground in metres (overrides height_preset)
            height_preset: Named eye height (ground, 1_story, 2_story, 3_story, 4_story)
            include_rays: Include per-ray samples in the response
            output_mode: "json" or "text"

        Returns:
            The re-run analysis
        """
        try:
            result = await manager.rerun_with_height(observer_height_m, height_preset)
            return format_response(_analysis_response(result, include_rays), output_mode)

        except Exception as e:
            logger.error(f"viewscout_set_observer_height failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_clear(output_mode: str = "json") -> str:
        """Forget the retained analysis.

        Args:
            output_mode: "json" or "text"

        Returns:
            Whether anything was cleared
        """
        try:
            cleared = manager.clear_analysis()
            message = (
                SuccessMessages.ANALYSIS_CLEARED if cleared else SuccessMessages.NOTHING_TO_CLEAR
            )
            return format_response(ClearResponse(cleared=cleared, message=message), output_mode)

        except Exception as e:
            logger.error(f"viewscout_clear failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_profile(
        end: list[float],
        start: list[float] | None = None,
        num_samples: int = DEFAULT_PROFILE_SAMPLES,
        observer_height_m: float | None = None,
        source: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """Extract an elevation profile and check line of sight to a target.

        Args:
            end: Target point [lon, lat]
            start: Start point [lon, lat]; defaults to the last analysis observer
            num_samples: Number of intervals (default 50, giving 51 points)
            observer_height_m: Eye height at the start; defaults to the last analysis height
            source: DEM source (cop30, cop90)
            output_mode: "json" or "text"

        Returns:
            Elevation profile with distance, gain, loss, and line-of-sight flag
        """
        try:
            result = await manager.fetch_profile(
                end=end,
                start=start,
                num_samples=num_samples,
                observer_height_m=observer_height_m,
                source=source,
            )
            points = result.points

            point_infos = [
                ProfilePointInfo(
                    lon=p.lon,
                    lat=p.lat,
                    distance_m=p.distance,
                    elevation_m=p.elevation,
                )
                for p in points
            ]

            response = ProfileResponse(
                source=result.source,
                start=[points[0].lon, points[0].lat],
                end=[points[-1].lon, points[-1].lat],
                num_points=len(points),
                points=point_infos,
                total_distance_m=result.summary.total_distance,
                elevation_range=result.summary.elevation_range,
                elevation_gain_m=result.summary.elevation_gain,
                elevation_loss_m=result.summary.elevation_loss,
                observer_height_m=result.observer_height,
                line_of_sight_clear=result.line_of_sight_clear,
                message=SuccessMessages.PROFILE_COMPLETE.format(
                    len(points), result.summary.total_distance
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"viewscout_profile failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_overlay(output_mode: str = "json") -> str:
        """Export the last analysis as a GeoJSON FeatureCollection.

        The observer is the first feature; every ray sample follows as a Point
        with `visible` and, for the first water hit on a ray, `water` properties.

        Args:
            output_mode: "json" or "text"

        Returns:
            GeoJSON overlay of the retained analysis
        """
        try:
            last = manager.last_result
            if last is None:
                raise ValueError(ErrorMessages.NO_ANALYSIS)

            geojson = viewshed_to_geojson(last.viewshed, last.water)
            features = geojson["features"]
            visible = sum(
                1
                for f in features
                if f["properties"].get("kind") == "sample" and f["properties"]["visible"]
            )

            response = OverlayResponse(
                request_id=last.request_id,
                feature_count=len(features),
                visible_count=visible,
                geojson=geojson,
                message=SuccessMessages.OVERLAY_COMPLETE.format(len(features) - 1, visible),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"viewscout_overlay failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_sample_elevations(
        points: list[list[float]],
        source: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """Sample terrain heights at one or more [lon, lat] points.

        Args:
            points: List of [lon, lat] points
            source: DEM source (cop30, cop90)
            output_mode: "json" or "text"

        Returns:
            Elevation per point; null where the DEM has no data
        """
        try:
            samples = await manager.sample_points(points, source=source)
            infos = [
                ElevationPointInfo(lon=s.lon, lat=s.lat, elevation_m=s.height) for s in samples
            ]
            missing = sum(1 for s in samples if s.height is None)

            response = ElevationsResponse(
                source=source or manager.default_source,
                point_count=len(infos),
                points=infos,
                missing_count=missing,
                message=SuccessMessages.ELEVATIONS_COMPLETE.format(len(infos)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"viewscout_sample_elevations failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
