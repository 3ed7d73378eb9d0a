"""
Response models for chuk-mcp-viewscout tools.

All tool responses are Pydantic models for type safety and consistent API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


# ---------------------------------------------------------------------------
# Discovery responses
# ---------------------------------------------------------------------------


class SourceInfo(BaseModel):
    """Summary information about a DEM source."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Source identifier (e.g., cop30)")
    name: str = Field(..., description="Human-readable source name")
    resolution_m: int = Field(..., description="Native resolution in metres")
    coverage: str = Field(..., description="Coverage description (e.g., global)")
    vertical_datum: str = Field(..., description="Vertical datum (e.g., EGM2008)")

    def to_text(self) -> str:
        return f"{self.id}: {self.name} ({self.resolution_m}m, {self.coverage})"


class SourcesResponse(BaseModel):
    """Response model for listing available DEM sources."""

    model_config = ConfigDict(extra="forbid")

    sources: list[SourceInfo] = Field(..., description="Available DEM sources")
    default: str = Field(..., description="Default source identifier")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"Default: {self.default}", ""]
        for s in self.sources:
            lines.append(f"  {s.to_text()}")
        return "\n".join(lines)


class ObserverHeightInfo(BaseModel):
    """A named observer height preset."""

    model_config = ConfigDict(extra="forbid")

    preset: str = Field(..., description="Preset name (e.g., 2_story)")
    height_m: float = Field(..., description="Eye height above ground in metres")


class ObserverHeightsResponse(BaseModel):
    """Response model for listing observer height presets."""

    model_config = ConfigDict(extra="forbid")

    presets: list[ObserverHeightInfo] = Field(..., description="Available presets")
    default_preset: str = Field(..., description="Preset used when no height is given")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, ""]
        for p in self.presets:
            marker = " (default)" if p.preset == self.default_preset else ""
            lines.append(f"  {p.preset}: {p.height_m:.1f}m{marker}")
        return "\n".join(lines)


class StatusResponse(BaseModel):
    """Response model for server status queries."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(default="chuk-mcp-viewscout", description="Server name")
    version: str = Field(default="0.1.0", description="Server version")
    default_source: str = Field(..., description="Default DEM source")
    available_sources: list[str] = Field(..., description="Available DEM source identifiers")
    interpolation: str = Field(..., description="Terrain sampling interpolation method")
    has_analysis: bool = Field(default=False, description="Whether an analysis is retained")
    cache_size_mb: float = Field(default=0.0, description="Current tile cache size in megabytes")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        analysis = "retained" if self.has_analysis else "none"
        lines = [
            f"{self.server} v{self.version}",
            f"Default source: {self.default_source}",
            f"Sources: {', '.join(self.available_sources)}",
            f"Interpolation: {self.interpolation}",
            f"Analysis: {analysis}",
            f"Cache: {self.cache_size_mb:.1f} MB",
        ]
        return "\n".join(lines)


class CapabilitiesResponse(BaseModel):
    """Response model for server capabilities listing."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    sources: list[SourceInfo] = Field(..., description="Available DEM sources")
    default_source: str = Field(..., description="Default DEM source identifier")
    observer_heights: list[ObserverHeightInfo] = Field(..., description="Observer presets")
    analysis_tools: list[str] = Field(..., description="Available analysis tools")
    discovery_tools: list[str] = Field(..., description="Available discovery tools")
    defaults: dict[str, float] = Field(..., description="Default analysis parameters")
    tool_count: int = Field(..., description="Number of available tools", ge=0)
    llm_guidance: str = Field(..., description="LLM-friendly usage guidance for the server")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Tools: {self.tool_count}",
            f"Default source: {self.default_source}",
            f"Sources: {', '.join(s.id for s in self.sources)}",
            f"Observer heights: {', '.join(h.preset for h in self.observer_heights)}",
            f"Analysis tools: {', '.join(self.analysis_tools)}",
            f"Defaults: {', '.join(f'{k}={v:g}' for k, v in self.defaults.items())}",
            f"Guidance: {self.llm_guidance}",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Analysis responses
# ---------------------------------------------------------------------------


class ScoreBreakdownInfo(BaseModel):
    """Per-component ViewScore points."""

    model_config = ConfigDict(extra="forbid")

    terrain_visibility: int = Field(..., description="Visible fraction points (0-30)", ge=0, le=30)
    water_bonus: int = Field(..., description="Water arc points (0-30)", ge=0, le=30)
    elevation_advantage: int = Field(
        ..., description="Height above surroundings points (0-20)", ge=0, le=20
    )
    view_distance: int = Field(
        ..., description="Farthest visible sample points (0-20)", ge=0, le=20
    )


class WaterSegmentInfo(BaseModel):
    """Contiguous arc of bearings with visible water."""

    model_config = ConfigDict(extra="forbid")

    start_bearing: float = Field(..., description="Segment start bearing in degrees")
    end_bearing: float = Field(..., description="Segment end bearing in degrees (may wrap)")


class WaterInfo(BaseModel):
    """Water visibility summary."""

    model_config = ConfigDict(extra="forbid")

    ocean_visible: bool = Field(..., description="Whether any water was detected")
    arc_degrees: float = Field(..., description="Total angular width of visible water")
    classification: str = Field(..., description="Panoramic, Wide, Partial, Peek-a-boo or None")
    segments: list[WaterSegmentInfo] = Field(..., description="Contiguous water segments")
    nearest_water_distance_m: float | None = Field(None, description="Closest water hit")
    nearest_water_bearing: float | None = Field(None, description="Bearing of closest water hit")


class RaySampleInfo(BaseModel):
    """One sample along a ray."""

    model_config = ConfigDict(extra="forbid")

    distance_m: float = Field(..., description="Distance from observer in metres")
    lon: float = Field(..., description="Longitude")
    lat: float = Field(..., description="Latitude")
    elevation_m: float = Field(..., description="Terrain elevation in metres")
    visible: bool = Field(..., description="Whether the sample is visible from the observer")


class RayInfo(BaseModel):
    """Samples along one bearing."""

    model_config = ConfigDict(extra="forbid")

    azimuth: float = Field(..., description="Bearing in degrees clockwise from north")
    samples: list[RaySampleInfo] = Field(..., description="Samples ordered near to far")


class AnalysisResponse(BaseModel):
    """Response model for a full viewpoint analysis."""

    model_config = ConfigDict(extra="forbid")

    request_id: int = Field(..., description="Monotonic analysis request id", ge=1)
    superseded: bool = Field(
        default=False, description="True when a newer analysis landed first; not retained"
    )
    source: str = Field(..., description="DEM source used")
    observer: list[float] = Field(..., description="Observer point [lon, lat]")
    observer_height_m: float = Field(..., description="Observer height above ground in metres")
    terrain_height_m: float = Field(..., description="Ground elevation at observer in metres")
    observer_elevation_m: float = Field(..., description="Absolute eye elevation in metres")
    radius_m: float = Field(..., description="Analysis radius in metres")
    num_azimuths: int = Field(..., description="Number of rays", ge=1)
    num_samples_per_ray: int = Field(..., description="Samples per ray", ge=1)
    visible_count: int = Field(..., description="Visible samples", ge=0)
    total_count: int = Field(..., description="Total samples", ge=1)
    visible_percentage: float = Field(..., description="Visible samples as a percentage")
    score: int = Field(..., description="ViewScore 0-100", ge=0, le=100)
    rating: str = Field(..., description="Score band: high, medium or low")
    breakdown: ScoreBreakdownInfo = Field(..., description="Score components")
    water: WaterInfo = Field(..., description="Water visibility")
    rays: list[RayInfo] | None = Field(None, description="Per-ray samples (when requested)")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        b = self.breakdown
        lines = [
            self.message,
            f"Observer: ({self.observer[0]:.6f}, {self.observer[1]:.6f})",
            f"Ground: {self.terrain_height_m:.1f}m, eye: {self.observer_elevation_m:.1f}m "
            f"(+{self.observer_height_m:.1f}m)",
            f"Radius: {self.radius_m:.0f}m ({self.num_azimuths} rays x "
            f"{self.num_samples_per_ray} samples)",
            f"Visible: {self.visible_count}/{self.total_count} "
            f"({self.visible_percentage:.1f}%)",
            f"Score: {self.score}/100 ({self.rating})",
            f"  Terrain visibility: {b.terrain_visibility}/30",
            f"  Water bonus: {b.water_bonus}/30",
            f"  Elevation advantage: {b.elevation_advantage}/20",
            f"  View distance: {b.view_distance}/20",
            f"Water: {self.water.classification} ({self.water.arc_degrees:.0f} deg)",
        ]
        for seg in self.water.segments:
            lines.append(f"  {seg.start_bearing:.0f} -> {seg.end_bearing:.0f} deg")
        if self.water.nearest_water_distance_m is not None:
            lines.append(
                f"Nearest water: {self.water.nearest_water_distance_m:.0f}m "
                f"at {self.water.nearest_water_bearing:.0f} deg"
            )
        if self.superseded:
            lines.append("NOTE: superseded by a newer analysis, not retained")
        return "\n".join(lines)


class ClearResponse(BaseModel):
    """Response model for clearing the retained analysis."""

    model_config = ConfigDict(extra="forbid")

    cleared: bool = Field(..., description="Whether an analysis was cleared")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return self.message


class ProfilePointInfo(BaseModel):
    """Elevation data for a single point in a profile."""

    model_config = ConfigDict(extra="forbid")

    lon: float = Field(..., description="Longitude")
    lat: float = Field(..., description="Latitude")
    distance_m: float = Field(..., description="Distance from start in metres")
    elevation_m: float = Field(..., description="Elevation in metres")


class ProfileResponse(BaseModel):
    """Response model for elevation profile extraction."""

    model_config = ConfigDict(extra="forbid")

    source: str = Field(..., description="DEM source used")
    start: list[float] = Field(..., description="Start point [lon, lat]")
    end: list[float] = Field(..., description="End point [lon, lat]")
    num_points: int = Field(..., description="Number of profile points")
    points: list[ProfilePointInfo] = Field(..., description="Profile points with elevation")
    total_distance_m: float = Field(..., description="Total profile distance in metres")
    elevation_range: list[float] = Field(..., description="[min, max] elevation in metres")
    elevation_gain_m: float = Field(..., description="Total elevation gain in metres")
    elevation_loss_m: float = Field(..., description="Total elevation loss in metres")
    observer_height_m: float = Field(..., description="Eye height used for the sight line")
    line_of_sight_clear: bool = Field(
        ..., description="Whether the end point is visible from the start"
    )
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        elev_min, elev_max = self.elevation_range
        los = "clear" if self.line_of_sight_clear else "blocked"
        lines = [
            f"Profile: {self.source}",
            f"Start: ({self.start[0]:.6f}, {self.start[1]:.6f})",
            f"End: ({self.end[0]:.6f}, {self.end[1]:.6f})",
            f"Distance: {self.total_distance_m:.1f}m ({self.num_points} points)",
            f"Elevation range: {elev_min:.1f}m to {elev_max:.1f}m",
            f"Gain: {self.elevation_gain_m:.1f}m, Loss: {self.elevation_loss_m:.1f}m",
            f"Line of sight (+{self.observer_height_m:.1f}m): {los}",
        ]
        return "\n".join(lines)


class OverlayResponse(BaseModel):
    """Response model for the GeoJSON overlay of the retained analysis."""

    model_config = ConfigDict(extra="forbid")

    request_id: int = Field(..., description="Analysis the overlay was built from", ge=1)
    feature_count: int = Field(..., description="Number of GeoJSON features", ge=0)
    visible_count: int = Field(..., description="Number of visible sample features", ge=0)
    geojson: dict[str, Any] = Field(..., description="GeoJSON FeatureCollection")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            self.message,
            f"Analysis: #{self.request_id}",
            f"Features: {self.feature_count}",
        ]
        return "\n".join(lines)


class ElevationPointInfo(BaseModel):
    """Terrain height for a single sampled point."""

    model_config = ConfigDict(extra="forbid")

    lon: float = Field(..., description="Longitude")
    lat: float = Field(..., description="Latitude")
    elevation_m: float | None = Field(None, description="Elevation in metres, null if no data")


class ElevationsResponse(BaseModel):
    """Response model for raw terrain sampling."""

    model_config = ConfigDict(extra="forbid")

    source: str = Field(..., description="DEM source used")
    point_count: int = Field(..., description="Number of points queried", ge=1)
    points: list[ElevationPointInfo] = Field(..., description="Elevation results per point")
    missing_count: int = Field(default=0, description="Points with no terrain data", ge=0)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"Source: {self.source}", ""]
        for p in self.points:
            elev = f"{p.elevation_m:.1f}m" if p.elevation_m is not None else "no data"
            lines.append(f"  ({p.lon:.6f}, {p.lat:.6f}): {elev}")
        if self.missing_count:
            lines.append(f"Missing: {self.missing_count}")
        return "\n".join(lines)
