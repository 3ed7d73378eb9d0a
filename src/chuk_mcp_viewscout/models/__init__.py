"""Response models for chuk-mcp-viewscout."""

from .responses import (
    AnalysisResponse,
    CapabilitiesResponse,
    ClearResponse,
    ElevationPointInfo,
    ElevationsResponse,
    ErrorResponse,
    ObserverHeightInfo,
    ObserverHeightsResponse,
    OverlayResponse,
    ProfilePointInfo,
    ProfileResponse,
    RayInfo,
    RaySampleInfo,
    ScoreBreakdownInfo,
    SourceInfo,
    SourcesResponse,
    StatusResponse,
    WaterInfo,
    WaterSegmentInfo,
    format_response,
)

__all__ = [
    "ErrorResponse",
    "SourceInfo",
    "SourcesResponse",
    "ObserverHeightInfo",
    "ObserverHeightsResponse",
    "StatusResponse",
    "CapabilitiesResponse",
    "ScoreBreakdownInfo",
    "WaterSegmentInfo",
    "WaterInfo",
    "RaySampleInfo",
    "RayInfo",
    "AnalysisResponse",
    "ClearResponse",
    "ProfilePointInfo",
    "ProfileResponse",
    "OverlayResponse",
    "ElevationPointInfo",
    "ElevationsResponse",
    "format_response",
]
