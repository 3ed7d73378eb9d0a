"""
Discovery tools — server status, capabilities, DEM sources, observer presets.

These tools require no network I/O and return information about
available terrain sources and server configuration.
"""

import logging

from ...constants import (
    ALL_SOURCE_IDS,
    ANALYSIS_TOOLS,
    DEFAULT_HEIGHT_PRESET,
    DEFAULT_NUM_AZIMUTHS,
    DEFAULT_NUM_SAMPLES_PER_RAY,
    DEFAULT_OBSERVER_HEIGHT_M,
    DEFAULT_PROFILE_SAMPLES,
    DEFAULT_RADIUS_M,
    DISCOVERY_TOOLS,
    MAX_RADIUS_M,
    OBSERVER_HEIGHTS,
    ServerConfig,
    SuccessMessages,
)
from ...models.responses import (
    CapabilitiesResponse,
    ErrorResponse,
    ObserverHeightInfo,
    ObserverHeightsResponse,
    SourceInfo,
    SourcesResponse,
    StatusResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def _height_presets() -> list[ObserverHeightInfo]:
    return [ObserverHeightInfo(preset=k, height_m=v) for k, v in OBSERVER_HEIGHTS.items()]


def register_discovery_tools(mcp, manager):
    """Register discovery tools with the MCP server."""

    @mcp.tool()
    async def viewscout_status(output_mode: str = "json") -> str:
        """Get server status including version, default source, and whether an analysis is held.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Server status information
        """
        try:
            cache_mb = manager.cache_size_bytes / (1024 * 1024)

            response = StatusResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                default_source=manager.default_source,
                available_sources=ALL_SOURCE_IDS,
                interpolation=manager.interpolation,
                has_analysis=manager.last_result is not None,
                cache_size_mb=round(cache_mb, 1),
                message=SuccessMessages.STATUS.format(
                    ServerConfig.VERSION, len(ALL_SOURCE_IDS), manager.default_source
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"viewscout_status failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_capabilities(output_mode: str = "json") -> str:
        """Get full server capabilities including sources, tools, observer presets, and defaults.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Complete server capabilities
        """
        try:
            sources = [SourceInfo(**s) for s in manager.list_sources()]

            response = CapabilitiesResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                sources=sources,
                default_source=manager.default_source,
                observer_heights=_height_presets(),
                analysis_tools=ANALYSIS_TOOLS,
                discovery_tools=DISCOVERY_TOOLS,
                defaults={
                    "radius_m": DEFAULT_RADIUS_M,
                    "max_radius_m": MAX_RADIUS_M,
                    "num_azimuths": DEFAULT_NUM_AZIMUTHS,
                    "num_samples_per_ray": DEFAULT_NUM_SAMPLES_PER_RAY,
                    "observer_height_m": DEFAULT_OBSERVER_HEIGHT_M,
                    "profile_samples": DEFAULT_PROFILE_SAMPLES,
                },
                tool_count=len(ANALYSIS_TOOLS) + len(DISCOVERY_TOOLS),
                llm_guidance=(
                    "Use viewscout_analyze with observer=[lon, lat] to score a viewpoint "
                    "(0-100) from terrain visibility, visible water, elevation advantage, "
                    "and view distance. Use viewscout_analyze_query for 'lat, lon' text. "
                    "Pick an eye height with height_preset (see viewscout_observer_heights) "
                    "and change it later with viewscout_set_observer_height. "
                    "Use viewscout_profile to check line of sight to a target, and "
                    "viewscout_overlay to get the last analysis as GeoJSON. "
                    "Default source is cop30 (Copernicus GLO-30, 30m global)."
                ),
                message=f"{ServerConfig.NAME} v{ServerConfig.VERSION} capabilities",
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"viewscout_capabilities failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_list_sources(output_mode: str = "json") -> str:
        """List the DEM sources terrain can be sampled from.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            List of available DEM sources with metadata
        """
        try:
            sources = [SourceInfo(**s) for s in manager.list_sources()]

            response = SourcesResponse(
                sources=sources,
                default=manager.default_source,
                message=SuccessMessages.SOURCES_LIST.format(len(sources)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"viewscout_list_sources failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def viewscout_observer_heights(output_mode: str = "json") -> str:
        """List named observer eye-height presets (ground level up to a 4th-floor window).

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Preset names with heights in metres
        """
        try:
            presets = _height_presets()
            response = ObserverHeightsResponse(
                presets=presets,
                default_preset=DEFAULT_HEIGHT_PRESET,
                message=SuccessMessages.HEIGHTS_LIST.format(len(presets)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"viewscout_observer_heights failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
