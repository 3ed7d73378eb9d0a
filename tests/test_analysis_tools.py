"""
Tests for analysis tools (viewscout_analyze, viewscout_analyze_query,
viewscout_set_observer_height, viewscout_clear, viewscout_profile,
viewscout_overlay, viewscout_sample_elevations).

Tests cover:
- Success paths (JSON and text output modes) over synthetic terrain
- Parameter forwarding to manager methods
- Error handling (exception -> ErrorResponse)
- Retained-analysis defaults for re-runs, profiles, and overlays
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from chuk_mcp_viewscout.constants import DEFAULT_RADIUS_M
from chuk_mcp_viewscout.core.viewscout_manager import ViewScoutManager
from chuk_mcp_viewscout.tools.analysis.api import _analysis_response, register_analysis_tools

from conftest import OBSERVER_LAT, OBSERVER_LON, FailingSampler, FunctionSampler

OBSERVER = [OBSERVER_LON, OBSERVER_LAT]
SMALL = {"num_azimuths": 12, "num_samples_per_ray": 10}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def analysis_tools(capture_tools, coastal_sampler):
    """Register analysis tools over a coastal slope and return (tools_dict, manager)."""
    tools, mcp = capture_tools
    manager = ViewScoutManager(sampler=coastal_sampler)
    register_analysis_tools(mcp, manager)
    return tools, manager


@pytest.fixture
def mock_manager_tools(capture_tools):
    """Register analysis tools over a mocked manager."""
    tools, mcp = capture_tools
    manager = MagicMock()
    manager.resolve_observer_height.return_value = 7.0
    manager.run_analysis = AsyncMock(side_effect=ValueError("stop here"))
    register_analysis_tools(mcp, manager)
    return tools, manager


def test_all_tools_registered(analysis_tools):
    tools, _ = analysis_tools
    assert set(tools) == {
        "viewscout_analyze",
        "viewscout_analyze_query",
        "viewscout_set_observer_height",
        "viewscout_clear",
        "viewscout_profile",
        "viewscout_overlay",
        "viewscout_sample_elevations",
    }


# ---------------------------------------------------------------------------
# viewscout_analyze
# ---------------------------------------------------------------------------


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_coastal_viewpoint(self, analysis_tools):
        tools, manager = analysis_tools
        result = json.loads(
            await tools["viewscout_analyze"](observer=OBSERVER, observer_height_m=10.0, **SMALL)
        )

        assert result["request_id"] == 1
        assert result["superseded"] is False
        assert result["source"] == "cop30"
        assert result["observer"] == OBSERVER
        assert result["terrain_height_m"] == pytest.approx(100.0)
        assert result["observer_elevation_m"] == pytest.approx(110.0)
        assert result["total_count"] == 120
        assert result["water"]["ocean_visible"] is True
        assert result["water"]["classification"] == "Panoramic"
        assert result["rays"] is None
        assert result["score"] == sum(result["breakdown"].values())
        assert manager.last_result is not None

    @pytest.mark.asyncio
    async def test_include_rays(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(
            await tools["viewscout_analyze"](observer=OBSERVER, include_rays=True, **SMALL)
        )

        assert len(result["rays"]) == 12
        assert result["rays"][1]["azimuth"] == 30.0
        assert len(result["rays"][0]["samples"]) == 10
        assert result["rays"][0]["samples"][0]["visible"] is True

    @pytest.mark.asyncio
    async def test_height_preset(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(
            await tools["viewscout_analyze"](observer=OBSERVER, height_preset="4_story", **SMALL)
        )
        assert result["observer_height_m"] == 13.0

    @pytest.mark.asyncio
    async def test_explicit_height_overrides_preset(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(
            await tools["viewscout_analyze"](
                observer=OBSERVER, observer_height_m=2.5, height_preset="4_story", **SMALL
            )
        )
        assert result["observer_height_m"] == 2.5

    @pytest.mark.asyncio
    async def test_default_height(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(await tools["viewscout_analyze"](observer=OBSERVER, **SMALL))
        assert result["observer_height_m"] == 4.0

    @pytest.mark.asyncio
    async def test_text_mode(self, analysis_tools):
        tools, _ = analysis_tools
        text = await tools["viewscout_analyze"](observer=OBSERVER, output_mode="text", **SMALL)

        assert text.startswith("ViewScore ")
        assert "Score:" in text
        assert "Water: Panoramic" in text
        assert "Nearest water:" in text

    @pytest.mark.asyncio
    async def test_forwards_parameters(self, mock_manager_tools):
        tools, manager = mock_manager_tools
        await tools["viewscout_analyze"](
            observer=[7.0, 46.0],
            height_preset="2_story",
            radius_m=2500.0,
            num_azimuths=8,
            num_samples_per_ray=5,
            source="cop90",
        )

        manager.resolve_observer_height.assert_called_once_with(None, "2_story")
        manager.run_analysis.assert_awaited_once_with(
            observer=[7.0, 46.0],
            observer_height_m=7.0,
            radius_m=2500.0,
            num_azimuths=8,
            num_samples_per_ray=5,
            source="cop90",
        )

    @pytest.mark.asyncio
    async def test_default_radius(self, mock_manager_tools):
        tools, manager = mock_manager_tools
        await tools["viewscout_analyze"](observer=[7.0, 46.0])
        assert manager.run_analysis.await_args.kwargs["radius_m"] == DEFAULT_RADIUS_M

    @pytest.mark.asyncio
    async def test_unknown_source(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(
            await tools["viewscout_analyze"](observer=OBSERVER, source="srtm", **SMALL)
        )
        assert "Unknown DEM source" in result["error"]

    @pytest.mark.asyncio
    async def test_unknown_preset(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(
            await tools["viewscout_analyze"](observer=OBSERVER, height_preset="roof", **SMALL)
        )
        assert "Unknown observer height preset" in result["error"]

    @pytest.mark.asyncio
    async def test_terrain_failure(self, capture_tools):
        tools, mcp = capture_tools
        register_analysis_tools(mcp, ViewScoutManager(sampler=FailingSampler()))

        result = json.loads(await tools["viewscout_analyze"](observer=OBSERVER, **SMALL))
        assert result["error"].startswith("Analysis failed, terrain data unavailable")

    @pytest.mark.asyncio
    async def test_error_text_mode(self, analysis_tools):
        tools, _ = analysis_tools
        text = await tools["viewscout_analyze"](observer=[0.0, 95.0], output_mode="text")
        assert text.startswith("Error: Latitude")


class TestAnalysisResponse:
    @pytest.mark.asyncio
    async def test_superseded_message(self, analysis_tools):
        _, manager = analysis_tools
        result = await manager.run_analysis(OBSERVER, **SMALL)
        result.superseded = True

        response = _analysis_response(result)
        assert response.superseded is True
        assert "superseded" in response.message
        assert "NOTE: superseded" in response.to_text()


# ---------------------------------------------------------------------------
# viewscout_analyze_query
# ---------------------------------------------------------------------------


class TestAnalyzeQuery:
    @pytest.mark.asyncio
    async def test_lat_lon_order(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(
            await tools["viewscout_analyze_query"](
                query=f"{OBSERVER_LAT}, {OBSERVER_LON}", **SMALL
            )
        )
        assert result["observer"] == OBSERVER

    @pytest.mark.asyncio
    async def test_unparseable(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(await tools["viewscout_analyze_query"](query="Monterey"))
        assert "Could not parse" in result["error"]


# ---------------------------------------------------------------------------
# viewscout_set_observer_height / viewscout_clear
# ---------------------------------------------------------------------------


class TestSetObserverHeight:
    @pytest.mark.asyncio
    async def test_requires_analysis(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(await tools["viewscout_set_observer_height"](observer_height_m=7.0))
        assert "No analysis available" in result["error"]

    @pytest.mark.asyncio
    async def test_reruns_same_spot(self, analysis_tools):
        tools, _ = analysis_tools
        first = json.loads(
            await tools["viewscout_analyze"](observer=OBSERVER, radius_m=5000.0, **SMALL)
        )
        second = json.loads(await tools["viewscout_set_observer_height"](height_preset="ground"))

        assert second["request_id"] == first["request_id"] + 1
        assert second["observer"] == first["observer"]
        assert second["radius_m"] == 5000.0
        assert second["observer_height_m"] == 1.7


class TestClear:
    @pytest.mark.asyncio
    async def test_clear_then_nothing(self, analysis_tools):
        tools, manager = analysis_tools
        await tools["viewscout_analyze"](observer=OBSERVER, **SMALL)

        first = json.loads(await tools["viewscout_clear"]())
        second = json.loads(await tools["viewscout_clear"]())

        assert first == {"cleared": True, "message": "Analysis cleared"}
        assert second["cleared"] is False
        assert manager.last_result is None

    @pytest.mark.asyncio
    async def test_text_mode(self, analysis_tools):
        tools, _ = analysis_tools
        assert await tools["viewscout_clear"](output_mode="text") == "No analysis to clear"


# ---------------------------------------------------------------------------
# viewscout_profile
# ---------------------------------------------------------------------------


class TestProfile:
    @pytest.mark.asyncio
    async def test_needs_start(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(await tools["viewscout_profile"](end=[-121.85, 36.5]))
        assert "No start point" in result["error"]

    @pytest.mark.asyncio
    async def test_from_retained_observer(self, analysis_tools):
        tools, _ = analysis_tools
        await tools["viewscout_analyze"](observer=OBSERVER, observer_height_m=10.0, **SMALL)

        result = json.loads(await tools["viewscout_profile"](end=[-121.85, 36.5], num_samples=20))

        assert result["start"] == OBSERVER
        assert result["num_points"] == 21
        assert len(result["points"]) == 21
        assert result["observer_height_m"] == 10.0
        assert result["line_of_sight_clear"] is True
        assert result["elevation_loss_m"] > 0
        assert result["elevation_gain_m"] == 0.0

    @pytest.mark.asyncio
    async def test_blocked_by_ridge(self, capture_tools):
        tools, mcp = capture_tools
        ridge = FunctionSampler(lambda lat, lon: 300.0 if 36.52 < lat < 36.53 else 0.0)
        register_analysis_tools(mcp, ViewScoutManager(sampler=ridge))

        text = await tools["viewscout_profile"](
            end=[-121.9, 36.55], start=[-121.9, 36.5], output_mode="text"
        )
        assert "Line of sight (+4.0m): blocked" in text


# ---------------------------------------------------------------------------
# viewscout_overlay
# ---------------------------------------------------------------------------


class TestOverlay:
    @pytest.mark.asyncio
    async def test_requires_analysis(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(await tools["viewscout_overlay"]())
        assert "No analysis available" in result["error"]

    @pytest.mark.asyncio
    async def test_feature_collection(self, analysis_tools):
        tools, _ = analysis_tools
        analysis = json.loads(await tools["viewscout_analyze"](observer=OBSERVER, **SMALL))
        result = json.loads(await tools["viewscout_overlay"]())

        geojson = result["geojson"]
        assert geojson["type"] == "FeatureCollection"
        assert result["request_id"] == analysis["request_id"]
        assert result["feature_count"] == 121
        assert result["visible_count"] == analysis["visible_count"]
        assert geojson["features"][0]["properties"]["kind"] == "observer"
        water_flags = [f for f in geojson["features"] if f["properties"].get("water")]
        assert len(water_flags) == 12

    @pytest.mark.asyncio
    async def test_cleared_analysis_has_no_overlay(self, analysis_tools):
        tools, _ = analysis_tools
        await tools["viewscout_analyze"](observer=OBSERVER, **SMALL)
        await tools["viewscout_clear"]()

        result = json.loads(await tools["viewscout_overlay"]())
        assert "error" in result


# ---------------------------------------------------------------------------
# viewscout_sample_elevations
# ---------------------------------------------------------------------------


class TestSampleElevations:
    @pytest.mark.asyncio
    async def test_points(self, capture_tools):
        tools, mcp = capture_tools
        sampler = FunctionSampler(lambda lat, lon: None if lat > 80 else 12.5)
        register_analysis_tools(mcp, ViewScoutManager(sampler=sampler))

        result = json.loads(
            await tools["viewscout_sample_elevations"](points=[[7.0, 46.0], [0.0, 85.0]])
        )

        assert result["source"] == "cop30"
        assert result["point_count"] == 2
        assert result["points"][0] == {"lon": 7.0, "lat": 46.0, "elevation_m": 12.5}
        assert result["points"][1]["elevation_m"] is None
        assert result["missing_count"] == 1

    @pytest.mark.asyncio
    async def test_text_mode(self, analysis_tools):
        tools, _ = analysis_tools
        text = await tools["viewscout_sample_elevations"](
            points=[[OBSERVER_LON, OBSERVER_LAT]], source="cop90", output_mode="text"
        )
        assert "Source: cop90" in text
        assert "100.0m" in text

    @pytest.mark.asyncio
    async def test_empty(self, analysis_tools):
        tools, _ = analysis_tools
        result = json.loads(await tools["viewscout_sample_elevations"](points=[]))
        assert "At least one point" in result["error"]
