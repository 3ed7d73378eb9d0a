"""Shared test fixtures for chuk-mcp-viewscout."""

import numpy as np
import pytest
from unittest.mock import MagicMock

from chuk_mcp_viewscout.core.geodesy import distance_between
from chuk_mcp_viewscout.core.terrain import ElevationSample


class FunctionSampler:
    """Terrain sampler driven by a height function of (lat, lon).

    Records every batch it is asked for so tests can assert on call counts
    and batch sizes.
    """

    def __init__(self, height_fn):
        self.height_fn = height_fn
        self.calls: list[list[tuple[float, float]]] = []

    async def sample_elevations(self, points):
        points = list(points)
        self.calls.append(points)
        return [
            ElevationSample(lat=lat, lon=lon, height=self.height_fn(lat, lon))
            for lat, lon in points
        ]


class FailingSampler:
    """Terrain sampler whose every call fails like a dead network."""

    def __init__(self, exc: Exception | None = None):
        self.exc = exc or ConnectionError("terrain service unreachable")
        self.calls = 0

    async def sample_elevations(self, points):
        self.calls += 1
        raise self.exc


OBSERVER_LAT = 36.5
OBSERVER_LON = -121.9


def radial(fn, lat0: float = OBSERVER_LAT, lon0: float = OBSERVER_LON):
    """Wrap fn(distance_from_observer) as a height function of (lat, lon)."""

    def height(lat, lon):
        return fn(distance_between(lat0, lon0, lat, lon))

    return height


@pytest.fixture
def flat_sampler():
    """Flat terrain at sea level."""
    return FunctionSampler(lambda lat, lon: 0.0)


@pytest.fixture
def coastal_sampler():
    """Slope falling from 100 m at the observer to the sea at 5 km."""
    return FunctionSampler(radial(lambda d: max(0.0, 100.0 * (1.0 - d / 5000.0))))


@pytest.fixture
def sample_elevation():
    """100x100 elevation array with values 100-500m."""
    np.random.seed(42)
    return np.random.uniform(100, 500, (100, 100)).astype(np.float32)


@pytest.fixture
def sample_transform():
    """Affine transform for a 1-degree tile at N46 E007."""
    from rasterio.transform import Affine

    return Affine(0.01, 0.0, 7.0, 0.0, -0.01, 47.0)


@pytest.fixture
def manager(flat_sampler):
    """ViewScoutManager over flat synthetic terrain."""
    from chuk_mcp_viewscout.core.viewscout_manager import ViewScoutManager

    return ViewScoutManager(sampler=flat_sampler)


@pytest.fixture
def mock_mcp():
    """Mock ChukMCPServer."""
    mcp = MagicMock()
    mcp.tool = MagicMock(return_value=lambda fn: fn)
    return mcp


@pytest.fixture
def capture_tools():
    """Return a (tools_dict, mcp) pair whose mcp.tool records each registered tool."""
    tools = {}
    mcp = MagicMock()

    def capture_tool(**kwargs):
        def decorator(fn):
            tools[fn.__name__] = fn
            return fn

        return decorator

    mcp.tool = capture_tool
    return tools, mcp
