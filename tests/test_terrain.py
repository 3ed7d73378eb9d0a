"""Tests for chuk_mcp_viewscout.core.terrain -- DEM-backed terrain sampler."""

import asyncio
from unittest.mock import patch

import numpy as np
import pytest

from chuk_mcp_viewscout.constants import TILE_CACHE_MAX_BYTES, TILE_CACHE_MAX_ITEM
from chuk_mcp_viewscout.core.geodesy import destination_point
from chuk_mcp_viewscout.core.terrain import DEMTerrainSampler, ElevationSample


class TestDEMTerrainSamplerInit:
    """Constructor validation."""

    def test_defaults(self):
        sampler = DEMTerrainSampler()
        assert sampler.source == "cop30"
        assert sampler.interpolation == "bilinear"
        assert sampler.cache_size_bytes == 0

    def test_unknown_source(self):
        with pytest.raises(ValueError, match="Unknown DEM source"):
            DEMTerrainSampler(source="srtm")

    def test_unknown_interpolation(self):
        with pytest.raises(ValueError, match="Invalid interpolation"):
            DEMTerrainSampler(interpolation="lanczos")


class TestTileUrls:
    """Tile addressing for Copernicus COGs."""

    def test_cop30_url(self):
        url = DEMTerrainSampler("cop30")._make_tile_url(46, 7)
        assert url == (
            "https://copernicus-dem-30m.s3.amazonaws.com/"
            "Copernicus_DSM_COG_10_N46_00_E007_00_DEM/"
            "Copernicus_DSM_COG_10_N46_00_E007_00_DEM.tif"
        )

    def test_cop90_southwest(self):
        url = DEMTerrainSampler("cop90")._make_tile_url(-34, -122)
        assert "copernicus-dem-90m" in url
        assert "Copernicus_DSM_COG_30_S34_00_W122_00_DEM" in url

    def test_longitude_wraps(self):
        assert "W180" in DEMTerrainSampler()._make_tile_url(0, 180)

    def test_pole_has_no_tile(self):
        assert DEMTerrainSampler()._make_tile_url(90, 0) is None

    def test_adjacent_tiles_form_one_group(self):
        sampler = DEMTerrainSampler()
        points = [(46.9, 7.9), (46.1, 7.2), (47.1, 7.5), (46.5, 8.1)]
        groups = sampler._tile_groups(points)

        assert len(groups) == 1
        urls, indices = groups[0]
        assert indices == [0, 1, 2, 3]
        assert urls == sorted(urls)
        assert len(urls) == 3
        assert any("N46_00_E007" in u for u in urls)
        assert any("N47_00_E007" in u for u in urls)
        assert any("N46_00_E008" in u for u in urls)


class TestSampleElevations:
    """Tests for DEMTerrainSampler.sample_elevations() with mocked raster I/O."""

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        sampler = DEMTerrainSampler()
        with patch("chuk_mcp_viewscout.core.raster_io.read_tile_mosaic") as mock_read:
            assert await sampler.sample_elevations([]) == []
        mock_read.assert_not_called()

    @pytest.mark.asyncio
    async def test_samples_in_order(self, sample_elevation, sample_transform):
        sampler = DEMTerrainSampler(interpolation="nearest")
        points = [(46.5, 7.5), (46.25, 7.75)]

        with patch(
            "chuk_mcp_viewscout.core.raster_io.read_tile_mosaic",
            return_value=(sample_elevation, sample_transform),
        ):
            samples = await sampler.sample_elevations(points)

        assert [(s.lat, s.lon) for s in samples] == points
        assert samples[0].height == pytest.approx(float(sample_elevation[50, 50]))
        assert samples[1].height == pytest.approx(float(sample_elevation[75, 75]))

    @pytest.mark.asyncio
    async def test_nan_becomes_none(self, sample_elevation, sample_transform):
        voided = sample_elevation.copy()
        voided[50, 50] = np.nan
        sampler = DEMTerrainSampler(interpolation="nearest")

        with patch(
            "chuk_mcp_viewscout.core.raster_io.read_tile_mosaic",
            return_value=(voided, sample_transform),
        ):
            samples = await sampler.sample_elevations([(46.5, 7.5)])

        assert samples == [ElevationSample(lat=46.5, lon=7.5, height=None)]

    @pytest.mark.asyncio
    async def test_mosaic_cached_between_batches(self, sample_elevation, sample_transform):
        sampler = DEMTerrainSampler()

        with patch(
            "chuk_mcp_viewscout.core.raster_io.read_tile_mosaic",
            return_value=(sample_elevation, sample_transform),
        ) as mock_read:
            await sampler.sample_elevations([(46.5, 7.5)])
            await sampler.sample_elevations([(46.2, 7.3)])

        mock_read.assert_called_once()
        assert sampler.cache_size_bytes == sample_elevation.nbytes

    @pytest.mark.asyncio
    async def test_read_failure_propagates(self):
        sampler = DEMTerrainSampler()
        with patch(
            "chuk_mcp_viewscout.core.raster_io.read_tile_mosaic",
            side_effect=ConnectionError("down"),
        ):
            with pytest.raises(ConnectionError):
                await sampler.sample_elevations([(46.5, 7.5)])
        assert sampler.cache_size_bytes == 0

    @pytest.mark.asyncio
    async def test_no_tiles_raises_coverage_error(self):
        sampler = DEMTerrainSampler()
        with pytest.raises(ValueError, match="does not cover"):
            await sampler.sample_elevations([(90.0, 0.0)])


class TestMosaicCache:
    """LRU byte accounting."""

    def test_lru_eviction(self):
        sampler = DEMTerrainSampler()
        big = np.zeros(TILE_CACHE_MAX_ITEM // 4, dtype=np.float32)  # exactly the item limit

        per_cache = TILE_CACHE_MAX_BYTES // big.nbytes
        for i in range(per_cache + 1):
            sampler._cache_mosaic((f"tile{i}",), big, None)

        assert sampler.cache_size_bytes <= TILE_CACHE_MAX_BYTES
        assert sampler._get_cached_mosaic(("tile0",)) is None
        assert sampler._get_cached_mosaic((f"tile{per_cache}",)) is not None

    def test_get_refreshes_recency(self):
        sampler = DEMTerrainSampler()
        big = np.zeros(TILE_CACHE_MAX_ITEM // 4, dtype=np.float32)

        sampler._cache_mosaic(("a",), big, None)
        sampler._cache_mosaic(("b",), big, None)
        sampler._get_cached_mosaic(("a",))
        sampler._cache_mosaic(("c",), big, None)

        assert sampler._get_cached_mosaic(("a",)) is not None
        assert sampler._get_cached_mosaic(("b",)) is None

    def test_oversized_item_not_cached(self):
        sampler = DEMTerrainSampler()

        class Huge:
            nbytes = TILE_CACHE_MAX_ITEM + 1

        sampler._cache_mosaic(("huge",), Huge(), None)
        assert sampler.cache_size_bytes == 0

    def test_same_key_cached_twice_counts_once(self):
        sampler = DEMTerrainSampler()
        data = np.zeros(1000, dtype=np.float32)

        sampler._cache_mosaic(("a",), data, None)
        sampler._cache_mosaic(("a",), data, None)

        assert sampler.cache_size_bytes == data.nbytes
        assert len(sampler._tile_cache) == 1


class TestTileGroups:
    """Points are split into mosaics of adjacent tiles."""

    def test_distant_points_get_separate_mosaics(self):
        sampler = DEMTerrainSampler()
        groups = sampler._tile_groups([(46.5, 7.5), (36.5, -121.9), (46.2, 7.1)])

        assert [indices for _, indices in groups] == [[0, 2], [1]]
        assert len(groups[0][0]) == 1

    def test_antimeridian_is_not_bridged(self):
        sampler = DEMTerrainSampler()
        groups = sampler._tile_groups([(-16.5, 179.5), (-16.5, -179.5)])

        assert len(groups) == 2
        assert "E179" in groups[0][0][0]
        assert "W180" in groups[1][0][0]

    def test_points_without_tiles_are_dropped(self):
        sampler = DEMTerrainSampler()
        groups = sampler._tile_groups([(90.0, 0.0), (46.5, 7.5)])
        assert [indices for _, indices in groups] == [[1]]


def _flat_tile(lat0, lon0, height):
    """1-degree tile with its south-west corner at (lat0, lon0)."""
    from rasterio.transform import Affine

    elevation = np.full((100, 100), height, dtype=np.float32)
    return elevation, Affine(0.01, 0.0, float(lon0), 0.0, -0.01, float(lat0 + 1))


class TestAntimeridian:
    """Longitudes past 180 are wrapped before tiles are chosen and sampled."""

    @pytest.mark.asyncio
    async def test_ray_past_180_samples_western_tile(self):
        lat, lon = destination_point(-16.5, 179.99, 90.0, 5000.0)
        assert lon > 180.0

        sampler = DEMTerrainSampler(interpolation="nearest")
        with patch(
            "chuk_mcp_viewscout.core.raster_io.read_tile_mosaic",
            return_value=_flat_tile(-17, -180, 500.0),
        ) as mock_read:
            samples = await sampler.sample_elevations([(lat, lon)])

        (urls,) = mock_read.call_args.args
        assert len(urls) == 1 and "S17_00_W180_00" in urls[0]
        assert samples[0].height == pytest.approx(500.0)
        assert samples[0].lon == pytest.approx(lon - 360.0)

    @pytest.mark.asyncio
    async def test_batch_across_antimeridian_reads_each_side(self):
        tiles = {"E179": _flat_tile(-17, 179, 500.0), "W180": _flat_tile(-17, -180, 700.0)}

        def read(urls):
            assert len(urls) == 1
            return next(tile for name, tile in tiles.items() if name in urls[0])

        sampler = DEMTerrainSampler(interpolation="nearest")
        with patch(
            "chuk_mcp_viewscout.core.raster_io.read_tile_mosaic", side_effect=read
        ) as mock_read:
            samples = await sampler.sample_elevations([(-16.5, 179.5), (-16.5, 180.5)])

        assert mock_read.call_count == 2
        assert [s.height for s in samples] == [pytest.approx(500.0), pytest.approx(700.0)]
        assert [s.lon for s in samples] == [179.5, -179.5]


class TestConcurrentBatches:
    """Concurrent misses on the same tiles share a single read."""

    @pytest.mark.asyncio
    async def test_gather_identical_batches(self, sample_elevation, sample_transform):
        sampler = DEMTerrainSampler()

        with patch(
            "chuk_mcp_viewscout.core.raster_io.read_tile_mosaic",
            return_value=(sample_elevation, sample_transform),
        ) as mock_read:
            first, second = await asyncio.gather(
                sampler.sample_elevations([(46.5, 7.5)]),
                sampler.sample_elevations([(46.5, 7.5)]),
            )

        mock_read.assert_called_once()
        assert first == second
        assert sampler.cache_size_bytes == sample_elevation.nbytes
        assert sampler._inflight == {}

    @pytest.mark.asyncio
    async def test_failed_read_is_not_left_in_flight(self):
        sampler = DEMTerrainSampler()

        with patch(
            "chuk_mcp_viewscout.core.raster_io.read_tile_mosaic",
            side_effect=ConnectionError("down"),
        ):
            results = await asyncio.gather(
                sampler.sample_elevations([(46.5, 7.5)]),
                sampler.sample_elevations([(46.5, 7.5)]),
                return_exceptions=True,
            )

        assert all(isinstance(r, ConnectionError) for r in results)
        assert sampler._inflight == {}
        assert sampler.cache_size_bytes == 0
