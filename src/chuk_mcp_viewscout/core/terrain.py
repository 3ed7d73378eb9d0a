"""
Terrain sampling — the batched height oracle the analysis engine consumes.

`TerrainSampler` is the interface; `DEMTerrainSampler` implements it over
Copernicus DEM Cloud-Optimized GeoTIFF tiles. Blocking raster I/O runs in
asyncio.to_thread().
"""

import asyncio
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from ..constants import (
    DEFAULT_INTERPOLATION,
    DEFAULT_SOURCE,
    DEM_SOURCES,
    INTERPOLATION_METHODS,
    TILE_CACHE_MAX_BYTES,
    TILE_CACHE_MAX_ITEM,
    ErrorMessages,
)
from .geodesy import normalize_longitude

logger = logging.getLogger(__name__)


@dataclass
class ElevationSample:
    """Terrain height at one point; height is None outside coverage."""

    lat: float
    lon: float
    height: float | None


class TerrainSampler(Protocol):
    """Interface for batched terrain-height lookups."""

    async def sample_elevations(
        self, points: Sequence[tuple[float, float]]
    ) -> list[ElevationSample]:
        """Return one sample per (lat, lon) point, in input order."""


class DEMTerrainSampler:
    """Terrain sampler backed by 1-degree Copernicus DEM tiles.

    Each call is self-contained: the points of one batch are resolved
    against mosaics of the adjacent tiles they touch. Decoded mosaics are
    kept in a byte-bounded LRU cache keyed by their tile URLs.
    """

    def __init__(
        self,
        source: str = DEFAULT_SOURCE,
        interpolation: str = DEFAULT_INTERPOLATION,
    ) -> None:
        if source not in DEM_SOURCES:
            raise ValueError(
                ErrorMessages.UNKNOWN_SOURCE.format(source, ", ".join(DEM_SOURCES.keys()))
            )
        if interpolation not in INTERPOLATION_METHODS:
            raise ValueError(
                ErrorMessages.INVALID_INTERPOLATION.format(
                    interpolation, ", ".join(INTERPOLATION_METHODS)
                )
            )
        self.source = source
        self.interpolation = interpolation

        # Mosaic LRU cache: key -> (elevation, transform)
        self._tile_cache: dict[tuple[str, ...], tuple[Any, Any]] = {}
        self._tile_cache_sizes: dict[tuple[str, ...], int] = {}
        self._tile_cache_total: int = 0
        # Reads in flight, so concurrent misses on the same tiles share one read
        self._inflight: dict[tuple[str, ...], asyncio.Task] = {}

    @property
    def cache_size_bytes(self) -> int:
        return self._tile_cache_total

    async def sample_elevations(
        self, points: Sequence[tuple[float, float]]
    ) -> list[ElevationSample]:
        """Sample terrain heights for a batch of (lat, lon) points.

        Longitudes are wrapped to [-180, 180). Points are split into groups
        of adjacent tiles and each group is sampled from its own mosaic, so
        tiles from opposite sides of the antimeridian are never merged.
        """
        from . import raster_io

        if not points:
            return []

        wrapped = [(lat, normalize_longitude(lon)) for lat, lon in points]
        groups = self._tile_groups(wrapped)
        if not groups:
            raise ValueError(
                ErrorMessages.COVERAGE_ERROR.format(
                    DEM_SOURCES[self.source]["name"], f"{len(points)} points"
                )
            )

        heights = [math.nan] * len(wrapped)
        for urls, indices in groups:
            elevation, transform = await self._load_mosaic(tuple(urls))
            group_heights = await asyncio.to_thread(
                raster_io.sample_elevations,
                elevation,
                transform,
                [wrapped[i] for i in indices],
                self.interpolation,
            )
            for i, h in zip(indices, group_heights):
                heights[i] = h

        return [
            ElevationSample(lat=lat, lon=lon, height=None if math.isnan(h) else h)
            for (lat, lon), h in zip(wrapped, heights)
        ]

    async def _load_mosaic(self, key: tuple[str, ...]) -> tuple[Any, Any]:
        """Get a mosaic from the cache, joining a read already in flight for the same tiles."""
        cached = self._get_cached_mosaic(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._read_and_cache(key))
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _read_and_cache(self, key: tuple[str, ...]) -> tuple[Any, Any]:
        from . import raster_io

        try:
            elevation, transform = await asyncio.to_thread(raster_io.read_tile_mosaic, list(key))
            self._cache_mosaic(key, elevation, transform)
            return elevation, transform
        finally:
            self._inflight.pop(key, None)

    # ------------------------------------------------------------------
    # Tile addressing
    # ------------------------------------------------------------------

    def _tile_groups(
        self, points: Sequence[tuple[float, float]]
    ) -> list[tuple[list[str], list[int]]]:
        """Split points into groups of adjacent tiles.

        Tiles touching along an edge or corner share a group; adjacency does
        not wrap across the antimeridian. Returns (sorted tile URLs, point
        indices) per group, ordered by first point. Points with no tile are
        left out.
        """
        corner_points: dict[tuple[int, int], list[int]] = {}
        for i, (lat, lon) in enumerate(points):
            corner = (math.floor(lat), math.floor(lon))
            if self._make_tile_url(*corner) is not None:
                corner_points.setdefault(corner, []).append(i)

        groups: list[tuple[list[str], list[int]]] = []
        unvisited = set(corner_points)
        while unvisited:
            stack = [unvisited.pop()]
            component = []
            while stack:
                lat, lon = stack.pop()
                component.append((lat, lon))
                for dlat in (-1, 0, 1):
                    for dlon in (-1, 0, 1):
                        neighbour = (lat + dlat, lon + dlon)
                        if neighbour in unvisited:
                            unvisited.remove(neighbour)
                            stack.append(neighbour)

            component.sort()
            urls = [self._make_tile_url(lat, lon) for lat, lon in component]
            indices = sorted(i for corner in component for i in corner_points[corner])
            groups.append((urls, indices))

        groups.sort(key=lambda g: g[1][0])
        return groups

    def _make_tile_url(self, lat: int, lon: int) -> str | None:
        """Construct the URL for the tile whose south-west corner is (lat, lon)."""
        if not -90 <= lat < 90:
            return None
        lon = ((lon + 180) % 360) - 180

        ns = "N" if lat >= 0 else "S"
        ew = "E" if lon >= 0 else "W"
        abs_lat = abs(lat)
        abs_lon = abs(lon)

        if self.source == "cop30":
            tile_name = f"Copernicus_DSM_COG_10_{ns}{abs_lat:02d}_00_{ew}{abs_lon:03d}_00_DEM"
            return f"https://copernicus-dem-30m.s3.amazonaws.com/{tile_name}/{tile_name}.tif"
        elif self.source == "cop90":
            tile_name = f"Copernicus_DSM_COG_30_{ns}{abs_lat:02d}_00_{ew}{abs_lon:03d}_00_DEM"
            return f"https://copernicus-dem-90m.s3.amazonaws.com/{tile_name}/{tile_name}.tif"
        return None

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def _cache_mosaic(self, key: tuple[str, ...], elevation: Any, transform: Any) -> None:
        """Cache a decoded mosaic with LRU eviction."""
        size = int(elevation.nbytes)
        if size > TILE_CACHE_MAX_ITEM:
            logger.warning(f"Mosaic of {len(key)} tiles ({size} bytes) too large to cache")
            return

        if key in self._tile_cache:
            del self._tile_cache[key]
            self._tile_cache_total -= self._tile_cache_sizes.pop(key)

        while self._tile_cache_total + size > TILE_CACHE_MAX_BYTES and self._tile_cache:
            oldest_key = next(iter(self._tile_cache))
            evicted_size = self._tile_cache_sizes.pop(oldest_key, 0)
            del self._tile_cache[oldest_key]
            self._tile_cache_total -= evicted_size

        self._tile_cache[key] = (elevation, transform)
        self._tile_cache_sizes[key] = size
        self._tile_cache_total += size

    def _get_cached_mosaic(self, key: tuple[str, ...]) -> tuple[Any, Any] | None:
        """Get a cached mosaic, moving it to the end of the LRU."""
        if key not in self._tile_cache:
            return None
        entry = self._tile_cache.pop(key)
        size = self._tile_cache_sizes.pop(key)
        self._tile_cache[key] = entry
        self._tile_cache_sizes[key] = size
        return entry
