"""
Raster I/O operations for terrain sampling.

All functions are synchronous — callers wrap them in asyncio.to_thread().
Handles COG tile reading, tile mosaicking, and point sampling with
nearest / bilinear / cubic interpolation.
"""

import logging
import math
from typing import Any

import numpy as np
from numpy.typing import NDArray
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import RETRY_ATTEMPTS, RETRY_WAIT_MAX, RETRY_WAIT_MIN

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.floating[Any]]
Transform = Any  # rasterio.Affine


# ---------------------------------------------------------------------------
# Retry decorator for network I/O
# ---------------------------------------------------------------------------

_retry_network = retry(
    stop=stop_after_attempt(RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
    retry=retry_if_exception_type((ConnectionError, TimeoutError, OSError)),
    reraise=True,
)


# ---------------------------------------------------------------------------
# Tile reading
# ---------------------------------------------------------------------------


def _read_tile(url: str) -> tuple[FloatArray, Transform]:
    """Read band 1 of a COG, nodata replaced with NaN."""
    import rasterio

    with rasterio.open(url) as src:
        data = src.read(1).astype(np.float32)
        transform = src.transform
        nodata = src.nodata

    if nodata is not None:
        data[data == nodata] = np.nan

    return data, transform


@_retry_network
def read_tile_mosaic(urls: list[str]) -> tuple[FloatArray, Transform]:
    """
    Read and mosaic the tiles covering a batch of sample points.

    Args:
        urls: COG URLs to read, in any order

    Returns:
        Tuple of (merged_elevation, transform)
    """
    import rasterio
    from rasterio.merge import merge

    if len(urls) == 1:
        return _read_tile(urls[0])

    datasets = []
    try:
        for url in urls:
            datasets.append(rasterio.open(url))

        merged, merged_transform = merge(datasets)
        elevation = merged[0].astype(np.float32)

        nodata = datasets[0].nodata
        if nodata is not None:
            elevation[elevation == nodata] = np.nan

    finally:
        for ds in datasets:
            ds.close()

    logger.info(f"Mosaicked {len(urls)} tiles into {elevation.shape[0]}x{elevation.shape[1]}")
    return elevation, merged_transform


# ---------------------------------------------------------------------------
# Point sampling
# ---------------------------------------------------------------------------


def sample_elevation(
    elevation: FloatArray,
    transform: Transform,
    lat: float,
    lon: float,
    interpolation: str = "bilinear",
) -> float:
    """
    Sample terrain height at a single point.

    Args:
        elevation: 2D elevation array
        transform: Affine transform of the array (EPSG:4326)
        lat: Latitude in degrees
        lon: Longitude in degrees
        interpolation: nearest, bilinear, or cubic

    Returns:
        Height in metres, NaN when the point falls outside the array or on a void
    """
    col_f, row_f = ~transform * (lon, lat)

    if interpolation == "nearest":
        row, col = int(round(row_f)), int(round(col_f))
        if 0 <= row < elevation.shape[0] and 0 <= col < elevation.shape[1]:
            return float(elevation[row, col])
        return float("nan")

    elif interpolation == "bilinear":
        return _bilinear_sample(elevation, row_f, col_f)

    elif interpolation == "cubic":
        return _cubic_sample(elevation, row_f, col_f)

    else:
        raise ValueError(f"Unknown interpolation: {interpolation}")


def sample_elevations(
    elevation: FloatArray,
    transform: Transform,
    points: list[tuple[float, float]],
    interpolation: str = "bilinear",
) -> list[float]:
    """Sample terrain height at many (lat, lon) points, preserving order."""
    return [
        sample_elevation(elevation, transform, lat, lon, interpolation) for lat, lon in points
    ]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _bilinear_sample(array: FloatArray, row_f: float, col_f: float) -> float:
    """Bilinear interpolation at fractional pixel coordinates."""
    r0, c0 = int(math.floor(row_f)), int(math.floor(col_f))
    h, w = array.shape

    if r0 < 0 or c0 < 0 or r0 >= h or c0 >= w:
        return float("nan")

    # Clamp the far neighbour so points on the last row/column still sample
    r1 = min(r0 + 1, h - 1)
    c1 = min(c0 + 1, w - 1)

    dr = row_f - r0
    dc = col_f - c0

    v00 = array[r0, c0]
    v01 = array[r0, c1]
    v10 = array[r1, c0]
    v11 = array[r1, c1]

    if any(np.isnan(v) for v in [v00, v01, v10, v11]):
        return float("nan")

    val = v00 * (1 - dr) * (1 - dc) + v01 * (1 - dr) * dc + v10 * dr * (1 - dc) + v11 * dr * dc
    return float(val)


def _cubic_sample(array: FloatArray, row_f: float, col_f: float) -> float:
    """Bicubic interpolation at fractional pixel coordinates."""
    from scipy.interpolate import RectBivariateSpline

    r0 = int(math.floor(row_f))
    c0 = int(math.floor(col_f))
    h, w = array.shape

    r_start = max(0, r0 - 1)
    r_end = min(h, r0 + 3)
    c_start = max(0, c0 - 1)
    c_end = min(w, c0 + 3)

    if r_end - r_start < 4 or c_end - c_start < 4:
        return _bilinear_sample(array, row_f, col_f)

    patch = array[r_start:r_end, c_start:c_end]
    if np.any(np.isnan(patch)):
        return _bilinear_sample(array, row_f, col_f)

    rows = np.arange(r_start, r_end, dtype=float)
    cols = np.arange(c_start, c_end, dtype=float)

    spline = RectBivariateSpline(rows, cols, patch, kx=3, ky=3)
    return float(spline(row_f, col_f)[0, 0])
