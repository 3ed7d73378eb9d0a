"""
Spherical-earth geodesy helpers.

The earth is modelled as a sphere of radius EARTH_RADIUS_M. This is a
first-order approximation that is adequate for the tens-of-kilometre
distances used by viewshed analysis.
"""

import math
import re

from ..constants import EARTH_RADIUS_M, ErrorMessages

_LAT_LON_RE = re.compile(r"^(-?\d+\.?\d*)\s*,\s*(-?\d+\.?\d*)$")


def destination_point(
    lat: float,
    lon: float,
    bearing_deg: float,
    distance_m: float,
) -> tuple[float, float]:
    """Return the point reached from (lat, lon) along a bearing.

    Args:
        lat: Start latitude in degrees
        lon: Start longitude in degrees
        bearing_deg: Compass bearing in degrees clockwise from true north
        distance_m: Distance to travel in metres

    Returns:
        Tuple of (lat, lon) in degrees
    """
    phi1 = math.radians(lat)
    lam1 = math.radians(lon)
    theta = math.radians(bearing_deg)
    delta = distance_m / EARTH_RADIUS_M

    phi2 = math.asin(
        math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    )
    lam2 = lam1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )

    return math.degrees(phi2), math.degrees(lam2)


def distance_between(lat_a: float, lon_a: float, lat_b: float, lon_b: float) -> float:
    """Straight-line (chord) distance in metres between two points on the sphere."""
    phi1 = math.radians(lat_a)
    phi2 = math.radians(lat_b)
    dphi = phi2 - phi1
    dlam = math.radians(lon_b - lon_a)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    # chord = 2R * sin(c / 2), and sin(c / 2) = sqrt(a)
    return 2.0 * EARTH_RADIUS_M * math.sqrt(min(1.0, max(0.0, a)))


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return ((lon + 180.0) % 360.0) - 180.0


def validate_lat_lon(lat: float, lon: float) -> None:
    """Raise ValueError unless lat/lon are finite and inside the valid ranges."""
    for name, value in (("latitude", lat), ("longitude", lon)):
        if not math.isfinite(float(value)):
            raise ValueError(ErrorMessages.INVALID_COORDINATE.format(name, value))
    if not -90.0 <= lat <= 90.0:
        raise ValueError(ErrorMessages.LATITUDE_OUT_OF_RANGE.format(lat))
    if not -180.0 <= lon <= 180.0:
        raise ValueError(ErrorMessages.LONGITUDE_OUT_OF_RANGE.format(lon))


def parse_lat_lon(text: str) -> tuple[float, float]:
    """Parse a "lat, lon" query string.

    Args:
        text: Query such as "44.3525, -68.2265"

    Returns:
        Tuple of (lat, lon) in degrees
    """
    match = _LAT_LON_RE.match(text.strip())
    if not match:
        raise ValueError(ErrorMessages.INVALID_QUERY.format(text))

    lat = float(match.group(1))
    lon = float(match.group(2))
    validate_lat_lon(lat, lon)
    return lat, lon
