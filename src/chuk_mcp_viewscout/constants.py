"""
Constants for chuk-mcp-viewscout server.

All magic strings, source metadata, and configuration values live here.
"""


class ServerConfig:
    NAME = "chuk-mcp-viewscout"
    VERSION = "0.1.0"
    DESCRIPTION = "ViewScout Line-of-Sight, Water Visibility & View Scoring MCP Server"


class EnvVar:
    DEM_SOURCE = "VIEWSCOUT_DEM_SOURCE"
    INTERPOLATION = "VIEWSCOUT_INTERPOLATION"
    MCP_STDIO = "MCP_STDIO"


class DEMSource:
    COP30 = "cop30"
    COP90 = "cop90"


DEFAULT_SOURCE = DEMSource.COP30

# Terrain sources the sampler can read directly (public COG tiles)
DEM_SOURCES: dict[str, dict] = {
    DEMSource.COP30: {
        "id": DEMSource.COP30,
        "name": "Copernicus GLO-30",
        "resolution_m": 30,
        "coverage": "global",
        "coverage_bounds": [-180, -90, 180, 90],
        "vertical_datum": "EGM2008",
        "tile_size_degrees": 1.0,
        "accuracy_vertical_m": 4.0,
        "access_url": "https://copernicus-dem-30m.s3.amazonaws.com",
        "license": "CC-BY-4.0",
    },
    DEMSource.COP90: {
        "id": DEMSource.COP90,
        "name": "Copernicus GLO-90",
        "resolution_m": 90,
        "coverage": "global",
        "coverage_bounds": [-180, -90, 180, 90],
        "vertical_datum": "EGM2008",
        "tile_size_degrees": 1.0,
        "accuracy_vertical_m": 4.0,
        "access_url": "https://copernicus-dem-90m.s3.amazonaws.com",
        "license": "CC-BY-4.0",
    },
}

ALL_SOURCE_IDS = list(DEM_SOURCES.keys())

# Interpolation methods
INTERPOLATION_METHODS = ["nearest", "bilinear", "cubic"]
DEFAULT_INTERPOLATION = "bilinear"

# Spherical earth model
EARTH_RADIUS_M = 6371000.0

# Viewshed defaults
DEFAULT_RADIUS_M = 10000.0
DEFAULT_NUM_AZIMUTHS = 72  # 5 degree step
DEFAULT_NUM_SAMPLES_PER_RAY = 40  # 250 m step at the default radius
MAX_RADIUS_M = 50000.0  # 50 km max radius
MAX_BATCH_POINTS = 20000

# Observer height presets (metres above ground)
OBSERVER_HEIGHTS: dict[str, float] = {
    "ground": 1.7,
    "1_story": 4.0,
    "2_story": 7.0,
    "3_story": 10.0,
    "4_story": 13.0,
}
DEFAULT_HEIGHT_PRESET = "1_story"
DEFAULT_OBSERVER_HEIGHT_M = OBSERVER_HEIGHTS[DEFAULT_HEIGHT_PRESET]

# Profile defaults
DEFAULT_PROFILE_SAMPLES = 50

# Water detection
WATER_ELEVATION_THRESHOLD_M = 2.0
MIN_WATER_DISTANCE_M = 200.0
DEFAULT_ANGULAR_STEP_DEG = 5.0


class WaterClass:
    PANORAMIC = "Panoramic"
    WIDE = "Wide"
    PARTIAL = "Partial"
    PEEK_A_BOO = "Peek-a-boo"
    NONE = "None"


# (exclusive lower bound on arc degrees, class), checked in order
WATER_CLASS_THRESHOLDS: list[tuple[float, str]] = [
    (90.0, WaterClass.PANORAMIC),
    (45.0, WaterClass.WIDE),
    (15.0, WaterClass.PARTIAL),
    (0.0, WaterClass.PEEK_A_BOO),
]

# ViewScore caps and saturation points
TERRAIN_VISIBILITY_MAX = 30
WATER_BONUS_MAX = 30
ELEVATION_ADVANTAGE_MAX = 20
VIEW_DISTANCE_MAX = 20
SCORE_MAX = 100
WATER_ARC_SATURATION_DEG = 120.0
ELEVATION_ADVANTAGE_SATURATION_M = 100.0

# Rating bands for the total score (inclusive lower bound, rating)
SCORE_RATINGS: list[tuple[int, str]] = [
    (70, "high"),
    (40, "medium"),
    (0, "low"),
]

ANALYSIS_TOOLS = [
    "viewscout_analyze",
    "viewscout_analyze_query",
    "viewscout_set_observer_height",
    "viewscout_clear",
    "viewscout_profile",
    "viewscout_overlay",
    "viewscout_sample_elevations",
]
DISCOVERY_TOOLS = [
    "viewscout_status",
    "viewscout_capabilities",
    "viewscout_list_sources",
    "viewscout_observer_heights",
]

# Cache & retry
TILE_CACHE_MAX_BYTES = 512 * 1024 * 1024  # 512 MB total
TILE_CACHE_MAX_ITEM = 256 * 1024 * 1024  # a 2x2 mosaic of GLO-30 tiles is ~210 MB
RETRY_ATTEMPTS = 3
RETRY_WAIT_MIN = 1
RETRY_WAIT_MAX = 10


class ErrorMessages:
    UNKNOWN_SOURCE = "Unknown DEM source '{}'. Available: {}"
    UNKNOWN_HEIGHT_PRESET = "Unknown observer height preset '{}'. Available: {}"
    INVALID_INTERPOLATION = "Invalid interpolation '{}'. Available: {}"
    INVALID_COORDINATE = "Invalid {}: {} (must be a finite number)"
    LATITUDE_OUT_OF_RANGE = "Latitude must be between -90 and 90, got {}"
    LONGITUDE_OUT_OF_RANGE = "Longitude must be between -180 and 180, got {}"
    INVALID_POINT = "Point must be [lon, lat], got {}"
    INVALID_QUERY = "Could not parse '{}' as 'lat, lon'"
    INVALID_NUM_AZIMUTHS = "num_azimuths must be >= 1, got {}"
    INVALID_NUM_SAMPLES = "num_samples_per_ray must be >= 1, got {}"
    INVALID_PROFILE_SAMPLES = "num_samples must be >= 1, got {}"
    INVALID_RADIUS = "radius_m must be > 0, got {}"
    RADIUS_TOO_LARGE = "radius_m ({:.0f}) exceeds maximum ({:.0f})"
    INVALID_OBSERVER_HEIGHT = "observer_height_m must be >= 0, got {}"
    TOO_MANY_POINTS = "Batch of {} points exceeds limit ({})"
    EMPTY_POINTS = "At least one point is required"
    SAMPLER_LENGTH_MISMATCH = "Terrain sampler returned {} heights for {} points"
    COVERAGE_ERROR = "{} does not cover the requested area ({})"
    TERRAIN_UNAVAILABLE = "Analysis failed, terrain data unavailable: {}"
    NO_ANALYSIS = "No analysis available. Run viewscout_analyze first."
    NO_PROFILE_START = "No start point given and no analysis available to take the observer from"


class SuccessMessages:
    SOURCES_LIST = "{} DEM sources available"
    HEIGHTS_LIST = "{} observer height presets available"
    STATUS = "ViewScout MCP Server v{} ({} sources, default: {})"
    ANALYSIS_COMPLETE = "ViewScore {}/100: {:.1f}% visible within {:.0f}m, water: {}"
    ANALYSIS_SUPERSEDED = "Result superseded by a newer analysis and not retained"
    ANALYSIS_CLEARED = "Analysis cleared"
    NOTHING_TO_CLEAR = "No analysis to clear"
    PROFILE_COMPLETE = "Profile extracted: {} points over {:.1f}m"
    OVERLAY_COMPLETE = "Overlay built: {} samples ({} visible)"
    ELEVATIONS_COMPLETE = "Retrieved elevation for {} points"
