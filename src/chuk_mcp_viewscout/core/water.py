"""
Water visibility — infers visible open water from a viewshed result.

A visible sample that sits near sea level and is not right next to the
observer is taken to be water. Only the first such sample per ray counts.
"""

from dataclasses import dataclass, field

from ..constants import (
    DEFAULT_ANGULAR_STEP_DEG,
    MIN_WATER_DISTANCE_M,
    WATER_CLASS_THRESHOLDS,
    WATER_ELEVATION_THRESHOLD_M,
    WaterClass,
)
from .viewshed import RaySample, ViewshedResult


@dataclass
class WaterSegment:
    """Contiguous arc of bearings with visible water."""

    start_bearing: float
    end_bearing: float


@dataclass
class WaterVisibility:
    """Water visibility summary for one viewshed."""

    ocean_visible: bool
    arc_degrees: float
    segments: list[WaterSegment] = field(default_factory=list)
    classification: str = WaterClass.NONE
    nearest_water_distance: float | None = None
    nearest_water_bearing: float | None = None


def is_water_sample(sample: RaySample) -> bool:
    """Visible, at or below the sea-level threshold, and beyond the near-field floor."""
    return (
        sample.visible
        and sample.elevation <= WATER_ELEVATION_THRESHOLD_M
        and sample.distance >= MIN_WATER_DISTANCE_M
    )


def classify_water_arc(arc_degrees: float) -> str:
    """Map an arc width in degrees to its water classification."""
    for lower_bound, classification in WATER_CLASS_THRESHOLDS:
        if arc_degrees > lower_bound:
            return classification
    return WaterClass.NONE


def merge_water_segments(azimuths: list[float], step: float) -> list[WaterSegment]:
    """Group flagged azimuths into contiguous segments.

    A gap of more than 1.5 steps starts a new segment. Segments touching
    both sides of north are joined into one that wraps through 0/360.
    """
    if not azimuths:
        return []

    ordered = sorted(azimuths)
    segments: list[WaterSegment] = []
    seg_start = ordered[0]
    prev = ordered[0]

    for curr in ordered[1:]:
        if curr - prev > step * 1.5:
            segments.append(WaterSegment(start_bearing=seg_start, end_bearing=prev + step))
            seg_start = curr
        prev = curr
    segments.append(WaterSegment(start_bearing=seg_start, end_bearing=prev + step))

    if len(segments) > 1:
        first = segments[0]
        last = segments[-1]
        if last.end_bearing >= 360.0 and first.start_bearing <= step:
            last.end_bearing = first.end_bearing
            segments.pop(0)

    return segments


def detect_water_visibility(result: ViewshedResult) -> WaterVisibility:
    """Detect visible water bearings in a viewshed result.

    Args:
        result: Completed viewshed analysis

    Returns:
        WaterVisibility with arc width, segments, class, and nearest hit
    """
    water_azimuths: list[float] = []
    nearest_dist: float | None = None
    nearest_bearing: float | None = None

    for ray in result.rays:
        for sample in ray.samples:
            if is_water_sample(sample):
                water_azimuths.append(ray.azimuth)
                if nearest_dist is None or sample.distance < nearest_dist:
                    nearest_dist = sample.distance
                    nearest_bearing = ray.azimuth
                break

    step = 360.0 / len(result.rays) if result.rays else DEFAULT_ANGULAR_STEP_DEG
    arc_degrees = len(water_azimuths) * step

    return WaterVisibility(
        ocean_visible=len(water_azimuths) > 0,
        arc_degrees=arc_degrees,
        segments=merge_water_segments(water_azimuths, step),
        classification=classify_water_arc(arc_degrees),
        nearest_water_distance=nearest_dist,
        nearest_water_bearing=nearest_bearing,
    )
