"""
ViewScore — composite 0-100 rating of a viewpoint.

    terrain_visibility  = visible_fraction * 30
    water_bonus         = min(arc_degrees / 120, 1) * 30
    elevation_advantage = min(max(relative_height, 0) / 100, 1) * 20
    view_distance       = min(max_visible_distance / radius, 1) * 20

Each term is rounded half-up and clamped to its cap; the total is clamped
to 100.
"""

import math
from dataclasses import dataclass

from ..constants import (
    DEFAULT_RADIUS_M,
    ELEVATION_ADVANTAGE_MAX,
    ELEVATION_ADVANTAGE_SATURATION_M,
    SCORE_MAX,
    SCORE_RATINGS,
    TERRAIN_VISIBILITY_MAX,
    VIEW_DISTANCE_MAX,
    WATER_ARC_SATURATION_DEG,
    WATER_BONUS_MAX,
)
from .viewshed import ViewshedResult
from .water import WaterVisibility


@dataclass
class ScoreBreakdown:
    terrain_visibility: int
    water_bonus: int
    elevation_advantage: int
    view_distance: int

    def as_dict(self) -> dict[str, int]:
        return {
            "terrain_visibility": self.terrain_visibility,
            "water_bonus": self.water_bonus,
            "elevation_advantage": self.elevation_advantage,
            "view_distance": self.view_distance,
        }


@dataclass
class ViewScore:
    total: int
    breakdown: ScoreBreakdown

    @property
    def rating(self) -> str:
        for lower_bound, rating in SCORE_RATINGS:
            if self.total >= lower_bound:
                return rating
        return SCORE_RATINGS[-1][1]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _capped(value: float, cap: int) -> int:
    return min(cap, max(0, _round_half_up(value)))


def mean_sample_elevation(result: ViewshedResult) -> float:
    """Mean terrain elevation over every sample of every ray (0 when empty)."""
    total = 0.0
    count = 0
    for ray in result.rays:
        for sample in ray.samples:
            total += sample.elevation
            count += 1
    return total / count if count > 0 else 0.0


def max_visible_distance(result: ViewshedResult) -> float:
    """Farthest distance among visible samples across all rays."""
    farthest = 0.0
    for ray in result.rays:
        for sample in ray.samples:
            if sample.visible and sample.distance > farthest:
                farthest = sample.distance
    return farthest


def effective_radius(result: ViewshedResult) -> float:
    """Actual ray length: the first ray's last sample distance."""
    if result.rays and result.rays[0].samples:
        radius = result.rays[0].samples[-1].distance
        if radius > 0:
            return radius
    return DEFAULT_RADIUS_M


def compute_view_score(result: ViewshedResult, water: WaterVisibility) -> ViewScore:
    """Score a viewpoint from its viewshed and water visibility."""
    terrain_visibility = _capped(
        result.visible_fraction * TERRAIN_VISIBILITY_MAX, TERRAIN_VISIBILITY_MAX
    )

    water_bonus = _capped(
        min(water.arc_degrees / WATER_ARC_SATURATION_DEG, 1.0) * WATER_BONUS_MAX,
        WATER_BONUS_MAX,
    )

    relative_height = result.observer_elevation - mean_sample_elevation(result)
    elevation_advantage = _capped(
        min(max(relative_height, 0.0) / ELEVATION_ADVANTAGE_SATURATION_M, 1.0)
        * ELEVATION_ADVANTAGE_MAX,
        ELEVATION_ADVANTAGE_MAX,
    )

    view_distance = _capped(
        min(max_visible_distance(result) / effective_radius(result), 1.0) * VIEW_DISTANCE_MAX,
        VIEW_DISTANCE_MAX,
    )

    breakdown = ScoreBreakdown(
        terrain_visibility=terrain_visibility,
        water_bonus=water_bonus,
        elevation_advantage=elevation_advantage,
        view_distance=view_distance,
    )
    total = min(SCORE_MAX, sum(breakdown.as_dict().values()))

    return ViewScore(total=total, breakdown=breakdown)
