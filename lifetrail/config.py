"""Tunable parameter groups.

Every threshold the processing passes rely on lives here as a frozen dataclass
so callers (and the CLI) can override a single value without touching module
constants. Defaults come from :mod:`lifetrail.constants`.
"""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class SanitizeConfig:
    overlap_threshold: float = constants.OVERLAP_THRESHOLD


@dataclass(frozen=True)
class SmoothingConfig:
    min_steps: int = constants.SPLINE_MIN_STEPS
    max_steps: int = constants.SPLINE_MAX_STEPS
    step_km: float = constants.SPLINE_STEP_KM
    linear_threshold_km: float = constants.LINEAR_THRESHOLD_KM
    linear_step_km: float = constants.LINEAR_STEP_KM
    linear_min_points: int = constants.LINEAR_MIN_POINTS
    linear_max_points: int = constants.LINEAR_MAX_POINTS

    def __post_init__(self) -> None:
        if self.min_steps < 1 or self.max_steps < self.min_steps:
            raise ValueError(f"Invalid spline step bounds {self.min_steps}..{self.max_steps}.")
        if self.linear_min_points < 2 or self.linear_max_points < self.linear_min_points:
            raise ValueError(
                f"Invalid linear point bounds {self.linear_min_points}..{self.linear_max_points}."
            )


@dataclass(frozen=True)
class TimelineConfig:
    budget: float = constants.VIRTUAL_TIME_BUDGET
    min_trip_window: float = constants.MIN_TRIP_WINDOW


@dataclass(frozen=True)
class GridConfig:
    cell_size: float = constants.DEFAULT_CELL_SIZE

    def __post_init__(self) -> None:
        if self.cell_size <= 0:
            raise ValueError(f"Cell size must be positive, got {self.cell_size}.")


@dataclass(frozen=True)
class ArcConfig:
    max_gap_seconds: float = constants.ARC_MAX_GAP_SECONDS
    min_degrees: float = constants.ARC_MIN_DEGREES
    key_precision: int = constants.ARC_KEY_PRECISION


@dataclass(frozen=True)
class StatsConfig:
    max_gap_seconds: float = constants.STATS_MAX_GAP_SECONDS
    max_hop_km: float = constants.STATS_MAX_HOP_KM


@dataclass(frozen=True)
class ProcessingConfig:
    sanitize: SanitizeConfig = SanitizeConfig()
    smoothing: SmoothingConfig = SmoothingConfig()
    timeline: TimelineConfig = TimelineConfig()
    grid: GridConfig = GridConfig()
    arcs: ArcConfig = ArcConfig()
    stats: StatsConfig = StatsConfig()
