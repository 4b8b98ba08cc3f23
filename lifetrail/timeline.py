"""Virtual timestamps for trail playback.

Two policies are offered. Wall-clock encoding keeps each trip at its real
position within the filtered time span, squeezed into a fixed virtual budget.
Distance encoding (used for a merged day path) spaces timestamps by distance
travelled so every leg of the day moves at the same apparent speed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import SmoothingConfig, TimelineConfig
from .geo import cumulative_distances_km
from .models import SmoothedPath, Trip
from .smoothing import merge_and_smooth, smooth

LonLat = Tuple[float, float]


def trip_time_bounds(trips: Sequence[Trip]) -> Tuple[float, float]:
    timestamps = [point.timestamp for trip in trips for point in trip.path]
    if not timestamps:
        return 0.0, 0.0
    return min(timestamps), max(timestamps)


def encode_wall_clock(
    trips: Sequence[Trip],
    config: Optional[TimelineConfig] = None,
    smoothing: Optional[SmoothingConfig] = None,
) -> List[SmoothedPath]:
    config = config or TimelineConfig()
    valid = [trip for trip in trips if trip.path]
    if not valid:
        return []

    global_min, global_max = trip_time_bounds(valid)
    span = (global_max - global_min) or 1.0

    paths: List[SmoothedPath] = []
    for trip in valid:
        average = sum(point.timestamp for point in trip.path) / len(trip.path)
        points = smooth(trip.coordinates, smoothing)

        start_progress = (trip.start - global_min) / span
        end_progress = (trip.end - global_min) / span
        window = max((end_progress - start_progress) * config.budget, config.min_trip_window)
        offset = start_progress * config.budget

        segments = len(points) - 1
        if segments == 0:
            timestamps = [offset]
        else:
            timestamps = (offset + np.arange(len(points)) / segments * window).tolist()

        paths.append(
            SmoothedPath(
                points=points,
                virtual_timestamps=timestamps,
                activity_type=trip.activity_type,
                time_progress=(average - global_min) / span,
            )
        )
    return paths


def encode_by_distance(
    points: Sequence[LonLat],
    config: Optional[TimelineConfig] = None,
) -> SmoothedPath:
    config = config or TimelineConfig()
    if len(points) < 2:
        return SmoothedPath(points=list(points), virtual_timestamps=[0.0] * len(points))

    cumulative = cumulative_distances_km(points)
    total = float(cumulative[-1]) or 1.0
    timestamps = (cumulative / total * config.budget).tolist()
    return SmoothedPath(points=list(points), virtual_timestamps=timestamps, time_progress=0.5)


def encode_day(
    trips: Sequence[Trip],
    config: Optional[TimelineConfig] = None,
    smoothing: Optional[SmoothingConfig] = None,
) -> SmoothedPath:
    """One continuous, distance-timed path through all of a day's trips."""
    return encode_by_distance(merge_and_smooth(trips, smoothing), config)


@dataclass(frozen=True)
class Trail:
    points: Sequence[LonLat]
    fades: Sequence[float]

    def __len__(self) -> int:
        return len(self.points)


def visible_trail(path: SmoothedPath, current_time: float, trail_length: float) -> Trail:
    """The part of ``path`` lit at ``current_time``.

    Points with a virtual timestamp in ``[current_time - trail_length,
    current_time]`` are returned with a fade running from 0 at the tail to 1
    at the head.
    """
    if not path.points or trail_length <= 0:
        return Trail(points=[], fades=[])
    stamps = np.asarray(path.virtual_timestamps, dtype=float)
    lo = int(np.searchsorted(stamps, current_time - trail_length, side="left"))
    hi = int(np.searchsorted(stamps, current_time, side="right"))
    if hi <= lo:
        return Trail(points=[], fades=[])
    fades = 1.0 - (current_time - stamps[lo:hi]) / trail_length
    return Trail(points=list(path.points[lo:hi]), fades=np.clip(fades, 0.0, 1.0).tolist())
