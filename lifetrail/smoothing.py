"""Turn sparse waypoints into dense, visually smooth polylines."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import SmoothingConfig
from .geo import catmull_rom, consecutive_distances_km, distance_km
from .models import Trip

LonLat = Tuple[float, float]


def _as_lonlat(point: Sequence[float]) -> LonLat:
    return (float(point[0]), float(point[1]))


def spline_steps(segment_km: float, config: SmoothingConfig) -> int:
    steps = math.ceil(segment_km / config.step_km) if config.step_km > 0 else config.max_steps
    return min(config.max_steps, max(config.min_steps, steps))


def interpolate_segment(
    start: Sequence[float],
    end: Sequence[float],
    config: Optional[SmoothingConfig] = None,
) -> List[LonLat]:
    """Straight-line samples from ``start`` to ``end``, both endpoints included."""
    config = config or SmoothingConfig()
    gap = distance_km(start, end)
    steps = math.ceil(gap / config.linear_step_km) if config.linear_step_km > 0 else config.linear_max_points
    count = min(config.linear_max_points, max(config.linear_min_points, steps))
    fractions = np.linspace(0.0, 1.0, count)
    lons = start[0] + (end[0] - start[0]) * fractions
    lats = start[1] + (end[1] - start[1]) * fractions
    return [(float(lon), float(lat)) for lon, lat in zip(lons, lats)]


def smooth(
    points: Sequence[Sequence[float]],
    config: Optional[SmoothingConfig] = None,
) -> List[LonLat]:
    """Densify a polyline.

    Three or more points are replaced by Catmull-Rom sub-points, with more
    samples on longer segments. Two points far enough apart get a short
    straight-line interpolation. Anything else is returned unchanged.
    """
    config = config or SmoothingConfig()
    coords = [_as_lonlat(point) for point in points]
    if len(coords) == 2:
        if distance_km(coords[0], coords[1]) > config.linear_threshold_km:
            return interpolate_segment(coords[0], coords[1], config)
        return coords
    if len(coords) < 3:
        return coords

    segment_lengths = consecutive_distances_km(coords)
    last = len(coords) - 1
    smoothed: List[LonLat] = []
    for i in range(last):
        # endpoints mirror the nearest real point
        p0 = coords[i - 1] if i > 0 else coords[0]
        p1 = coords[i]
        p2 = coords[i + 1]
        p3 = coords[i + 2] if i + 2 <= last else coords[last]

        steps = spline_steps(float(segment_lengths[i]), config)
        samples = catmull_rom(p0, p1, p2, p3, np.arange(steps) / steps)
        smoothed.extend((float(x), float(y)) for x, y in samples)
    smoothed.append(coords[last])
    return smoothed


def merge_trip_coordinates(trips: Sequence[Trip]) -> List[LonLat]:
    ordered = sorted((trip for trip in trips if trip.path), key=lambda trip: trip.start)
    merged: List[LonLat] = []
    for trip in ordered:
        merged.extend(_as_lonlat(point.coordinates) for point in trip.path)
    return merged


def merge_and_smooth(
    trips: Sequence[Trip],
    config: Optional[SmoothingConfig] = None,
) -> List[LonLat]:
    """Concatenate a day's trips in start order and smooth them as one path."""
    return smooth(merge_trip_coordinates(trips), config)
