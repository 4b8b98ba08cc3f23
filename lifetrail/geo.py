"""Great-circle distance and interpolation primitives."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .constants import EARTH_RADIUS_KM

LonLat = Tuple[float, float]


def haversine_vectorized(
    lat1: np.ndarray,
    lon1: np.ndarray,
    lat2: np.ndarray,
    lon2: np.ndarray,
) -> np.ndarray:
    lat1_rad = np.radians(lat1)
    lon1_rad = np.radians(lon1)
    lat2_rad = np.radians(lat2)
    lon2_rad = np.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Sequence[float], b: Sequence[float]) -> float:
    """Haversine distance between two ``(lon, lat)`` pairs."""
    result = haversine_vectorized(
        np.asarray(a[1], dtype=float),
        np.asarray(a[0], dtype=float),
        np.asarray(b[1], dtype=float),
        np.asarray(b[0], dtype=float),
    )
    return float(result)


def consecutive_distances_km(points: Sequence[Sequence[float]]) -> np.ndarray:
    """Distances between each pair of neighbouring ``(lon, lat)`` points."""
    if len(points) < 2:
        return np.zeros(0)
    coords = np.asarray(points, dtype=float)
    return haversine_vectorized(coords[:-1, 1], coords[:-1, 0], coords[1:, 1], coords[1:, 0])


def cumulative_distances_km(points: Sequence[Sequence[float]]) -> np.ndarray:
    if not len(points):
        return np.zeros(0)
    return np.concatenate(([0.0], np.cumsum(consecutive_distances_km(points))))


def lerp2(a: Sequence[float], b: Sequence[float], t: float) -> LonLat:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def catmull_rom(
    p0: Sequence[float],
    p1: Sequence[float],
    p2: Sequence[float],
    p3: Sequence[float],
    t,
):
    """Uniform Catmull-Rom spline between ``p1`` and ``p2``.

    ``t`` may be a scalar or a numpy array of parameters in ``[0, 1]``. Each axis
    is evaluated independently. Returns a single ``(x, y)`` tuple for scalar
    input and an ``(n, 2)`` array otherwise.
    """
    controls = np.asarray([p0, p1, p2, p3], dtype=float)
    t_arr = np.asarray(t, dtype=float)
    t2 = t_arr * t_arr
    t3 = t2 * t_arr

    c0, c1, c2, c3 = controls
    curve = 0.5 * (
        2 * c1
        + np.multiply.outer(t_arr, -c0 + c2)
        + np.multiply.outer(t2, 2 * c0 - 5 * c1 + 4 * c2 - c3)
        + np.multiply.outer(t3, -c0 + 3 * c1 - 3 * c2 + c3)
    )
    if t_arr.ndim == 0:
        return (float(curve[0]), float(curve[1]))
    return curve
