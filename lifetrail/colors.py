"""Time-of-record to RGBA along the fixed four-stop gradient."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .constants import GRADIENT_STOPS

RGBA = Tuple[int, int, int, int]

_POSITIONS = np.array([position for position, _ in GRADIENT_STOPS], dtype=float)
_ANCHORS = np.array([color for _, color in GRADIENT_STOPS], dtype=float)


def time_progress(timestamp: float, min_time: float, max_time: float) -> float:
    span = max_time - min_time
    if span <= 0:
        return 0.0
    return min(max((timestamp - min_time) / span, 0.0), 1.0)


def _gradient(progress: np.ndarray) -> np.ndarray:
    channels = np.stack(
        [np.interp(progress, _POSITIONS, _ANCHORS[:, channel]) for channel in range(_ANCHORS.shape[1])],
        axis=-1,
    )
    return np.clip(np.rint(channels), 0, 255).astype(int)


def color_for(timestamp: float, min_time: float, max_time: float) -> RGBA:
    r, g, b, a = _gradient(np.asarray(time_progress(timestamp, min_time, max_time))).tolist()
    return (r, g, b, a)


def colors_for(timestamps: Sequence[float], min_time: float, max_time: float) -> list[RGBA]:
    if not len(timestamps):
        return []
    values = np.asarray(timestamps, dtype=float)
    span = max_time - min_time
    progress = np.zeros_like(values) if span <= 0 else np.clip((values - min_time) / span, 0.0, 1.0)
    return [tuple(row) for row in _gradient(progress).tolist()]
