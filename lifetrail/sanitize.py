"""Window filtering and overlap de-duplication of raw trips."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .config import SanitizeConfig
from .models import Trip

logger = logging.getLogger(__name__)


def trips_in_range(
    trips: Sequence[Trip],
    range_start: float,
    range_end: float,
) -> List[Trip]:
    """Trips with at least two points whose time span intersects the range."""
    return [
        trip
        for trip in trips
        if trip.is_valid and trip.end >= range_start and trip.start <= range_end
    ]


def overlap_ratios(trip_a: Trip, trip_b: Trip) -> Tuple[float, float]:
    """Overlapping duration as a fraction of each trip's own duration.

    A zero-length trip counts as lasting one second.
    """
    overlap = max(0.0, min(trip_a.end, trip_b.end) - max(trip_a.start, trip_b.start))
    duration_a = trip_a.duration or 1.0
    duration_b = trip_b.duration or 1.0
    return overlap / duration_a, overlap / duration_b


def remove_overlapping(
    trips: Sequence[Trip],
    config: Optional[SanitizeConfig] = None,
) -> List[Trip]:
    """Greedy de-duplication of trips sorted by start time.

    When two trips overlap by more than the threshold of either one's duration,
    the one with fewer points is dropped. On a tie the earlier trip survives.
    """
    config = config or SanitizeConfig()
    ordered = sorted(trips, key=lambda trip: trip.start)
    removed = set()
    kept: List[Trip] = []

    for i, trip_a in enumerate(ordered):
        if i in removed:
            continue
        for j in range(i + 1, len(ordered)):
            if j in removed:
                continue
            trip_b = ordered[j]
            if trip_b.start > trip_a.end:
                break
            ratio_a, ratio_b = overlap_ratios(trip_a, trip_b)
            if ratio_a > config.overlap_threshold or ratio_b > config.overlap_threshold:
                if len(trip_a.path) >= len(trip_b.path):
                    removed.add(j)
                else:
                    removed.add(i)
                    break
        if i not in removed:
            kept.append(trip_a)

    if removed:
        logger.debug("Dropped %s overlapping trips out of %s", len(removed), len(ordered))
    return kept


def sanitize(
    trips: Sequence[Trip],
    range_start: float,
    range_end: float,
    config: Optional[SanitizeConfig] = None,
) -> List[Trip]:
    return remove_overlapping(trips_in_range(trips, range_start, range_end), config)
