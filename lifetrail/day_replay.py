"""Single-day replay: picking a day's visits and laying out its timeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .constants import DAY_PADDING_SECONDS, DEFAULT_VISIT_SECONDS, MIN_TRAVEL_KM, SECONDS_PER_DAY
from .geo import distance_km
from .models import DatasetMetadata, DayTimelineItem, TimeWindow, Visit


@dataclass(frozen=True)
class DaySearchResult:
    found: bool
    visits: Sequence[Visit]
    main: Optional[Visit] = None
    closest: Optional[Visit] = None


def find_day(visits: Sequence[Visit], day_start: float) -> DaySearchResult:
    """Visits recorded in the 24 hours from ``day_start``.

    The main visit is the one with the longest dwell. When the day is empty
    the visit closest in time is reported instead.
    """
    located = [visit for visit in visits if visit.has_geometry]
    day_end = day_start + SECONDS_PER_DAY
    matching = sorted(
        (visit for visit in located if day_start <= visit.timestamp < day_end),
        key=lambda visit: visit.timestamp,
    )
    if matching:
        main = max(matching, key=lambda visit: visit.duration_minutes or 0)
        return DaySearchResult(found=True, visits=matching, main=main)
    closest = min(located, key=lambda visit: abs(visit.timestamp - day_start), default=None)
    return DaySearchResult(found=False, visits=[], closest=closest)


def day_bounds(day_visits: Sequence[Visit]) -> Optional[Tuple[float, float]]:
    if not day_visits:
        return None
    ordered = sorted(visit.timestamp for visit in day_visits)
    return ordered[0], ordered[-1]


def day_window(
    day_visits: Sequence[Visit],
    metadata: DatasetMetadata,
    padding: float = DAY_PADDING_SECONDS,
) -> Optional[TimeWindow]:
    bounds = day_bounds(day_visits)
    if bounds is None:
        return None
    if metadata.span <= 0:
        return TimeWindow.full()
    start = metadata.to_fraction(bounds[0] - padding)
    end = metadata.to_fraction(bounds[1] + padding)
    return TimeWindow.clamped(start, end)


def day_center(day_visits: Sequence[Visit]) -> Optional[Tuple[float, float]]:
    located = [visit.coordinates[:2] for visit in day_visits if visit.has_geometry]
    if not located:
        return None
    lon, lat = np.mean(np.asarray(located, dtype=float), axis=0)
    return float(lon), float(lat)


def build_day_timeline(day_visits: Sequence[Visit]) -> List[DayTimelineItem]:
    ordered = sorted((visit for visit in day_visits if visit.has_geometry), key=lambda visit: visit.timestamp)
    items: List[DayTimelineItem] = []
    for index, visit in enumerate(ordered):
        following = ordered[index + 1] if index + 1 < len(ordered) else None
        items.append(
            DayTimelineItem(
                kind="visit",
                timestamp=visit.timestamp,
                end_timestamp=following.timestamp if following else visit.timestamp + DEFAULT_VISIT_SECONDS,
                name=visit.place_name or (visit.address or "").split(",")[0] or visit.semantic_type or "Location",
                coordinates=tuple(visit.coordinates[:2]),
            )
        )
        if following is None:
            continue
        hop = distance_km(visit.coordinates, following.coordinates)
        if hop > MIN_TRAVEL_KM:
            items.append(
                DayTimelineItem(
                    kind="travel",
                    timestamp=visit.timestamp,
                    end_timestamp=following.timestamp,
                    duration=following.timestamp - visit.timestamp,
                    distance_km=hop,
                    from_coords=tuple(visit.coordinates[:2]),
                    to_coords=tuple(following.coordinates[:2]),
                )
            )
    return items


def current_item_index(
    timeline: Sequence[DayTimelineItem],
    day_start: float,
    day_duration: float,
    progress: float,
) -> int:
    """Index of the last timeline item that has begun at ``progress`` through the day."""
    current = day_start + day_duration * progress
    for index in range(len(timeline) - 1, -1, -1):
        if timeline[index].timestamp <= current:
            return index
    return 0
