from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from .constants import UNKNOWN_LABEL

LonLat = Tuple[float, float]


def _is_lonlat(value) -> bool:
    if value is None or len(value) < 2:
        return False
    try:
        lon, lat = float(value[0]), float(value[1])
    except (TypeError, ValueError):
        return False
    return math.isfinite(lon) and math.isfinite(lat)


@dataclass(frozen=True)
class Visit:
    coordinates: Optional[LonLat]
    timestamp: float
    duration_minutes: float = 0.0
    city: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None
    place_name: Optional[str] = None
    semantic_type: Optional[str] = None

    @property
    def has_geometry(self) -> bool:
        return _is_lonlat(self.coordinates)

    @property
    def label(self) -> str:
        if self.place_name:
            return self.place_name
        if self.address:
            head = self.address.split(",")[0].strip()
            if head:
                return head
        return UNKNOWN_LABEL


@dataclass(frozen=True)
class TripPoint:
    coordinates: LonLat
    timestamp: float


@dataclass(frozen=True)
class Trip:
    path: Sequence[TripPoint]
    activity_type: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return len(self.path) >= 2

    @property
    def start(self) -> float:
        return self.path[0].timestamp

    @property
    def end(self) -> float:
        return self.path[-1].timestamp

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def coordinates(self) -> list[LonLat]:
        return [point.coordinates for point in self.path]


@dataclass(frozen=True)
class ArcEdge:
    source: LonLat
    target: LonLat
    count: int
    timestamp: float


@dataclass(frozen=True)
class DatasetMetadata:
    min_timestamp: float
    max_timestamp: float

    @property
    def span(self) -> float:
        return max(self.max_timestamp - self.min_timestamp, 0.0)

    def to_absolute(self, fraction: float) -> float:
        return self.min_timestamp + self.span * fraction

    def to_fraction(self, timestamp: float) -> float:
        if self.span <= 0:
            return 0.0
        return (timestamp - self.min_timestamp) / self.span


@dataclass(frozen=True)
class LocationHistory:
    visits: Sequence[Visit]
    trips: Sequence[Trip]
    arcs: Sequence[ArcEdge]
    metadata: DatasetMetadata


@dataclass(frozen=True)
class TimeWindow:
    """A ``[start, end]`` selection expressed as fractions of the dataset span."""

    start: float = 0.0
    end: float = 1.0

    def __post_init__(self) -> None:
        if not (0.0 <= self.start <= self.end <= 1.0):
            raise ValueError(f"Invalid time window [{self.start}, {self.end}]; expected 0 <= start <= end <= 1.")

    @classmethod
    def full(cls) -> "TimeWindow":
        return cls(0.0, 1.0)

    @classmethod
    def clamped(cls, start: float, end: float) -> "TimeWindow":
        start = min(max(start, 0.0), 1.0)
        end = min(max(end, start), 1.0)
        return cls(start, end)

    @property
    def span(self) -> float:
        return self.end - self.start

    def to_absolute(self, metadata: DatasetMetadata) -> Tuple[float, float]:
        return metadata.to_absolute(self.start), metadata.to_absolute(self.end)


@dataclass(frozen=True)
class SmoothedPath:
    points: Sequence[LonLat]
    virtual_timestamps: Sequence[float]
    activity_type: Optional[str] = None
    time_progress: float = 0.0

    def __post_init__(self) -> None:
        if len(self.points) != len(self.virtual_timestamps):
            raise ValueError(
                f"Path has {len(self.points)} points but {len(self.virtual_timestamps)} timestamps."
            )
        for previous, current in zip(self.virtual_timestamps, self.virtual_timestamps[1:]):
            if current < previous:
                raise ValueError("Virtual timestamps must be non-decreasing.")


@dataclass(frozen=True)
class GridCell:
    position: LonLat
    count: int
    location_histogram: Dict[str, int] = field(default_factory=dict)
    top_location: str = UNKNOWN_LABEL
    top_location_count: int = 0

    @property
    def unique_places(self) -> int:
        return len(self.location_histogram)


@dataclass(frozen=True)
class TravelStats:
    places: int = 0
    cities: int = 0
    kilometers: int = 0
    hours: int = 0


@dataclass(frozen=True)
class CountryVisit:
    name: str
    code: str
    flag: str
    visits: int
    days: int


@dataclass(frozen=True)
class DayTimelineItem:
    kind: str
    timestamp: float
    end_timestamp: float
    name: Optional[str] = None
    coordinates: Optional[LonLat] = None
    duration: Optional[float] = None
    distance_km: Optional[float] = None
    from_coords: Optional[LonLat] = None
    to_coords: Optional[LonLat] = None
