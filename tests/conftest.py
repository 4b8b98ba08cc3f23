from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple

import pytest

from lifetrail.models import DatasetMetadata, LocationHistory, Trip, TripPoint, Visit

DAY = 86400


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingScheduler:
    """Frame scheduler that only runs callbacks when told to."""

    def __init__(self) -> None:
        self.pending: Dict[int, Callable[[], None]] = {}
        self.cancelled: List[int] = []
        self._next = 0

    def request_frame(self, callback: Callable[[], None]) -> int:
        self._next += 1
        self.pending[self._next] = callback
        return self._next

    def cancel_frame(self, handle: int) -> None:
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def run_frame(self) -> None:
        callbacks = list(self.pending.values())
        self.pending.clear()
        for callback in callbacks:
            callback()


def make_trip(
    start: float,
    end: float,
    count: int,
    origin: Tuple[float, float] = (-79.40, 43.65),
    step: Tuple[float, float] = (0.01, 0.005),
    activity_type: str = "WALKING",
) -> Trip:
    if count == 1:
        return Trip(path=[TripPoint(origin, start)], activity_type=activity_type)
    path = []
    for index in range(count):
        t = start + (end - start) * index / (count - 1)
        coords = (origin[0] + step[0] * index, origin[1] + step[1] * index)
        path.append(TripPoint(coords, t))
    return Trip(path=path, activity_type=activity_type)


def make_visit(
    coords: Sequence[float],
    timestamp: float,
    duration: float = 30,
    **extra,
) -> Visit:
    return Visit(coordinates=tuple(coords) if coords is not None else None, timestamp=timestamp, duration_minutes=duration, **extra)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def history() -> LocationHistory:
    base = 1_699_963_200  # 2023-11-14 12:00 UTC
    visits = [
        make_visit((-79.3832, 43.6532), base, 120, city="Toronto", address="Union Station, Toronto, Canada", place_name="Union Station"),
        make_visit((-79.3871, 43.6426), base + 3600, 45, city="Toronto", address="CN Tower, Toronto, Canada", place_name="CN Tower"),
        make_visit((-79.3957, 43.6677), base + 7200, 600, city="Toronto", address="Home, Toronto, Canada", semantic_type="Home"),
        make_visit((-73.5673, 45.5017), base + 2 * DAY, 90, city="Montreal", address="Old Port, Montreal, Canada", place_name="Old Port"),
        make_visit((13.4050, 52.5200), base + 20 * DAY, 240, city="Berlin", address="Alexanderplatz, Berlin, Germany", place_name="Alexanderplatz"),
        make_visit(None, base + 21 * DAY, 10),
    ]
    trips = [
        make_trip(base + 600, base + 3000, 6, origin=(-79.3832, 43.6532), step=(-0.0008, -0.002)),
        make_trip(base + 4200, base + 6600, 5, origin=(-79.3871, 43.6426), step=(-0.002, 0.006)),
        make_trip(base + 4300, base + 6500, 3, origin=(-79.3871, 43.6426), step=(-0.004, 0.012)),
    ]
    metadata = DatasetMetadata(base, base + 21 * DAY)
    return LocationHistory(visits=visits, trips=trips, arcs=[], metadata=metadata)
