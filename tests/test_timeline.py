import numpy as np
import pytest
from conftest import make_trip

from lifetrail.config import TimelineConfig
from lifetrail.models import SmoothedPath
from lifetrail.timeline import encode_by_distance, encode_day, encode_wall_clock, trip_time_bounds, visible_trail


def assert_monotonic(path):
    assert len(path.virtual_timestamps) == len(path.points)
    assert all(b >= a for a, b in zip(path.virtual_timestamps, path.virtual_timestamps[1:]))


def test_wall_clock_places_trips_in_their_real_position():
    first = make_trip(0, 1000, 4)
    second = make_trip(9000, 10000, 4, origin=(-79.2, 43.7))
    paths = encode_wall_clock([first, second])
    assert len(paths) == 2
    for path in paths:
        assert_monotonic(path)
    assert paths[0].virtual_timestamps[0] == 0
    assert paths[0].virtual_timestamps[-1] == pytest.approx(1000)
    assert paths[1].virtual_timestamps[0] == pytest.approx(9000)
    assert paths[1].virtual_timestamps[-1] == pytest.approx(10000)


def test_short_trip_gets_minimum_window():
    long = make_trip(0, 100000, 3)
    blip = make_trip(50000, 50001, 3)
    paths = encode_wall_clock([long, blip])
    stamps = paths[1].virtual_timestamps
    assert stamps[0] == pytest.approx(5000)
    assert stamps[-1] - stamps[0] == pytest.approx(100)


def test_time_progress_uses_average_timestamp():
    trip = make_trip(0, 1000, 3)
    other = make_trip(1000, 2000, 3)
    paths = encode_wall_clock([trip, other])
    assert paths[0].time_progress == pytest.approx(0.25)
    assert paths[1].time_progress == pytest.approx(0.75)


def test_activity_type_is_carried():
    paths = encode_wall_clock([make_trip(0, 10, 3, activity_type="CYCLING")])
    assert paths[0].activity_type == "CYCLING"


def test_single_point_trip_yields_single_timestamp():
    paths = encode_wall_clock([make_trip(0, 0, 1)])
    assert len(paths[0].points) == 1
    assert paths[0].virtual_timestamps == [0.0]


def test_all_trips_at_one_instant_do_not_divide_by_zero():
    paths = encode_wall_clock([make_trip(500, 500, 3), make_trip(500, 500, 2)])
    for path in paths:
        assert_monotonic(path)
        assert np.all(np.isfinite(path.virtual_timestamps))


def test_wall_clock_of_nothing():
    assert encode_wall_clock([]) == []
    assert trip_time_bounds([]) == (0.0, 0.0)


def test_custom_budget():
    paths = encode_wall_clock([make_trip(0, 100, 3)], TimelineConfig(budget=1.0, min_trip_window=0.0))
    assert paths[0].virtual_timestamps[-1] == pytest.approx(1.0)


def test_distance_encoding_spans_budget_and_follows_distance():
    points = [(0.0, 0.0), (0.0, 1.0), (0.0, 3.0)]
    path = encode_by_distance(points)
    assert_monotonic(path)
    assert path.virtual_timestamps[0] == 0
    assert path.virtual_timestamps[1] == pytest.approx(10000 / 3)
    assert path.virtual_timestamps[-1] == pytest.approx(10000)


def test_distance_encoding_of_stationary_path_is_flat():
    path = encode_by_distance([(1.0, 1.0), (1.0, 1.0), (1.0, 1.0)])
    assert list(path.virtual_timestamps) == [0.0, 0.0, 0.0]


def test_distance_encoding_of_tiny_inputs():
    assert encode_by_distance([]).points == []
    single = encode_by_distance([(2.0, 3.0)])
    assert single.virtual_timestamps == [0.0]


def test_encode_day_is_one_path():
    trips = [make_trip(0, 100, 4), make_trip(3600, 4000, 4, origin=(-79.35, 43.70))]
    path = encode_day(trips)
    assert_monotonic(path)
    assert path.virtual_timestamps[-1] == pytest.approx(10000)
    assert len(path.points) > 8


def test_smoothed_path_rejects_mismatched_arrays():
    with pytest.raises(ValueError):
        SmoothedPath(points=[(0, 0), (1, 1)], virtual_timestamps=[0.0])
    with pytest.raises(ValueError):
        SmoothedPath(points=[(0, 0), (1, 1)], virtual_timestamps=[5.0, 1.0])


def test_visible_trail_window_and_fade():
    path = SmoothedPath(
        points=[(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)],
        virtual_timestamps=[0.0, 100.0, 200.0, 300.0, 400.0],
    )
    trail = visible_trail(path, current_time=300.0, trail_length=200.0)
    assert trail.points == [(1, 0), (2, 0), (3, 0)]
    assert trail.fades == pytest.approx([0.0, 0.5, 1.0])


def test_visible_trail_before_start_and_empty_cases():
    path = SmoothedPath(points=[(0, 0), (1, 0)], virtual_timestamps=[100.0, 200.0])
    assert len(visible_trail(path, current_time=50.0, trail_length=20.0)) == 0
    assert len(visible_trail(path, current_time=150.0, trail_length=0.0)) == 0
    empty = SmoothedPath(points=[], virtual_timestamps=[])
    assert len(visible_trail(empty, current_time=10.0, trail_length=10.0)) == 0
