import pytest
from conftest import make_trip

from lifetrail.config import SmoothingConfig
from lifetrail.geo import distance_km
from lifetrail.smoothing import interpolate_segment, merge_and_smooth, merge_trip_coordinates, smooth, spline_steps


def test_spline_steps_are_bounded():
    config = SmoothingConfig()
    assert spline_steps(0.0, config) == 8
    assert spline_steps(2.3, config) == 12
    assert spline_steps(1000.0, config) == 20


def test_short_input_is_returned_unchanged():
    assert smooth([]) == []
    assert smooth([(1.0, 2.0)]) == [(1.0, 2.0)]


def test_close_pair_is_not_interpolated():
    points = [(0.0, 0.0), (0.001, 0.001)]
    assert smooth(points) == points


def test_distant_pair_uses_straight_line():
    start, end = (0.0, 0.0), (0.05, 0.0)  # about 5.6 km
    result = smooth([start, end])
    assert 2 <= len(result) <= 4
    assert result[0] == start
    assert result[-1] == pytest.approx(end)
    for lon, lat in result:
        assert lat == 0.0
    lons = [lon for lon, _ in result]
    assert lons == sorted(lons)


def test_interpolate_segment_point_count():
    assert len(interpolate_segment((0.0, 0.0), (0.0, 0.001))) == 2
    assert len(interpolate_segment((0.0, 0.0), (0.0, 0.03))) == 2  # ~3.3 km
    assert len(interpolate_segment((0.0, 0.0), (0.0, 0.05))) == 3  # ~5.6 km
    assert len(interpolate_segment((0.0, 0.0), (0.0, 5.0))) == 4


def test_spline_density_follows_segment_length():
    short = [(0.0, 0.0), (0.0001, 0.0), (0.0002, 0.0)]
    long = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
    # two segments, min 8 samples each, plus the final point
    assert len(smooth(short)) == 2 * 8 + 1
    assert len(smooth(long)) == 2 * 20 + 1


def test_spline_keeps_input_endpoints_and_waypoints():
    points = [(0.0, 0.0), (0.01, 0.02), (0.03, 0.01), (0.05, 0.04)]
    result = smooth(points)
    assert result[0] == pytest.approx(points[0])
    assert result[-1] == points[-1]
    for waypoint in points:
        assert any(candidate == pytest.approx(waypoint) for candidate in result)


def test_spline_stays_near_the_polyline():
    points = [(0.0, 0.0), (0.01, 0.0), (0.02, 0.0), (0.03, 0.0)]
    for lon, lat in smooth(points):
        assert lat == pytest.approx(0.0)
        assert -1e-9 <= lon <= 0.03 + 1e-9


def test_custom_step_bounds():
    config = SmoothingConfig(min_steps=2, max_steps=3)
    points = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
    assert len(smooth(points, config)) == 2 * 3 + 1


def test_invalid_step_bounds_are_rejected():
    with pytest.raises(ValueError):
        SmoothingConfig(min_steps=10, max_steps=5)


def test_merge_orders_trips_by_start():
    late = make_trip(500, 600, 2, origin=(1.0, 1.0))
    early = make_trip(0, 100, 2, origin=(0.0, 0.0))
    merged = merge_trip_coordinates([late, early])
    assert merged[0] == (0.0, 0.0)
    assert merged[2] == (1.0, 1.0)
    assert len(merged) == 4


def test_merge_and_smooth_produces_one_dense_path():
    trips = [make_trip(0, 100, 3), make_trip(200, 300, 3, origin=(-79.37, 43.665))]
    path = merge_and_smooth(trips)
    assert len(path) > 6
    total = sum(distance_km(a, b) for a, b in zip(path, path[1:]))
    assert total > 0


def test_merge_of_nothing_is_empty():
    assert merge_and_smooth([]) == []
