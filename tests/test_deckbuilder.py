import json

import pytest
from conftest import make_visit

from lifetrail.deckbuilder import (
    build_day_path_segments,
    build_deck_payload,
    build_grid_payload,
    compute_initial_view_state,
    density_color,
    visit_radius,
    zoom_for_extent,
)
from lifetrail.models import GridCell, SmoothedPath
from lifetrail.session import FlyTo, Session

MIDNIGHT = 1_699_920_000


def test_density_color_ramp_ends():
    assert density_color(0, 10) == [1, 152, 189, 200]
    assert density_color(100, 10) == [209, 55, 78, 255]
    for count in range(0, 12):
        assert all(0 <= channel <= 255 for channel in density_color(count, 10))


def test_grid_payload_caps_elevation():
    cells = [
        GridCell(position=(0.0, 0.0), count=1, location_histogram={"A": 1}, top_location="A", top_location_count=1),
        GridCell(position=(1.0, 1.0), count=1000, location_histogram={"A": 600, "B": 400}, top_location="A", top_location_count=600),
    ]
    payload = build_grid_payload(cells, 1000)
    assert payload[0]["elevation"] == 8
    assert payload[1]["elevation"] == 60
    assert payload[1]["uniquePlaces"] == 2


def test_visit_radius_grows_with_dwell():
    assert visit_radius(make_visit((0, 0), 0, 0)) == 30
    assert visit_radius(make_visit((0, 0), 0, 360)) == 90
    assert visit_radius(make_visit((0, 0), 0, 5000)) == 150


def test_day_path_segments():
    points = [(i * 0.001, 0.0) for i in range(100)]
    path = SmoothedPath(points=points, virtual_timestamps=[float(i) for i in range(100)])
    segments = build_day_path_segments(path)
    assert len(segments) == 20
    assert segments[0]["color"] == [0, 220, 255, 38]
    assert segments[-1]["color"] == [200, 50, 255, 38]
    # neighbouring pieces share an endpoint so the line has no gaps
    assert segments[0]["path"][-1] == segments[1]["path"][0]
    assert segments[-1]["path"][-1] == list(points[-1])


def test_day_path_segments_need_two_points():
    assert build_day_path_segments(SmoothedPath(points=[(0.0, 0.0)], virtual_timestamps=[0.0])) == []


def test_zoom_for_extent():
    assert zoom_for_extent(0, 0) == 13.0
    assert zoom_for_extent(360, 10) == 2.0
    assert zoom_for_extent(1, 0.5) == pytest.approx(8.49, abs=0.01)


def test_initial_view_state():
    fly = compute_initial_view_state([], [], FlyTo(10.0, 20.0, 12))
    assert (fly["longitude"], fly["latitude"], fly["zoom"]) == (10.0, 20.0, 12.0)

    empty = compute_initial_view_state([], [])
    assert (empty["longitude"], empty["latitude"], empty["zoom"]) == (0.0, 20.0, 2.0)

    visits = [make_visit((0, 0), 0), make_visit((2, 4), 1), make_visit(None, 2)]
    state = compute_initial_view_state(visits, [])
    assert state["longitude"] == pytest.approx(1.0)
    assert state["latitude"] == pytest.approx(2.0)


def test_deck_payload_is_json_ready(history):
    session = Session(history)
    payload = build_deck_payload(session)
    assert payload["dayReplay"] is False
    assert payload["timeline"]["loopSeconds"] == 10
    assert len(payload["visits"]) == 5
    assert len(payload["trips"]) == 2
    assert len(payload["staticPaths"]) == 2
    assert payload["dayPathSegments"] == []
    assert [layer["id"] for layer in payload["trailLayers"]] == ["animated-trips"]
    json.dumps(payload)


def test_deck_payload_in_day_replay(history):
    session = Session(history)
    session.enter_day_replay(MIDNIGHT)
    payload = build_deck_payload(session)
    assert payload["dayReplay"] is True
    assert payload["timeline"]["loopSeconds"] == 15
    assert len(payload["trips"]) == 1
    assert payload["dayPathSegments"]
    assert payload["initialViewState"]["zoom"] == 13.0
    json.dumps(payload)
