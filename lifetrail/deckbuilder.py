from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

from shapely.geometry import LineString, MultiPoint

from .colors import color_for
from .constants import (
    DAY_PATH_MAX_SEGMENTS,
    DAY_PATH_MIN_SEGMENTS,
    DAY_REPLAY_LOOP_SECONDS,
    STATIC_PATH_COLOR,
    TRAIL_LOOP_SECONDS,
    VIRTUAL_TIME_BUDGET,
)
from .models import ArcEdge, DatasetMetadata, GridCell, SmoothedPath, Trip, Visit
from .session import FlyTo, Session


def build_trips_payload(paths: Sequence[SmoothedPath]) -> List[dict]:
    return [
        {
            "path": [list(point) for point in path.points],
            "timestamps": list(path.virtual_timestamps),
            "activityType": path.activity_type,
            "timeProgress": path.time_progress,
        }
        for path in paths
    ]


def build_static_paths(trips: Sequence[Trip]) -> List[dict]:
    return [
        {"path": [list(coords) for coords in trip.coordinates], "activityType": trip.activity_type}
        for trip in trips
        if trip.is_valid
    ]


def density_color(count: int, max_count: int) -> List[int]:
    """Teal -> cyan -> yellow -> orange -> red by relative cell density."""
    t = min(count / max(max_count * 0.3, 1), 1)
    if t < 0.25:
        color = [1, 152 + t * 300, 189 + t * 68, 200]
    elif t < 0.5:
        u = (t - 0.25) / 0.25
        color = [73 + u * 180, 227 + u * 10, 206 - u * 29, 220]
    elif t < 0.75:
        u = (t - 0.5) / 0.25
        color = [254, 237 - u * 64, 177 - u * 93, 240]
    else:
        u = (t - 0.75) / 0.25
        color = [254 - u * 45, 173 - u * 118, 84 - u * 6, 255]
    return [int(round(min(max(channel, 0), 255))) for channel in color]


def build_grid_payload(cells: Sequence[GridCell], max_count: int) -> List[dict]:
    return [
        {
            "position": list(cell.position),
            "count": cell.count,
            "elevation": min(math.log2(cell.count + 1) * 8, 60),
            "color": density_color(cell.count, max_count),
            "topLocation": cell.top_location,
            "topLocationCount": cell.top_location_count,
            "uniquePlaces": cell.unique_places,
        }
        for cell in cells
    ]


def visit_radius(visit: Visit) -> float:
    duration_factor = min((visit.duration_minutes or 0) / 60, 12) / 12
    return 30 + duration_factor * 120


def build_visit_payload(
    visits: Sequence[Visit],
    colors: Sequence[Tuple[int, int, int, int]],
) -> List[dict]:
    return [
        {
            "coordinates": list(visit.coordinates[:2]),
            "timestamp": visit.timestamp,
            "name": visit.label,
            "city": visit.city,
            "durationMinutes": visit.duration_minutes,
            "radius": visit_radius(visit),
            "color": list(color),
        }
        for visit, color in zip(visits, colors)
    ]


def build_arc_payload(arcs: Sequence[ArcEdge], metadata: DatasetMetadata) -> List[dict]:
    payload = []
    for arc in arcs:
        weight = math.log2(arc.count + 1)
        payload.append(
            {
                "source": list(arc.source),
                "target": list(arc.target),
                "count": arc.count,
                "color": list(color_for(arc.timestamp, metadata.min_timestamp, metadata.max_timestamp)),
                "width": min(1 + weight, 5),
                "height": 0.2 + weight * 0.2,
            }
        )
    return payload


def build_day_path_segments(path: SmoothedPath) -> List[dict]:
    """Split a merged day path into short pieces coloured cyan to magenta."""
    points = list(path.points)
    if len(points) < 2:
        return []
    count = min(DAY_PATH_MAX_SEGMENTS, max(DAY_PATH_MIN_SEGMENTS, len(points) // 5))
    size = math.ceil(len(points) / count)
    segments = []
    for index in range(count):
        start = index * size
        if start >= len(points) - 1:
            break
        end = min((index + 1) * size + 1, len(points))
        t = index / (count - 1)
        segments.append(
            {
                "path": [list(point) for point in points[start:end]],
                "color": [round(t * 200), round(220 - t * 170), 255, 38],
            }
        )
    return segments


def zoom_for_extent(width_deg: float, height_deg: float) -> float:
    extent = max(width_deg, height_deg)
    if extent <= 0:
        return 13.0
    return float(min(max(math.log2(360.0 / extent), 2.0), 13.0))


def compute_initial_view_state(
    visits: Sequence[Visit],
    paths: Sequence[SmoothedPath],
    fly_to: Optional[FlyTo] = None,
) -> dict:
    if fly_to is not None:
        return {
            "longitude": fly_to.longitude,
            "latitude": fly_to.latitude,
            "zoom": float(fly_to.zoom),
            "pitch": 55,
            "bearing": -20,
        }

    geometries = [LineString(path.points) for path in paths if len(path.points) >= 2]
    points = [tuple(visit.coordinates[:2]) for visit in visits if visit.has_geometry]
    for geometry in geometries:
        points.extend(geometry.coords)
    if not points:
        return {"longitude": 0.0, "latitude": 20.0, "zoom": 2.0, "pitch": 55, "bearing": -20}

    cloud = MultiPoint(points)
    min_x, min_y, max_x, max_y = cloud.bounds
    center = cloud.envelope.centroid
    return {
        "longitude": center.x,
        "latitude": center.y,
        "zoom": zoom_for_extent(max_x - min_x, max_y - min_y),
        "pitch": 55,
        "bearing": -20,
    }


def build_deck_payload(session: Session) -> dict:
    view = session.view()
    metadata = session.history.metadata
    day_active = session.day_replay_active
    payload = {
        "window": [view.window.start, view.window.end],
        "timeline": {
            "start": metadata.min_timestamp,
            "end": metadata.max_timestamp,
            "budget": VIRTUAL_TIME_BUDGET,
            "loopSeconds": DAY_REPLAY_LOOP_SECONDS if day_active else TRAIL_LOOP_SECONDS,
        },
        "dayReplay": day_active,
        "trips": build_trips_payload(view.paths),
        "staticPaths": build_static_paths(view.trips),
        "staticPathColor": list(STATIC_PATH_COLOR),
        "trailLayers": [
            {"id": layer_id, "color": list(color), "widthMinPixels": min_px, "widthMaxPixels": max_px, "trailLength": length}
            for layer_id, color, min_px, max_px, length in session.trail_layers()
        ],
        "dayPathSegments": build_day_path_segments(view.paths[0]) if day_active and view.paths else [],
        "grid": build_grid_payload(view.grid, view.grid_max_count),
        "visits": build_visit_payload(view.visits, view.visit_colors),
        "arcs": build_arc_payload(view.arcs, metadata),
        "stats": {
            "places": view.stats.places,
            "cities": view.stats.cities,
            "kilometers": view.stats.kilometers,
            "hours": view.stats.hours,
        },
        "initialViewState": compute_initial_view_state(view.visits, view.paths, session.fly_to),
    }
    return payload
