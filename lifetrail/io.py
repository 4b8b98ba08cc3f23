from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from .models import ArcEdge, DatasetMetadata, LocationHistory, Trip, TripPoint, Visit

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _as_list(payload: Any, path: Path) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("items", "data", path.stem):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise ValueError(f"Unrecognised payload structure in {path}")


def _lonlat(raw: Any) -> Optional[tuple]:
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        return None
    try:
        return (float(raw[0]), float(raw[1]))
    except (TypeError, ValueError):
        return None


def parse_visits(entries: Iterable[dict]) -> List[Visit]:
    visits: List[Visit] = []
    skipped = 0
    for entry in entries:
        timestamp = entry.get("timestamp") if isinstance(entry, dict) else None
        if timestamp is None:
            skipped += 1
            continue
        visits.append(
            Visit(
                coordinates=_lonlat(entry.get("coordinates")),
                timestamp=float(timestamp),
                duration_minutes=float(entry.get("durationMinutes") or 0),
                city=entry.get("city"),
                country=entry.get("country"),
                address=entry.get("address"),
                place_name=entry.get("placeName"),
                semantic_type=entry.get("semanticType"),
            )
        )
    if skipped:
        logger.warning("Skipped %s visit records without a timestamp", skipped)
    return visits


def parse_trips(entries: Iterable[dict]) -> List[Trip]:
    trips: List[Trip] = []
    skipped = 0
    for entry in entries:
        raw_path = entry.get("path") if isinstance(entry, dict) else None
        if not isinstance(raw_path, list):
            skipped += 1
            continue
        path: List[TripPoint] = []
        for point in raw_path:
            coords = _lonlat(point.get("coordinates")) if isinstance(point, dict) else None
            if coords is None or point.get("timestamp") is None:
                continue
            path.append(TripPoint(coordinates=coords, timestamp=float(point["timestamp"])))
        trips.append(Trip(path=path, activity_type=entry.get("activityType")))
    if skipped:
        logger.warning("Skipped %s trip records without a path", skipped)
    return trips


def parse_arcs(entries: Iterable[dict]) -> List[ArcEdge]:
    arcs: List[ArcEdge] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        source = _lonlat(entry.get("source"))
        target = _lonlat(entry.get("target"))
        if source is None or target is None:
            continue
        arcs.append(
            ArcEdge(
                source=source,
                target=target,
                count=int(entry.get("count") or 1),
                timestamp=float(entry.get("timestamp") or 0),
            )
        )
    return arcs


def derive_metadata(visits: List[Visit], trips: List[Trip]) -> DatasetMetadata:
    timestamps = [visit.timestamp for visit in visits]
    timestamps.extend(point.timestamp for trip in trips for point in trip.path)
    if not timestamps:
        return DatasetMetadata(0.0, 0.0)
    return DatasetMetadata(min(timestamps), max(timestamps))


def parse_metadata(payload: Any) -> Optional[DatasetMetadata]:
    if not isinstance(payload, dict):
        return None
    try:
        return DatasetMetadata(float(payload["minTimestamp"]), float(payload["maxTimestamp"]))
    except (KeyError, TypeError, ValueError):
        return None


def load_history(data_dir: Path) -> LocationHistory:
    """Read ``visits.json``, ``trips.json``, ``arcs.json`` and ``metadata.json``.

    Only the visits file is required. Missing metadata is derived from the
    records themselves.
    """
    visits_path = data_dir / "visits.json"
    if not visits_path.exists():
        raise FileNotFoundError(f"No visits.json found in {data_dir}")

    visits = parse_visits(_as_list(_read_json(visits_path), visits_path))

    trips_path = data_dir / "trips.json"
    trips = parse_trips(_as_list(_read_json(trips_path), trips_path)) if trips_path.exists() else []

    arcs_path = data_dir / "arcs.json"
    arcs = parse_arcs(_as_list(_read_json(arcs_path), arcs_path)) if arcs_path.exists() else []

    metadata_path = data_dir / "metadata.json"
    metadata = parse_metadata(_read_json(metadata_path)) if metadata_path.exists() else None
    if metadata is None:
        metadata = derive_metadata(visits, trips)

    logger.debug("Loaded %s visits, %s trips, %s arcs from %s", len(visits), len(trips), len(arcs), data_dir)
    return LocationHistory(visits=visits, trips=trips, arcs=arcs, metadata=metadata)
