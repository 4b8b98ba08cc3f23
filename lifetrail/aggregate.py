"""Grid density cells and visit-to-visit transition arcs."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import ArcConfig, GridConfig
from .constants import UNKNOWN_LABEL
from .models import ArcEdge, GridCell, Visit

logger = logging.getLogger(__name__)

CellKey = Tuple[int, int]


def cell_key(longitude: float, latitude: float, cell_size: float) -> CellKey:
    return (math.floor(longitude / cell_size), math.floor(latitude / cell_size))


def cell_centroid(key: CellKey, cell_size: float) -> Tuple[float, float]:
    return (key[0] * cell_size + cell_size / 2, key[1] * cell_size + cell_size / 2)


def top_location(histogram: Dict[str, int]) -> Tuple[str, int]:
    """Most frequent label other than the unknown placeholder.

    Ties keep the label seen first.
    """
    best, best_count = UNKNOWN_LABEL, 0
    for label, count in histogram.items():
        if label and label != UNKNOWN_LABEL and count > best_count:
            best, best_count = label, count
    return best, best_count


def aggregate_to_grid(
    visits: Sequence[Visit],
    cell_size: Optional[float] = None,
) -> List[GridCell]:
    """Bucket visits into square cells of ``cell_size`` degrees.

    Always rebuilt from scratch; nothing is carried over between calls.
    """
    grid = GridConfig(cell_size) if cell_size is not None else GridConfig()
    cell_size = grid.cell_size
    located = [visit for visit in visits if visit.has_geometry]
    if not located:
        return []

    coords = np.array([visit.coordinates[:2] for visit in located], dtype=float)
    keys = np.floor(coords / cell_size).astype(np.int64)

    counts: Dict[CellKey, int] = {}
    histograms: Dict[CellKey, Dict[str, int]] = {}
    for (kx, ky), visit in zip(keys.tolist(), located):
        key = (kx, ky)
        counts[key] = counts.get(key, 0) + 1
        histogram = histograms.setdefault(key, {})
        label = visit.label
        histogram[label] = histogram.get(label, 0) + 1

    cells: List[GridCell] = []
    for key, count in counts.items():
        histogram = histograms[key]
        label, label_count = top_location(histogram)
        cells.append(
            GridCell(
                position=cell_centroid(key, cell_size),
                count=count,
                location_histogram=histogram,
                top_location=label,
                top_location_count=label_count,
            )
        )
    logger.debug("Aggregated %s visits into %s cells of %s degrees", len(located), len(cells), cell_size)
    return cells


def grid_max_count(cells: Sequence[GridCell]) -> int:
    return max((cell.count for cell in cells), default=1) or 1


def build_transition_arcs(
    visits: Sequence[Visit],
    config: Optional[ArcConfig] = None,
) -> List[ArcEdge]:
    """Count repeated hops between consecutive visits.

    Hops across long time gaps or between practically identical places are
    ignored. Result is ordered by count, lightest first.
    """
    config = config or ArcConfig()
    ordered = sorted((visit for visit in visits if visit.has_geometry), key=lambda visit: visit.timestamp)
    arcs: Dict[Tuple[Tuple[float, float], Tuple[float, float]], dict] = {}

    for prev, curr in zip(ordered, ordered[1:]):
        if curr.timestamp - prev.timestamp > config.max_gap_seconds:
            continue
        dlon = curr.coordinates[0] - prev.coordinates[0]
        dlat = curr.coordinates[1] - prev.coordinates[1]
        if math.hypot(dlon, dlat) < config.min_degrees:
            continue
        key = (
            (round(prev.coordinates[0], config.key_precision), round(prev.coordinates[1], config.key_precision)),
            (round(curr.coordinates[0], config.key_precision), round(curr.coordinates[1], config.key_precision)),
        )
        entry = arcs.get(key)
        if entry:
            entry["count"] += 1
        else:
            arcs[key] = {
                "source": tuple(prev.coordinates[:2]),
                "target": tuple(curr.coordinates[:2]),
                "count": 1,
                "timestamp": curr.timestamp,
            }

    edges = [ArcEdge(**entry) for entry in arcs.values()]
    edges.sort(key=lambda edge: edge.count)
    return edges
