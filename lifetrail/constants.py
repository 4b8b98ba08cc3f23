from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence, Tuple

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = BASE_DIR / "data"
DEFAULT_OUTPUT_PATH = (BASE_DIR / "lifetrail.html").resolve()
DEFAULT_MAP_STYLE = "Dark Matter"

MAP_STYLES: Dict[str, str] = {
    "Voyager": "https://basemaps.cartocdn.com/gl/voyager-gl-style/style.json",
    "Positron": "https://basemaps.cartocdn.com/gl/positron-gl-style/style.json",
    "Dark Matter": "https://basemaps.cartocdn.com/gl/dark-matter-gl-style/style.json",
}

EARTH_RADIUS_KM = 6371.0
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600

# Trip de-duplication
OVERLAP_THRESHOLD = 0.5

# Path smoothing
SPLINE_MIN_STEPS = 8
SPLINE_MAX_STEPS = 20
SPLINE_STEP_KM = 0.2
LINEAR_THRESHOLD_KM = 2.0
LINEAR_STEP_KM = 2.0
LINEAR_MIN_POINTS = 2
LINEAR_MAX_POINTS = 4

# Virtual time
VIRTUAL_TIME_BUDGET = 10000.0
MIN_TRIP_WINDOW = 100.0

# Aggregation
DEFAULT_CELL_SIZE = 0.015  # roughly 1.5 km
UNKNOWN_LABEL = "Unknown"
ARC_MAX_GAP_SECONDS = 2 * SECONDS_PER_DAY
ARC_MIN_DEGREES = 0.001
ARC_KEY_PRECISION = 3

# Statistics
STATS_MAX_GAP_SECONDS = 7 * SECONDS_PER_DAY
STATS_MAX_HOP_KM = 500.0

# Playback
RANGE_PLAYBACK_SECONDS = 60.0
TRAIL_LOOP_SECONDS = 10.0
DAY_REPLAY_LOOP_SECONDS = 15.0
MIN_WINDOW_WIDTH = 0.01
FLY_TO_ZOOM = 12
DAY_FLY_TO_ZOOM = 13

# Day replay
DAY_PADDING_SECONDS = SECONDS_PER_HOUR
DEFAULT_VISIT_SECONDS = 1800
MIN_TRAVEL_KM = 0.1

# Electric blue -> neon purple -> hot pink -> electric orange, alpha rising slightly
GRADIENT_STOPS: Sequence[Tuple[float, Tuple[int, int, int, int]]] = (
    (0.0, (0, 212, 255, 230)),
    (0.33, (147, 151, 213, 237)),
    (0.66, (255, 60, 168, 244)),
    (1.0, (255, 200, 20, 250)),
)

# Comet trail: (layer id, rgba, min px, max px, trail length in virtual units)
DAY_TRAIL_LAYERS: Sequence[Tuple[str, Tuple[int, int, int, int], int, int, float]] = (
    ("animated-trips-tail-outer", (100, 50, 180, 30), 12, 18, 5000.0),
    ("animated-trips-tail-mid", (0, 200, 255, 100), 6, 10, 3500.0),
    ("animated-trips-glow", (100, 255, 255, 200), 3, 5, 2500.0),
    ("animated-trips", (255, 255, 255, 255), 2, 3, 1500.0),
)
PLAYBACK_TRAIL_LAYERS: Sequence[Tuple[str, Tuple[int, int, int, int], int, int, float]] = (
    ("animated-trips", (0, 212, 255, 255), 4, 8, 600.0),
)
STATIC_PATH_COLOR = (0, 212, 255, 150)
DAY_PATH_MIN_SEGMENTS = 10
DAY_PATH_MAX_SEGMENTS = 50

LAYER_NAMES = ("visits", "arcs", "trips", "hexagon")
DEFAULT_VISIBLE_LAYERS = frozenset({"visits", "arcs", "trips"})

# pycountry does not resolve these spellings on its own
COUNTRY_ALIASES: Dict[str, str] = {
    "UK": "GB",
    "England": "GB",
    "Scotland": "GB",
    "Wales": "GB",
    "USA": "US",
    "United States": "US",
    "Czechia": "CZ",
    "South Korea": "KR",
    "Tanzania": "TZ",
    "Russia": "RU",
    "Vietnam": "VN",
}
