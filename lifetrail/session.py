"""The single mutable session object tying the passes together.

A :class:`Session` owns the active time window, the visible layer set, the
day-replay selection, and both playback clocks. Everything derived from them is
computed into an immutable :class:`SessionView` and swapped in whole, so a
reader always sees either the previous view or the new one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Callable, Dict, List, Optional, Sequence, Tuple

from .aggregate import aggregate_to_grid, build_transition_arcs, grid_max_count
from .colors import colors_for
from .config import ProcessingConfig
from .constants import (
    DAY_FLY_TO_ZOOM,
    DAY_TRAIL_LAYERS,
    DEFAULT_VISIBLE_LAYERS,
    FLY_TO_ZOOM,
    LAYER_NAMES,
    PLAYBACK_TRAIL_LAYERS,
)
from .day_replay import DaySearchResult, build_day_timeline, current_item_index, day_bounds, day_center, day_window, find_day
from .models import ArcEdge, DayTimelineItem, GridCell, LocationHistory, SmoothedPath, TimeWindow, TravelStats, Trip, Visit
from .playback import FrameScheduler, RangePlaybackClock, TrailClock
from .sanitize import remove_overlapping
from .stats import compute_travel_stats, filter_trips, filter_visits
from .timeline import Trail, encode_day, encode_wall_clock, visible_trail

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlyTo:
    longitude: float
    latitude: float
    zoom: float


@dataclass(frozen=True)
class SessionView:
    window: TimeWindow
    visits: Sequence[Visit]
    trips: Sequence[Trip]
    paths: Sequence[SmoothedPath]
    grid: Sequence[GridCell]
    grid_max_count: int
    arcs: Sequence[ArcEdge]
    stats: TravelStats
    visit_colors: Sequence[Tuple[int, int, int, int]] = field(default_factory=list)


@dataclass(frozen=True)
class TrailFrame:
    current_time: float
    layers: Dict[str, List[Trail]]


class Session:
    def __init__(
        self,
        history: LocationHistory,
        config: Optional[ProcessingConfig] = None,
        now: Optional[Callable[[], float]] = None,
        scheduler: Optional[FrameScheduler] = None,
    ) -> None:
        self.history = history
        self.config = config or ProcessingConfig()
        self._window = TimeWindow.full()
        self._visible_layers: AbstractSet[str] = DEFAULT_VISIBLE_LAYERS
        self._view: Optional[SessionView] = None
        self._day: Optional[DaySearchResult] = None
        self._day_timeline: List[DayTimelineItem] = []
        self.fly_to: Optional[FlyTo] = None
        self.range_clock = RangePlaybackClock(now=now, scheduler=scheduler, on_frame=self._on_range_frame)
        self.trail_clock = TrailClock(now=now, scheduler=scheduler)
        self._now = now
        self._scheduler = scheduler

    # -- control inputs -------------------------------------------------

    @property
    def window(self) -> TimeWindow:
        return self._window

    def set_window(self, window: TimeWindow) -> None:
        if window != self._window:
            self._window = window
            self._view = None

    @property
    def visible_layers(self) -> AbstractSet[str]:
        return self._visible_layers

    def set_visible_layers(self, layers: AbstractSet[str]) -> None:
        unknown = set(layers) - set(LAYER_NAMES)
        if unknown:
            raise ValueError(f"Unknown layers: {', '.join(sorted(unknown))}")
        layers = frozenset(layers)
        if layers != self._visible_layers:
            self._visible_layers = layers
            self._view = None

    @property
    def day_replay_active(self) -> bool:
        return self._day is not None

    # -- derived data ---------------------------------------------------

    def view(self) -> SessionView:
        if self._view is None:
            self._view = self._build_view()
        return self._view

    def _build_view(self) -> SessionView:
        metadata = self.history.metadata
        window = self._window
        visits = filter_visits(self.history.visits, window, metadata)
        trips: List[Trip] = []
        paths: List[SmoothedPath] = []
        if "trips" in self._visible_layers or self.day_replay_active:
            trips = remove_overlapping(filter_trips(self.history.trips, window, metadata), self.config.sanitize)
            if self.day_replay_active:
                day_path = encode_day(trips, self.config.timeline, self.config.smoothing)
                paths = [day_path] if day_path.points else []
            else:
                paths = encode_wall_clock(trips, self.config.timeline, self.config.smoothing)

        grid: List[GridCell] = []
        if "hexagon" in self._visible_layers:
            grid = aggregate_to_grid(visits, self.config.grid.cell_size)
        arcs: List[ArcEdge] = []
        if "arcs" in self._visible_layers:
            arcs = build_transition_arcs(visits, self.config.arcs)

        stats = compute_travel_stats(self.history.visits, window, metadata, self.config.stats)
        colors = colors_for([visit.timestamp for visit in visits], metadata.min_timestamp, metadata.max_timestamp)
        logger.debug(
            "Rebuilt view for [%.4f, %.4f]: %s visits, %s trips, %s cells",
            window.start,
            window.end,
            len(visits),
            len(trips),
            len(grid),
        )
        return SessionView(
            window=window,
            visits=visits,
            trips=trips,
            paths=paths,
            grid=grid,
            grid_max_count=grid_max_count(grid),
            arcs=arcs,
            stats=stats,
            visit_colors=colors,
        )

    # -- range playback -------------------------------------------------

    def _first_visit_after(self, window: TimeWindow) -> Optional[Visit]:
        range_start = self.history.metadata.to_absolute(window.start)
        candidates = [visit for visit in self.history.visits if visit.has_geometry and visit.timestamp >= range_start]
        return min(candidates, key=lambda visit: visit.timestamp, default=None)

    def _fly_to_range_start(self, window: TimeWindow) -> None:
        first = self._first_visit_after(window)
        if first is not None:
            self.fly_to = FlyTo(first.coordinates[0], first.coordinates[1], FLY_TO_ZOOM)

    def play(self) -> None:
        if not self.history.visits:
            return
        fresh = self.range_clock.captured_range is None
        self.range_clock.start(self._window)
        if fresh:
            self._fly_to_range_start(self._window)
        self.trail_clock.start()

    def pause(self) -> None:
        self.range_clock.pause()
        if not self.day_replay_active:
            self.trail_clock.pause()

    def restart(self) -> None:
        self.range_clock.restart(self._window)
        self._fly_to_range_start(self.range_clock.captured_range)
        self._sync_window_from_clock()
        self.trail_clock.restart()

    def stop(self) -> None:
        self.range_clock.stop()
        if not self.day_replay_active:
            self.trail_clock.stop()

    def _on_range_frame(self, _progress: float) -> None:
        self._sync_window_from_clock()
        if self.range_clock.finished and not self.day_replay_active:
            self.trail_clock.pause()

    def _sync_window_from_clock(self) -> None:
        window = self.range_clock.current_window()
        if window is not None:
            self.set_window(window)

    # -- day replay -----------------------------------------------------

    def enter_day_replay(self, day_start: float) -> DaySearchResult:
        """Switch to replaying the day beginning at ``day_start``.

        When no visits fall on that day nothing changes and the closest visit
        is reported through the returned result.
        """
        result = find_day(self.history.visits, day_start)
        if not result.found:
            if result.closest is not None:
                self.fly_to = FlyTo(result.closest.coordinates[0], result.closest.coordinates[1], DAY_FLY_TO_ZOOM)
            return result

        self.range_clock.stop()
        self._day = result
        self._day_timeline = build_day_timeline(result.visits)
        self._view = None
        window = day_window(result.visits, self.history.metadata)
        if window is not None:
            self.set_window(window)
        center = day_center(result.visits)
        if center is not None:
            self.fly_to = FlyTo(center[0], center[1], DAY_FLY_TO_ZOOM)

        self.trail_clock.stop()
        self.trail_clock = TrailClock.for_day_replay(now=self._now, scheduler=self._scheduler)
        self.trail_clock.start()
        return result

    def exit_day_replay(self) -> None:
        if self._day is None:
            return
        self._day = None
        self._day_timeline = []
        self._view = None
        self.trail_clock.stop()
        self.trail_clock = TrailClock(now=self._now, scheduler=self._scheduler)

    @property
    def day_timeline(self) -> Sequence[DayTimelineItem]:
        return self._day_timeline

    def current_day_item(self) -> int:
        if self._day is None or not self._day_timeline:
            return 0
        start, end = day_bounds(self._day.visits)
        return current_item_index(self._day_timeline, start, end - start, self.trail_clock.progress)

    # -- per frame ------------------------------------------------------

    def tick(self) -> TrailFrame:
        """Advance both clocks by reading the time source once each."""
        if self.range_clock.running:
            self._on_range_frame(self.range_clock.tick())
        current = self.trail_clock.tick()
        return self.trail_frame(current)

    def trail_layers(self):
        return DAY_TRAIL_LAYERS if self.day_replay_active else PLAYBACK_TRAIL_LAYERS

    def trail_frame(self, current_time: Optional[float] = None) -> TrailFrame:
        if current_time is None:
            current_time = self.trail_clock.value
        paths = self.view().paths
        layers = {
            layer_id: [visible_trail(path, current_time, trail_length) for path in paths]
            for layer_id, _color, _min_px, _max_px, trail_length in self.trail_layers()
        }
        return TrailFrame(current_time=current_time, layers=layers)
