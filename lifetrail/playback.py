"""Animation clocks.

Both clocks are explicit state machines driven by an injected time source, so
they can be stepped deterministically without a real frame loop. A frame
scheduler is optional; when one is supplied the clock keeps exactly one frame
callback in flight while running and cancels it on pause, stop, or restart.
"""

from __future__ import annotations

import abc
import enum
import logging
import time
from typing import Any, Callable, Optional, Protocol

from .constants import (
    DAY_REPLAY_LOOP_SECONDS,
    MIN_WINDOW_WIDTH,
    RANGE_PLAYBACK_SECONDS,
    TRAIL_LOOP_SECONDS,
    VIRTUAL_TIME_BUDGET,
)
from .models import TimeWindow

logger = logging.getLogger(__name__)

TimeSource = Callable[[], float]


class FrameScheduler(Protocol):
    def request_frame(self, callback: Callable[[], None]) -> Any:
        ...

    def cancel_frame(self, handle: Any) -> None:
        ...


class ClockState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class _FrameClock(abc.ABC):
    def __init__(
        self,
        duration: float,
        now: Optional[TimeSource] = None,
        scheduler: Optional[FrameScheduler] = None,
        on_frame: Optional[Callable[[float], None]] = None,
    ) -> None:
        if duration <= 0:
            raise ValueError(f"Clock duration must be positive, got {duration}.")
        self.duration = float(duration)
        self._now = now or time.monotonic
        self._scheduler = scheduler
        self._on_frame = on_frame
        self._frame_handle: Any = None
        self._started_at = 0.0
        self.state = ClockState.IDLE
        self.progress = 0.0

    @property
    def running(self) -> bool:
        return self.state is ClockState.RUNNING

    @property
    def has_pending_frame(self) -> bool:
        return self._frame_handle is not None

    def _elapsed_fraction(self) -> float:
        return (self._now() - self._started_at) / self.duration

    @abc.abstractmethod
    def _advance(self) -> None:
        ...

    def _run(self) -> None:
        # Back-date the start so time spent paused is not counted.
        self._started_at = self._now() - self.progress * self.duration
        self.state = ClockState.RUNNING
        self._schedule()

    def _schedule(self) -> None:
        self._cancel_frame()
        if self._scheduler is not None and self.running:
            self._frame_handle = self._scheduler.request_frame(self._frame)

    def _cancel_frame(self) -> None:
        if self._frame_handle is not None and self._scheduler is not None:
            self._scheduler.cancel_frame(self._frame_handle)
        self._frame_handle = None

    def _frame(self) -> None:
        self._frame_handle = None
        value = self.tick()
        if self._on_frame is not None:
            self._on_frame(value)
        if self.running:
            self._schedule()

    def pause(self) -> None:
        if not self.running:
            return
        self._advance()
        if self.running:
            self.state = ClockState.PAUSED
        self._cancel_frame()

    def tick(self) -> float:
        if self.running:
            self._advance()
        return self.value

    @property
    @abc.abstractmethod
    def value(self) -> float:
        ...


class RangePlaybackClock(_FrameClock):
    """Sweeps the end of a captured time window from its start to its end.

    Progress runs once from 0 to 1 over ``duration`` seconds and then halts.
    """

    def __init__(
        self,
        duration: float = RANGE_PLAYBACK_SECONDS,
        now: Optional[TimeSource] = None,
        scheduler: Optional[FrameScheduler] = None,
        on_frame: Optional[Callable[[float], None]] = None,
        min_width: float = MIN_WINDOW_WIDTH,
    ) -> None:
        super().__init__(duration, now, scheduler, on_frame)
        self.min_width = min_width
        self.captured_range: Optional[TimeWindow] = None

    @property
    def finished(self) -> bool:
        return self.captured_range is not None and self.progress >= 1.0

    def start(self, window: TimeWindow) -> None:
        """Begin a session over ``window`` or resume the current one."""
        if self.running:
            return
        if self.captured_range is None:
            self.captured_range = window
            self.progress = 0.0
            logger.debug("Captured playback range [%s, %s]", window.start, window.end)
        elif self.finished:
            self.progress = 0.0
        self._run()

    def restart(self, window: Optional[TimeWindow] = None) -> None:
        if self.captured_range is None:
            self.captured_range = window or TimeWindow.full()
        self.progress = 0.0
        self._run()

    def stop(self) -> None:
        self._cancel_frame()
        self.captured_range = None
        self.progress = 0.0
        self.state = ClockState.IDLE

    def _advance(self) -> None:
        self.progress = min(max(self._elapsed_fraction(), 0.0), 1.0)
        if self.progress >= 1.0:
            self.state = ClockState.PAUSED
            self._cancel_frame()
            logger.debug("Range playback reached the end of its window")

    @property
    def value(self) -> float:
        return self.progress

    def current_window(self) -> Optional[TimeWindow]:
        """The visible window for the current progress, or ``None`` when idle."""
        if self.captured_range is None:
            return None
        start = self.captured_range.start
        end = start + self.captured_range.span * self.progress
        return TimeWindow.clamped(start, max(start + self.min_width, end))


class TrailClock(_FrameClock):
    """Looping virtual-time source for trail rendering.

    The value wraps from ``budget`` back to 0 every ``duration`` seconds.
    """

    def __init__(
        self,
        duration: float = TRAIL_LOOP_SECONDS,
        now: Optional[TimeSource] = None,
        scheduler: Optional[FrameScheduler] = None,
        on_frame: Optional[Callable[[float], None]] = None,
        budget: float = VIRTUAL_TIME_BUDGET,
    ) -> None:
        super().__init__(duration, now, scheduler, on_frame)
        self.budget = float(budget)

    @classmethod
    def for_day_replay(cls, **kwargs) -> "TrailClock":
        return cls(duration=DAY_REPLAY_LOOP_SECONDS, **kwargs)

    def start(self) -> None:
        if not self.running:
            self._run()

    def restart(self) -> None:
        self.progress = 0.0
        self._run()

    def stop(self) -> None:
        self._cancel_frame()
        self.progress = 0.0
        self.state = ClockState.IDLE

    def _advance(self) -> None:
        self.progress = self._elapsed_fraction() % 1.0

    @property
    def value(self) -> float:
        return self.progress * self.budget
