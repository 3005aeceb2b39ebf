from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from motionsim import config
from motionsim.kinematics import Sample, Trajectory

logger = logging.getLogger(__name__)

CompletionListener = Callable[[Trajectory], None]

# half a step of the ms-rounded sample grid; re-anchoring on epoch-scale clocks loses ~1e-7 s
_TIME_SLACK = 0.5 * 10 ** -config.PRECISION


class PlaybackPhase(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class PlaybackState:
    cursor: int
    phase: PlaybackPhase
    clock_anchor: Optional[float]
    generation: int


class PlaybackController:
    """Replays a trajectory against wall-clock time.

    The host polls ``advance(now)`` at whatever cadence it redraws; the cursor
    only depends on ``now - clock_anchor``, so polling frequency never changes
    what is shown. One real second is one simulated second.

    Cursor, phase and anchor are read-only from outside; they change only
    through ``load``, ``start``, ``pause``, ``reset`` and ``advance``.
    """

    def __init__(self, trajectory: Optional[Trajectory] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._trajectory = trajectory
        self._cursor = 0
        self._phase = PlaybackPhase.IDLE
        self._clock_anchor: Optional[float] = None
        self._generation = 0
        self._listeners: List[CompletionListener] = []

    def __repr__(self) -> str:
        return (f"PlaybackController(phase={self._phase.value}, cursor={self._cursor}, "
                f"generation={self._generation})")

    @property
    def trajectory(self) -> Optional[Trajectory]:
        return self._trajectory

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def phase(self) -> PlaybackPhase:
        return self._phase

    @property
    def clock_anchor(self) -> Optional[float]:
        return self._clock_anchor

    @property
    def generation(self) -> int:
        return self._generation

    def load(self, trajectory: Optional[Trajectory]) -> PlaybackState:
        """Swap in a new trajectory; any advance tied to the previous one becomes stale."""
        self._trajectory = trajectory
        self._generation += 1
        logger.debug("Loaded trajectory (generation %d, %s samples)",
                     self._generation, len(trajectory) if trajectory is not None else 0)
        return self.reset()

    def add_completion_listener(self, listener: CompletionListener) -> None:
        self._listeners.append(listener)

    def remove_completion_listener(self, listener: CompletionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> PlaybackState:
        return PlaybackState(self._cursor, self._phase, self._clock_anchor, self._generation)

    def current_sample(self) -> Optional[Sample]:
        if self._trajectory is None:
            return None
        return self._trajectory[self._cursor]

    def elapsed(self, now: Optional[float] = None) -> float:
        """Simulated time currently on screen."""
        if self._trajectory is None:
            return 0.0
        if self._phase == PlaybackPhase.PLAYING and self._clock_anchor is not None:
            now = self.clock() if now is None else now
            return min(max(0.0, now - self._clock_anchor), self._trajectory.duration)
        return self._trajectory[self._cursor].t

    def start(self, now: Optional[float] = None) -> PlaybackState:
        """Start, resume, or replay after completion."""
        if self._trajectory is None:
            logger.debug("start() ignored: no trajectory loaded")
            return self.snapshot()
        now = self.clock() if now is None else now

        if self._phase == PlaybackPhase.PLAYING:
            return self.snapshot()
        if self._phase == PlaybackPhase.PAUSED:
            # continue from the frozen cursor without a time jump
            self._clock_anchor = now - self._trajectory[self._cursor].t
        else:
            # idle, or a fresh session after completion
            self._cursor = 0
            self._clock_anchor = now
        self._phase = PlaybackPhase.PLAYING
        logger.debug("Playing from cursor %d (anchor %.3f)", self._cursor, self._clock_anchor)
        return self.snapshot()

    def pause(self, now: Optional[float] = None) -> PlaybackState:
        """Freeze playback. With ``now``, the cursor is first advanced to that time."""
        if now is not None:
            self.advance(now)
        if self._phase != PlaybackPhase.PLAYING:
            return self.snapshot()
        self._phase = PlaybackPhase.PAUSED
        self._clock_anchor = None
        logger.debug("Paused at cursor %d", self._cursor)
        return self.snapshot()

    def reset(self) -> PlaybackState:
        self._cursor = 0
        self._phase = PlaybackPhase.IDLE
        self._clock_anchor = None
        return self.snapshot()

    def advance(self, now: Optional[float] = None, generation: Optional[int] = None) -> PlaybackState:
        """Move the cursor to match ``now``.

        A no-op outside the playing phase, without a trajectory, or when
        ``generation`` refers to a trajectory that has since been replaced.
        """
        if generation is not None and generation != self._generation:
            logger.debug("Dropping stale advance for generation %d (current %d)", generation, self._generation)
            return self.snapshot()
        if self._trajectory is None or self._phase != PlaybackPhase.PLAYING or self._clock_anchor is None:
            return self.snapshot()

        now = self.clock() if now is None else now
        idx = self._trajectory.index_at(now - self._clock_anchor - _TIME_SLACK)
        if idx is not None:
            self._cursor = idx
            return self.snapshot()

        self._cursor = self._trajectory.last_index
        self._phase = PlaybackPhase.COMPLETED
        self._clock_anchor = None
        logger.debug("Playback completed at cursor %d", self._cursor)
        self._notify_completed()
        return self.snapshot()

    def _notify_completed(self) -> None:
        trajectory = self._trajectory
        for listener in list(self._listeners):
            listener(trajectory)
