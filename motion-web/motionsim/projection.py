"""
Mapping from the simulation domain (seconds, meters) to display pixels.

Display space has its origin in the top-left corner with y growing downward,
so heights are inverted: the ground sits on the bottom margin and the
maximum height touches the top margin.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from motionsim import config
from motionsim.kinematics import Sample, Trajectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewport:
    width: float = config.CANVAS_WIDTH
    height: float = config.CANVAS_HEIGHT


@dataclass(frozen=True)
class Margins:
    top: float = config.MARGIN_TOP
    bottom: float = config.MARGIN_BOTTOM
    left: float = config.MARGIN_LEFT
    right: float = config.MARGIN_RIGHT


@dataclass(frozen=True)
class Projection:
    scale_x: float
    scale_y: float
    origin_offset_x: float
    origin_offset_y: float
    viewport: Viewport
    margins: Margins

    def to_display(self, sample: Sample) -> Tuple[float, float]:
        return self.point(sample.t, sample.y)

    def point(self, t: float, y: float) -> Tuple[float, float]:
        x = self.origin_offset_x + t * self.scale_x
        y_px = self.viewport.height - self.margins.bottom - y * self.scale_y
        return x, y_px

    def to_display_many(self, samples) -> Tuple[List[float], List[float]]:
        xs: List[float] = []
        ys: List[float] = []
        for s in samples:
            x, y = self.to_display(s)
            xs.append(x)
            ys.append(y)
        return xs, ys

    @property
    def ground_y(self) -> float:
        return self.origin_offset_y

    def height_ticks(self, max_height: float, step: float = config.HEIGHT_TICK_STEP) -> List[Tuple[float, float]]:
        """(height, display y) pairs every ``step`` meters that fall inside the plot area."""
        ticks: List[Tuple[float, float]] = []
        if step <= 0:
            return ticks
        n = 0
        while n * step <= max_height + step:
            h = n * step
            _, y = self.point(0.0, h)
            if 0.0 <= y <= self.ground_y:
                ticks.append((h, y))
            n += 1
        return ticks

    def time_ticks(self, total_time: float, step: float = config.TIME_TICK_STEP) -> List[Tuple[float, float]]:
        """(time, display x) pairs every ``step`` seconds up to ``total_time``."""
        ticks: List[Tuple[float, float]] = []
        if step <= 0:
            return ticks
        right = self.viewport.width - self.margins.right
        n = 0
        # small slack so 3.0 with step 0.5 is not lost to float error
        while n * step <= total_time + 1e-9:
            t = round(n * step, 6)
            x, _ = self.point(t, 0.0)
            if self.origin_offset_x <= x <= right + 1e-9:
                ticks.append((t, x))
            n += 1
        return ticks


def project(trajectory: Trajectory,
            viewport: Optional[Viewport] = None,
            margins: Optional[Margins] = None,
            eps: float = config.PROJECTION_EPSILON) -> Projection:
    """Build the domain->display scales for a trajectory. Pure: same inputs, same result."""
    viewport = viewport or Viewport()
    margins = margins or Margins()

    drawable_h = viewport.height - margins.bottom - margins.top
    drawable_w = viewport.width - margins.left - margins.right
    if drawable_h <= 0 or drawable_w <= 0:
        raise ValueError(
            f"viewport {viewport.width}x{viewport.height} leaves no drawable area with margins {margins}"
        )

    scale_y = drawable_h / max(trajectory.max_height, eps)
    scale_x = drawable_w / max(trajectory.total_time, eps)
    return Projection(
        scale_x=scale_x,
        scale_y=scale_y,
        origin_offset_x=margins.left,
        origin_offset_y=viewport.height - margins.bottom,
        viewport=viewport,
        margins=margins,
    )


class ProjectionCache:
    """Keeps the last projection until the trajectory identity or the viewport changes."""

    def __init__(self, margins: Optional[Margins] = None):
        self.margins = margins or Margins()
        self._trajectory: Optional[Trajectory] = None
        self._viewport: Optional[Viewport] = None
        self._projection: Optional[Projection] = None
        self.recomputations = 0

    def get(self, trajectory: Trajectory, viewport: Optional[Viewport] = None) -> Projection:
        viewport = viewport or Viewport()
        if self._projection is None or trajectory is not self._trajectory or viewport != self._viewport:
            self._projection = project(trajectory, viewport, self.margins)
            self._trajectory = trajectory
            self._viewport = viewport
            self.recomputations += 1
            logger.debug("Projection recomputed: scale_x=%.3f scale_y=%.3f",
                         self._projection.scale_x, self._projection.scale_y)
        return self._projection

    def clear(self) -> None:
        self._trajectory = None
        self._viewport = None
        self._projection = None
