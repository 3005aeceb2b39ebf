"""
Closed-form kinematics for 1-D vertical motion under constant gravity.

This module provides:
- Initial conditions and trajectory sample types
- The solver producing a ground-terminated, fixed-step trajectory
- Analytic helpers for height and velocity at an arbitrary time
- Lookup helpers on the trajectory used by playback and plotting
"""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from motionsim import config

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    UPWARD = "upward"
    DOWNWARD = "downward"


class MotionType(str, Enum):
    FREE_FALL = "free_fall"
    VERTICAL_THROW = "vertical_throw"


class DomainViolation(ValueError):
    """Initial conditions outside the solver's domain (negative or non-finite values, gravity <= 0)."""


@dataclass(frozen=True)
class InitialConditions:
    initial_velocity: float = 0.0  # m/s, magnitude
    initial_height: float = 0.0  # m
    gravity: float = config.DEFAULT_GRAVITY  # m/s^2
    direction: Direction = Direction.DOWNWARD
    motion_type: MotionType = MotionType.FREE_FALL


@dataclass(frozen=True)
class Sample:
    t: float  # s
    y: float  # m
    vy: float  # m/s, positive is upward


@dataclass(frozen=True)
class Trajectory:
    """Immutable solver output: the sample buffer plus the analytic scalars."""

    conditions: InitialConditions
    samples: Tuple[Sample, ...]
    max_height: float
    time_to_max_height: float
    total_time: float
    initial_velocity: float  # signed v0
    times: Tuple[float, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.samples:
            raise ValueError("trajectory needs at least one sample")
        object.__setattr__(self, "times", tuple(s.t for s in self.samples))

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, index: int) -> Sample:
        return self.samples[index]

    def __iter__(self):
        return iter(self.samples)

    @property
    def last_index(self) -> int:
        return len(self.samples) - 1

    @property
    def duration(self) -> float:
        """Time of the last sample (equals total_time unless the object never moves)."""
        return self.samples[-1].t

    @property
    def peak_index(self) -> int:
        """Index of the highest sample; the first one on ties."""
        best = 0
        for i, s in enumerate(self.samples):
            if s.y > self.samples[best].y:
                best = i
        return best

    def index_at(self, elapsed: float) -> Optional[int]:
        """Index of the first sample with t >= elapsed, or None once elapsed is past the last sample."""
        idx = bisect.bisect_left(self.times, elapsed)
        if idx >= len(self.times):
            return None
        return idx

    def columns(self) -> Dict[str, List[float]]:
        return {
            "t": [s.t for s in self.samples],
            "y": [s.y for s in self.samples],
            "vy": [s.vy for s in self.samples],
        }


def _round(value: float) -> float:
    # round(-0.0004, 3) gives -0.0
    return round(float(value), config.PRECISION) + 0.0


def check_domain(conditions: InitialConditions) -> None:
    """Raise DomainViolation for inputs the closed-form solution is not defined for."""
    v = conditions.initial_velocity
    h = conditions.initial_height
    g = conditions.gravity
    for name, value in (("initial_velocity", v), ("initial_height", h), ("gravity", g)):
        if not math.isfinite(value):
            raise DomainViolation(f"{name} must be finite, got {value!r}")
    if v < 0:
        raise DomainViolation(f"initial_velocity must be >= 0, got {v}")
    if h < 0:
        raise DomainViolation(f"initial_height must be >= 0, got {h}")
    if g <= 0:
        raise DomainViolation(f"gravity must be > 0, got {g}")


def signed_initial_velocity(conditions: InitialConditions) -> float:
    """Return v0 with sign (positive upward). Free fall always starts from rest."""
    if conditions.motion_type == MotionType.FREE_FALL:
        if conditions.initial_velocity != 0 or conditions.direction != Direction.DOWNWARD:
            logger.warning(
                "Free fall given velocity=%s direction=%s; using v0=0",
                conditions.initial_velocity,
                conditions.direction.value,
            )
        return 0.0
    v = float(conditions.initial_velocity)
    if conditions.direction == Direction.DOWNWARD:
        return -v
    return v


def height_at(t: float, h0: float, v0: float, g: float) -> float:
    """y(t) = h0 + v0*t - g*t^2/2, unclamped."""
    return h0 + v0 * t - 0.5 * g * t * t


def velocity_at(t: float, v0: float, g: float) -> float:
    return v0 - g * t


def time_of_flight(h0: float, v0: float, g: float) -> float:
    """Positive root of h0 + v0*t - g*t^2/2 = 0; 0 when undefined."""
    if g <= 0:
        return 0.0
    disc = v0 * v0 + 2.0 * g * h0
    if disc < 0:
        return 0.0
    t = (v0 + math.sqrt(disc)) / g
    if not math.isfinite(t) or t < 0:
        return 0.0
    return t


def sample_motion(h0: float, v0: float, g: float, dt: float, until: float) -> List[Sample]:
    """Fixed-step samples for t = 0, dt, 2dt, ... <= until, stopping before the first sub-zero height."""
    samples: List[Sample] = []
    i = 0
    while True:
        t = i * dt
        if t > until:
            break
        y = height_at(t, h0, v0, g)
        if y < 0:
            break
        samples.append(Sample(_round(t), _round(max(0.0, y)), _round(velocity_at(t, v0, g))))
        i += 1
    return samples


def solve(conditions: InitialConditions, dt: float = config.SAMPLE_STEP) -> Trajectory:
    """Compute the trajectory and its analytic scalars for the given initial conditions.

    Raises DomainViolation for negative/non-finite inputs or non-positive gravity.
    """
    check_domain(conditions)

    h0 = float(conditions.initial_height)
    g = float(conditions.gravity)
    v0 = signed_initial_velocity(conditions)

    time_to_max = max(0.0, v0 / g)
    rise = (v0 * v0) / (2.0 * g) if v0 > 0 else 0.0
    max_height = h0 + rise
    total_time = time_of_flight(h0, v0, g)

    samples: List[Sample] = []
    if total_time <= 0:
        if h0 > 0:
            samples.append(Sample(0.0, _round(h0), _round(v0)))
        else:
            samples.append(Sample(0.0, 0.0, 0.0))
    else:
        samples = sample_motion(h0, v0, g, dt, total_time)

        last = samples[-1]
        if last.y > 0:
            ground = Sample(_round(total_time), 0.0, _round(velocity_at(total_time, v0, g)))
            if last.y <= config.GROUND_EPSILON and len(samples) > 1:
                samples[-1] = Sample(last.t, 0.0, last.vy)
            elif ground.t > last.t:
                samples.append(ground)
            else:
                # impact rounds onto the last step
                samples[-1] = ground

    trajectory = Trajectory(
        conditions=conditions,
        samples=tuple(samples),
        max_height=_round(max_height),
        time_to_max_height=_round(time_to_max),
        total_time=_round(total_time),
        initial_velocity=v0,
    )
    logger.debug(
        "Solved %s/%s: v0=%.3f h_max=%.3f t_max=%.3f t_total=%.3f samples=%d",
        conditions.motion_type.value,
        conditions.direction.value,
        v0,
        trajectory.max_height,
        trajectory.time_to_max_height,
        trajectory.total_time,
        len(trajectory),
    )
    return trajectory
