"""
Parameter resolution in front of the solver.

Turns manually entered (or externally parsed) problem data into validated
InitialConditions. Everything that fails here never reaches the solver.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from motionsim import config
from motionsim.kinematics import Direction, InitialConditions, MotionType

logger = logging.getLogger(__name__)

_HEIGHT_PATTERNS = (
    re.compile(r"(?:from|at|of)\s+(\d+\.?\d*)\s*(?:m|meters?|metres?)\s+(?:high|height|above)", re.I),
    re.compile(r"(?:height|cliff|building|tower)\s+(?:of|at)?\s*(\d+\.?\d*)\s*(?:m|meters?|metres?)", re.I),
    re.compile(r"(\d+\.?\d*)\s*(?:m|meters?|metres?)\s+(?:high|height|above)", re.I),
)


class ProblemParameters(BaseModel):
    """Structured problem data, as entered by hand or returned by a parser."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    object: str = Field(default="ball", min_length=1)
    motion_type: MotionType
    initial_velocity: float = Field(ge=0, allow_inf_nan=False)
    initial_height: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    gravity: float = Field(default=config.DEFAULT_GRAVITY, gt=0, allow_inf_nan=False)
    direction: Direction

    @model_validator(mode="after")
    def check_motion_rules(self) -> "ProblemParameters":
        if self.motion_type == MotionType.FREE_FALL:
            if self.initial_velocity != 0:
                raise ValueError("Free fall must have initial velocity of 0")
            if self.direction != Direction.DOWNWARD:
                raise ValueError("Free fall direction must be downward")
        elif self.initial_velocity == 0:
            raise ValueError("Vertical throw must have initial velocity greater than 0")
        return self

    def to_conditions(self, initial_height: Optional[float] = None) -> InitialConditions:
        height = self.initial_height if initial_height is None else initial_height
        return InitialConditions(
            initial_velocity=self.initial_velocity,
            initial_height=height or 0.0,
            gravity=self.gravity,
            direction=self.direction,
            motion_type=self.motion_type,
        )


def extract_height(text: Optional[str]) -> float:
    """Pull an initial height in meters out of free problem text; 0 when none is stated."""
    if not text:
        return 0.0
    for pattern in _HEIGHT_PATTERNS:
        match = pattern.search(text)
        if match:
            return float(match.group(1))
    return 0.0


def resolve_conditions(params: ProblemParameters, text: Optional[str] = None) -> InitialConditions:
    """InitialConditions for the solver, taking the height from the text when none was given."""
    if params.initial_height is not None:
        return params.to_conditions()
    height = extract_height(text)
    logger.info("No initial height given; using %.3f m from problem text", height)
    return params.to_conditions(initial_height=height)
