"""Unit conversion for velocity and distance inputs (to m/s and m)."""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

VELOCITY_UNITS: Dict[str, float] = {
    "km/h": 0.277778,
    "kmph": 0.277778,
    "km/hr": 0.277778,
    "mph": 0.44704,
    "ft/s": 0.3048,
    "cm/s": 0.01,
    "m/s": 1.0,
    "mps": 1.0,
}

DISTANCE_UNITS: Dict[str, float] = {
    "km": 1000.0,
    "cm": 0.01,
    "mm": 0.001,
    "ft": 0.3048,
    "inch": 0.0254,
    "in": 0.0254,
    "m": 1.0,
}

_VALUE_WITH_UNIT = re.compile(r"(-?\d+\.?\d*)\s*([a-zA-Z/]+)?")


class UnsupportedUnit(ValueError):
    pass


def _normalize(unit: str) -> str:
    return re.sub(r"\s", "", unit.lower())


def convert_velocity(value: float, unit: Optional[str] = None) -> float:
    """Convert a velocity to m/s. A missing unit means m/s."""
    if not unit:
        return float(value)
    factor = VELOCITY_UNITS.get(_normalize(unit))
    if factor is None:
        raise UnsupportedUnit(f"Unsupported velocity unit: {unit}")
    return float(value) * factor


def convert_distance(value: float, unit: Optional[str] = None) -> float:
    """Convert a distance to meters. A missing unit means meters."""
    if not unit:
        return float(value)
    factor = DISTANCE_UNITS.get(_normalize(unit))
    if factor is None:
        raise UnsupportedUnit(f"Unsupported distance unit: {unit}")
    return float(value) * factor


def parse_value_with_unit(text: str) -> Optional[Tuple[float, Optional[str]]]:
    """Split "50 km/h" into (50.0, "km/h"). Returns None when no number is present."""
    match = _VALUE_WITH_UNIT.search(text or "")
    if not match:
        return None
    return float(match.group(1)), match.group(2) or None
