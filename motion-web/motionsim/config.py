"""
Configuration & Constants
=========================
Central registry for the numeric constants shared by the solver, the playback
controller, the projection and the Streamlit host.

Exports:
    SAMPLE_STEP (float): Trajectory sampling interval in seconds.
    GROUND_EPSILON (float): Height above which a closing ground sample is appended.
    CANVAS_WIDTH, CANVAS_HEIGHT (int): Fixed display size in pixels.
    LOG_LEVEL (int): Logging level, taken from MOTIONSIM_LOG_LEVEL.
"""
import logging
import os

# Solver
SAMPLE_STEP: float = 0.05  # s
GROUND_EPSILON: float = 0.01  # m
PRECISION: int = 3  # decimals kept on every emitted number
DEFAULT_GRAVITY: float = 9.8  # m/s^2

# Display
CANVAS_WIDTH: int = 800
CANVAS_HEIGHT: int = 600
MARGIN_TOP: float = 100.0
MARGIN_BOTTOM: float = 50.0  # ground strip
MARGIN_LEFT: float = 50.0
MARGIN_RIGHT: float = 50.0
PROJECTION_EPSILON: float = 1e-3
HEIGHT_TICK_STEP: float = 10.0  # m
TIME_TICK_STEP: float = 0.5  # s

# Playback
REFRESH_INTERVAL: float = 1.0 / 30.0  # s between host redraws


def get_log_level(default: int = logging.INFO) -> int:
    """
    Resolve the log level from the MOTIONSIM_LOG_LEVEL environment variable.

    Accepts level names ("DEBUG") or numbers ("10"); anything else falls back to default.
    """
    raw = os.environ.get("MOTIONSIM_LOG_LEVEL", "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


LOG_LEVEL: int = get_log_level()
