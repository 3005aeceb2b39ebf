import logging
import math

import pytest

from motionsim.kinematics import (
    Direction,
    DomainViolation,
    InitialConditions,
    MotionType,
    height_at,
    sample_motion,
    signed_initial_velocity,
    solve,
)

FREE_FALL_45 = InitialConditions(0.0, 45.0, 9.8, Direction.DOWNWARD, MotionType.FREE_FALL)
THROW_UP_20 = InitialConditions(20.0, 0.0, 9.8, Direction.UPWARD, MotionType.VERTICAL_THROW)
THROW_DOWN_15 = InitialConditions(15.0, 30.0, 9.8, Direction.DOWNWARD, MotionType.VERTICAL_THROW)

CASES = [
    FREE_FALL_45,
    THROW_UP_20,
    THROW_DOWN_15,
    InitialConditions(5.0, 12.5, 9.81, Direction.UPWARD, MotionType.VERTICAL_THROW),
    InitialConditions(0.0, 1.0, 1.62, Direction.DOWNWARD, MotionType.FREE_FALL),
    InitialConditions(120.0, 3.0, 9.8, Direction.DOWNWARD, MotionType.VERTICAL_THROW),
    InitialConditions(0.0, 0.004, 9.8, Direction.DOWNWARD, MotionType.FREE_FALL),
]


@pytest.mark.parametrize("conditions", CASES)
def test_samples_stay_above_ground_and_end_on_it(conditions):
    traj = solve(conditions)
    assert traj[0].t == 0
    assert all(s.y >= 0 for s in traj)
    assert all(b.t > a.t for a, b in zip(traj.samples, traj.samples[1:]))
    assert traj.total_time > 0
    assert traj[-1].y == 0
    assert traj[-1].t <= traj.total_time


@pytest.mark.parametrize("conditions", CASES)
def test_scalars_match_sample_extremes(conditions):
    traj = solve(conditions)
    highest = max(s.y for s in traj)
    assert highest <= traj.max_height
    assert traj.max_height - highest < 0.05
    assert traj[-1].t == pytest.approx(traj.total_time, abs=1e-3)


def test_free_fall_from_45m():
    traj = solve(FREE_FALL_45)
    assert traj.total_time == pytest.approx(3.03, abs=0.01)
    assert traj.max_height == 45
    assert traj.time_to_max_height == 0
    assert traj.initial_velocity == 0
    assert traj[0].y == 45
    assert all(b.y < a.y for a, b in zip(traj.samples, traj.samples[1:]))
    # 0.00 .. 3.00 s in 50 ms steps plus the impact sample
    assert len(traj) == 62
    assert traj[-1].t == 3.03
    assert traj[-1].vy == pytest.approx(-29.698, abs=1e-3)


def test_upward_throw_from_ground():
    traj = solve(THROW_UP_20)
    assert traj.time_to_max_height == pytest.approx(2.04, abs=0.01)
    assert traj.max_height == pytest.approx(20.41, abs=0.01)
    assert traj.total_time == pytest.approx(4.08, abs=0.01)
    assert traj[0].y == 0 and traj[0].vy == 20
    assert traj[traj.peak_index].t == pytest.approx(2.05)
    assert traj[-1].t == 4.082


def test_downward_throw_from_height():
    traj = solve(THROW_DOWN_15)
    assert traj.initial_velocity == -15
    assert traj.time_to_max_height == 0
    assert traj.max_height == 30
    root = (-15 + math.sqrt(15 ** 2 + 4 * 4.9 * 30)) / (2 * 4.9)
    assert traj.total_time == pytest.approx(root, abs=1e-3)
    assert 30 - 15 * traj.total_time - 4.9 * traj.total_time ** 2 == pytest.approx(0, abs=0.05)
    assert traj[0].vy == -15


def test_signed_velocity():
    assert signed_initial_velocity(THROW_UP_20) == 20
    assert signed_initial_velocity(THROW_DOWN_15) == -15
    assert signed_initial_velocity(FREE_FALL_45) == 0


def test_free_fall_ignores_contradicting_velocity(caplog):
    bad = InitialConditions(7.0, 20.0, 9.8, Direction.UPWARD, MotionType.FREE_FALL)
    with caplog.at_level(logging.WARNING, logger="motionsim.kinematics"):
        traj = solve(bad)
    assert traj.initial_velocity == 0
    assert traj.max_height == 20
    assert traj.total_time == solve(InitialConditions(0.0, 20.0, 9.8)).total_time
    assert "Free fall" in caplog.text


@pytest.mark.parametrize("direction", [Direction.DOWNWARD, Direction.UPWARD])
def test_resting_on_ground_gives_single_sample(direction):
    if direction == Direction.DOWNWARD:
        conditions = InitialConditions(15.0, 0.0, 9.8, direction, MotionType.VERTICAL_THROW)
    else:
        conditions = InitialConditions(0.0, 0.0, 9.8, direction, MotionType.VERTICAL_THROW)
    traj = solve(conditions)
    assert traj.total_time == 0
    assert len(traj) == 1
    assert (traj[0].t, traj[0].y, traj[0].vy) == (0.0, 0.0, 0.0)


def test_numbers_are_rounded_to_three_decimals():
    traj = solve(InitialConditions(3.3, 7.7, 9.81, Direction.UPWARD, MotionType.VERTICAL_THROW))
    for s in traj:
        for value in (s.t, s.y, s.vy):
            assert round(value, 3) == value


@pytest.mark.parametrize("kwargs", [
    {"initial_velocity": -1.0},
    {"initial_height": -0.5},
    {"gravity": 0.0},
    {"gravity": -9.8},
    {"initial_height": float("nan")},
    {"initial_velocity": float("inf")},
])
def test_out_of_domain_inputs_are_rejected(kwargs):
    base = dict(initial_velocity=1.0, initial_height=1.0, gravity=9.8,
                direction=Direction.UPWARD, motion_type=MotionType.VERTICAL_THROW)
    base.update(kwargs)
    with pytest.raises(DomainViolation):
        solve(InitialConditions(**base))


def test_index_at_finds_first_sample_not_before_elapsed():
    traj = solve(FREE_FALL_45)
    assert traj.index_at(0.0) == 0
    assert traj.index_at(-1.0) == 0
    assert traj.index_at(0.01) == 1
    assert traj.index_at(0.05) == 1
    assert traj.index_at(3.02) == traj.last_index
    assert traj.index_at(3.031) is None


def test_columns_and_height_helper():
    traj = solve(THROW_UP_20)
    cols = traj.columns()
    assert len(cols["t"]) == len(cols["y"]) == len(cols["vy"]) == len(traj)
    assert height_at(1.0, 0.0, 20.0, 9.8) == pytest.approx(15.1)
    assert cols["y"][20] == pytest.approx(15.1)


def test_sampling_stops_before_negative_heights():
    # impact at ~1.01 s; the window runs well past it
    samples = sample_motion(5.0, 0.0, 9.8, 0.05, 2.0)
    assert samples[-1].t == pytest.approx(1.0)
    assert all(s.y >= 0 for s in samples)
    assert len(samples) == 21


@pytest.mark.parametrize("conditions, last_t, last_vy", [
    # last step at 1.00 s sits 5 mm above the ground: clamped in place
    (InitialConditions(0.0, 4.905, 9.8), 1.0, -9.8),
    # impact at ~0.0503 s rounds onto the 0.05 s step: impact sample replaces it
    (InitialConditions(100.0, 5.0424, 9.8, Direction.DOWNWARD, MotionType.VERTICAL_THROW), 0.05, -100.493),
])
def test_ground_closure_near_the_last_step(conditions, last_t, last_vy):
    traj = solve(conditions)
    assert traj[-1].y == 0
    assert traj[-1].t == pytest.approx(last_t)
    assert traj[-1].vy == pytest.approx(last_vy, abs=1e-3)
    assert all(b.t > a.t for a, b in zip(traj.samples, traj.samples[1:]))
    assert all(s.y > 0 for s in traj.samples[:-1])
