from __future__ import annotations

import logging
import time
from typing import Optional

import plotly.graph_objects as go
import streamlit as st
from plotly.subplots import make_subplots
from pydantic import ValidationError

from motionsim import config
from motionsim.kinematics import DomainViolation, Direction, InitialConditions, MotionType, Trajectory, solve
from motionsim.logging_config import setup_logging
from motionsim.playback import PlaybackController, PlaybackPhase
from motionsim.problem import ProblemParameters, resolve_conditions
from motionsim.projection import Projection, ProjectionCache, Viewport
from motionsim.units import DISTANCE_UNITS, UnsupportedUnit, VELOCITY_UNITS, convert_distance, convert_velocity

logger = logging.getLogger(__name__)

BALL_RADIUS = 15
VELOCITY_ARROW_SCALE = 3.0


def _ensure_session() -> PlaybackController:
    if "player" not in st.session_state:
        st.session_state.player = PlaybackController()
        st.session_state.player.add_completion_listener(_on_completed)
    if "projections" not in st.session_state:
        st.session_state.projections = ProjectionCache()
    if "conditions" not in st.session_state:
        st.session_state.conditions = None
    if "just_completed" not in st.session_state:
        st.session_state.just_completed = False
    return st.session_state.player


def _on_completed(trajectory: Trajectory) -> None:
    logger.info("Playback finished after %.3f s", trajectory.duration)
    st.session_state.just_completed = True


def _params_from_sidebar() -> Optional[ProblemParameters]:
    st.sidebar.header("Problem")
    motion_label = st.sidebar.selectbox("Motion type", ["Free fall", "Vertical throw"], index=0)
    motion_type = MotionType.FREE_FALL if motion_label == "Free fall" else MotionType.VERTICAL_THROW

    if motion_type == MotionType.FREE_FALL:
        direction = Direction.DOWNWARD
        velocity = 0.0
        st.sidebar.caption("Free fall starts from rest and moves downward.")
    else:
        direction_label = st.sidebar.radio("Direction", ["Upward", "Downward"], index=0, horizontal=True)
        direction = Direction.UPWARD if direction_label == "Upward" else Direction.DOWNWARD
        v_col, vu_col = st.sidebar.columns([2, 1])
        v_value = v_col.number_input("Initial velocity", min_value=0.0, max_value=1000.0, value=20.0, step=0.5)
        v_unit = vu_col.selectbox("Unit", list(VELOCITY_UNITS), index=list(VELOCITY_UNITS).index("m/s"),
                                  key="velocity_unit")
        velocity = convert_velocity(v_value, v_unit)

    use_text = st.sidebar.checkbox("Take height from problem text", value=False)
    height: Optional[float] = None
    text = ""
    if use_text:
        text = st.sidebar.text_area("Problem text", value="A stone is dropped from 45 m high.", max_chars=1000)
    else:
        h_col, hu_col = st.sidebar.columns([2, 1])
        h_value = h_col.number_input("Initial height", min_value=0.0, max_value=10000.0, value=45.0, step=1.0)
        h_unit = hu_col.selectbox("Unit", list(DISTANCE_UNITS), index=list(DISTANCE_UNITS).index("m"),
                                  key="height_unit")
        height = convert_distance(h_value, h_unit)

    gravity = st.sidebar.slider("Gravity g (m/s²)", min_value=0.1, max_value=30.0,
                                value=float(config.DEFAULT_GRAVITY), step=0.1)

    try:
        params = ProblemParameters(
            motion_type=motion_type,
            initial_velocity=velocity,
            initial_height=height,
            gravity=gravity,
            direction=direction,
        )
    except ValidationError as exc:
        st.sidebar.error("; ".join(err["msg"] for err in exc.errors()))
        return None
    st.session_state.problem_text = text
    return params


def _sync_trajectory(player: PlaybackController, conditions: InitialConditions) -> None:
    # a new problem replaces the buffer and resets playback
    if player.trajectory is not None and st.session_state.conditions == conditions:
        return
    player.load(solve(conditions))
    st.session_state.conditions = conditions
    st.session_state.just_completed = False


def build_canvas_figure(trajectory: Trajectory, projection: Projection, cursor: int) -> go.Figure:
    """Draw the trajectory in display pixels with the ball at ``cursor``."""
    vp = projection.viewport
    ground_y = projection.ground_y
    cursor = min(max(0, cursor), trajectory.last_index)

    fig = go.Figure()

    # ground strip
    fig.add_shape(type="rect", x0=0, x1=vp.width, y0=ground_y, y1=vp.height,
                  fillcolor="#10b981", line=dict(color="#059669", width=3), layer="below")

    # full path
    xs, ys = projection.to_display_many(trajectory)
    fig.add_trace(go.Scatter(x=xs, y=ys, mode="lines", line=dict(color="#3b82f6", width=2, dash="dash"),
                             hoverinfo="skip", showlegend=False, name="path"))

    # travelled part
    if cursor > 0:
        fig.add_trace(go.Scatter(x=xs[:cursor + 1], y=ys[:cursor + 1], mode="lines",
                                 line=dict(color="#ef4444", width=3), hoverinfo="skip", showlegend=False,
                                 name="travelled"))

    current = trajectory[cursor]
    bx, by = projection.to_display(current)
    fig.add_trace(go.Scatter(x=[bx], y=[by], mode="markers",
                             marker=dict(size=2 * BALL_RADIUS, color="#ef4444", line=dict(color="#dc2626", width=2)),
                             hoverinfo="skip", showlegend=False, name="ball"))

    # velocity arrow, display y grows downward
    if abs(current.vy) > 0.1:
        fig.add_annotation(x=bx, y=by - current.vy * VELOCITY_ARROW_SCALE, ax=bx, ay=by,
                           xref="x", yref="y", axref="x", ayref="y", showarrow=True,
                           arrowhead=2, arrowwidth=3, arrowcolor="#8b5cf6", text="")

    fig.add_annotation(
        x=bx + 25, y=by - 50, xref="x", yref="y", showarrow=False, align="left", xanchor="left",
        text=(f"Time: {current.t:.2f} s<br>Height: {current.y:.2f} m<br>"
              f"Velocity: {abs(current.vy):.2f} m/s"),
        bgcolor="rgba(255,255,255,0.9)", bordercolor="#3b82f6", borderwidth=2, font=dict(color="#1e40af"),
    )

    for h, y in projection.height_ticks(trajectory.max_height):
        fig.add_annotation(x=5, y=y, xref="x", yref="y", text=f"{h:g}m", showarrow=False,
                           xanchor="left", font=dict(size=11, color="#475569"))
    for t, x in projection.time_ticks(trajectory.total_time):
        fig.add_annotation(x=x, y=ground_y + 20, xref="x", yref="y", text=f"{t:.1f}s", showarrow=False,
                           font=dict(size=11, color="#475569"))

    fig.update_layout(
        template="plotly_white",
        width=vp.width,
        height=vp.height,
        margin=dict(l=0, r=0, t=0, b=0),
        plot_bgcolor="#e0f2fe",
        xaxis=dict(range=[0, vp.width], visible=False, fixedrange=True),
        # pixel rows grow downward
        yaxis=dict(range=[vp.height, 0], visible=False, fixedrange=True),
        dragmode=False,
    )
    return fig


def build_graphs_figure(trajectory: Trajectory, current_time: float) -> go.Figure:
    """Position and velocity against time, with a marker at ``current_time``."""
    cols = trajectory.columns()
    fig = make_subplots(rows=1, cols=2, subplot_titles=("Position vs Time", "Velocity vs Time"))
    fig.add_trace(go.Scatter(x=cols["t"], y=cols["y"], mode="lines", name="Height (m)", fill="tozeroy",
                             line=dict(color="rgb(59, 130, 246)")), row=1, col=1)
    fig.add_trace(go.Scatter(x=cols["t"], y=cols["vy"], mode="lines", name="Velocity (m/s)", fill="tozeroy",
                             line=dict(color="rgb(139, 92, 246)")), row=1, col=2)
    fig.add_vline(x=current_time, line_dash="dot", line_color="#ef4444", row="all", col="all")
    fig.update_xaxes(title_text="Time (s)")
    fig.update_yaxes(title_text="Height (m)", row=1, col=1)
    fig.update_yaxes(title_text="Velocity (m/s)", row=1, col=2)
    fig.update_layout(template="plotly_white", height=380, margin=dict(l=20, r=20, t=40, b=20),
                      legend=dict(orientation="h", y=-0.25))
    return fig


def _controls(player: PlaybackController) -> None:
    col_a, col_b, col_c = st.columns([1, 1, 2])
    with col_a:
        if player.phase != PlaybackPhase.PLAYING:
            label = "Resume" if player.phase == PlaybackPhase.PAUSED else "Play"
            if st.button(label, type="primary"):
                player.start(time.monotonic())
                st.session_state.just_completed = False
                st.rerun()
        else:
            if st.button("Pause", type="secondary"):
                player.pause(time.monotonic())
                st.rerun()
    with col_b:
        if st.button("Reset"):
            player.reset()
            st.session_state.just_completed = False
            st.rerun()
    with col_c:
        st.caption(f"State: {player.phase.value}")


def _results(trajectory: Trajectory) -> None:
    col_a, col_b, col_c = st.columns(3)
    col_a.metric("Maximum Height", f"{trajectory.max_height:.2f} m")
    col_b.metric("Time to Max Height", f"{trajectory.time_to_max_height:.2f} s")
    col_c.metric("Total Flight Time", f"{trajectory.total_time:.2f} s")


def _render_playback(player: PlaybackController) -> None:
    playing = player.phase == PlaybackPhase.PLAYING

    @st.fragment(run_every=config.REFRESH_INTERVAL if playing else None)
    def _frame() -> None:
        trajectory = player.trajectory
        if trajectory is None:
            return
        try:
            state = player.advance(time.monotonic(), generation=player.generation)
        except Exception:
            # never keep polling a broken session
            logger.exception("Playback advance failed")
            player.pause()
            st.error("Playback stopped after an internal error.")
            return
        projection = st.session_state.projections.get(trajectory, Viewport())
        st.metric("Current Time", f"{trajectory[state.cursor].t:.2f} s")
        st.plotly_chart(build_canvas_figure(trajectory, projection, state.cursor),
                        use_container_width=False, config={"staticPlot": True, "displayModeBar": False})
        st.plotly_chart(build_graphs_figure(trajectory, trajectory[state.cursor].t),
                        use_container_width=True, config={"displayModeBar": False})
        if st.session_state.just_completed:
            st.session_state.just_completed = False
            # refresh buttons and stop the timer
            st.rerun()

    _frame()


def main() -> None:
    setup_logging(config.LOG_LEVEL)
    st.set_page_config(page_title="Vertical Motion Simulator", layout="wide")
    player = _ensure_session()

    st.title("Vertical Motion Simulator")
    st.caption("Free fall and vertical throws under constant gravity, replayed in real time")

    try:
        params = _params_from_sidebar()
    except UnsupportedUnit as exc:
        st.sidebar.error(str(exc))
        params = None
    if params is None:
        st.info("Adjust the parameters in the sidebar to start a simulation.")
        return

    try:
        conditions = resolve_conditions(params, st.session_state.get("problem_text"))
        _sync_trajectory(player, conditions)
    except DomainViolation as exc:
        st.error(str(exc))
        player.load(None)
        st.session_state.conditions = None
        return

    trajectory = player.trajectory
    _results(trajectory)
    _controls(player)
    _render_playback(player)

    with st.expander("Details (Trajectory)", expanded=False):
        st.write({
            "conditions": {
                "initial_velocity": conditions.initial_velocity,
                "initial_height": conditions.initial_height,
                "gravity": conditions.gravity,
                "direction": conditions.direction.value,
                "motion_type": conditions.motion_type.value,
            },
            "signed_v0": trajectory.initial_velocity,
            "samples": len(trajectory),
            "phase": player.phase.value,
            "cursor": player.cursor,
        })


if __name__ == "__main__":
    main()
