import pandas as pd
import streamlit as st

from dashboard.data import repositories
from dashboard.header import announce_completion, format_clock, load_timer_state


def _action(action):
    try:
        repositories.timer_action(action)
    except RuntimeError as exc:
        st.toast(str(exc).split(": ", 1)[-1])


@st.fragment(run_every=1)
def _render_timer():
    state = load_timer_state()
    if not state:
        st.warning("Timer unavailable right now.")
        return
    announce_completion(state)
    phase = "Focus" if state["phase"] == "focus" else "Break"
    st.markdown(f"## {phase} · {format_clock(state['remaining_seconds'])}")
    st.progress(min(100, max(0, int(state["progress_percent"]))) / 100)
    st.caption(
        f"Sessions completed: {state['sessions_completed']} · "
        f"Focus today: {state['accumulated_focus_minutes_today']} min"
    )
    cols = st.columns(4)
    if not state["running"]:
        if cols[0].button("▶️ Start", key="focus.start", type="primary", use_container_width=True):
            _action("start")
            st.rerun(scope="fragment")
    elif cols[0].button("▶️ Resume" if state["paused"] else "⏸️ Pause", key="focus.pause", use_container_width=True):
        _action("pause")
        st.rerun(scope="fragment")
    if cols[1].button("⏹️ Stop", key="focus.stop", use_container_width=True):
        _action("stop")
        st.rerun(scope="fragment")
    if cols[2].button("🔄 Reset", key="focus.reset", use_container_width=True):
        _action("reset")
        st.rerun(scope="fragment")


def render_focus_tab(ctx):
    st.subheader("Focus")
    state = load_timer_state() or {}

    open_tasks = [task["title"] for task in repositories.list_tasks() if task["status"] != "completed"]
    current = state.get("selected_task")
    options = [""] + open_tasks
    choice = st.selectbox(
        "Task to focus on",
        options,
        index=options.index(current) if current in options else 0,
        format_func=lambda value: value or "No task selected",
        key="focus.task",
    )
    if (choice or None) != current:
        repositories.select_focus_task(choice or None)

    minutes = st.number_input(
        "Focus length (minutes)",
        min_value=1,
        max_value=180,
        value=int(state.get("focus_duration_minutes") or 25),
        disabled=bool(state.get("running")),
        key="focus.minutes",
    )
    if state and not state.get("running") and int(minutes) != int(state.get("focus_duration_minutes") or 25):
        try:
            repositories.set_focus_duration(minutes)
        except RuntimeError as exc:
            st.toast(str(exc).split(": ", 1)[-1])

    _render_timer()

    sessions = repositories.recent_focus_sessions()
    if sessions:
        st.markdown("#### Recent sessions")
        frame = pd.DataFrame(sessions)[["date", "duration_minutes", "task_title"]]
        st.dataframe(frame, hide_index=True, use_container_width=True)
