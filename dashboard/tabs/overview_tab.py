import streamlit as st

from dashboard.constants import OVERVIEW_REFRESH_SECONDS, PRIORITY_META, TASK_STATUS_LABELS
from dashboard.data import repositories


@st.fragment(run_every=OVERVIEW_REFRESH_SECONDS)
def _render_snapshot():
    try:
        overview = repositories.today_overview()
    except RuntimeError as exc:
        st.warning(f"Today's numbers are unavailable: {exc}")
        return
    snapshot = overview.get("snapshot") or {}
    tasks_today = snapshot.get("tasks_today") or {}
    cols = st.columns(4)
    cols[0].metric("Tasks today", f"{tasks_today.get('completed', 0)}/{tasks_today.get('total', 0)}")
    cols[1].metric("Focus", f"{snapshot.get('focus_hours', 0)} h")
    cols[2].metric("Mood (7 days)", f"{snapshot.get('mood_score', 0)}/10")
    cols[3].metric("Spent today", f"{snapshot.get('todays_spend', 0)}")

    timer = overview.get("timer") or {}
    st.caption(
        f"{timer.get('sessions_completed', 0)} pomodoros this run · "
        f"{timer.get('accumulated_focus_minutes_today', 0)} focus minutes today"
    )


def render_overview_tab(ctx):
    st.subheader(f"Good to see you, {ctx.display_name}")
    _render_snapshot()

    st.markdown("#### Up next")
    tasks = [task for task in repositories.list_tasks() if task.get("status") != "completed"]
    if not tasks:
        st.caption("Nothing pending. Add tasks from the Tasks tab.")
    for task in tasks[:5]:
        marker = PRIORITY_META.get(task.get("priority"), {}).get("marker", "")
        due = f" · due {task['due_date']}" if task.get("due_date") else ""
        st.markdown(f"{marker} **{task['title']}** · {TASK_STATUS_LABELS.get(task['status'], task['status'])}{due}")

    events = repositories.list_events(ctx.today)
    if events:
        st.markdown("#### Today's plan")
        for event in events:
            st.markdown(f"`{event['start_time']}` {event['title']} ({event['duration_minutes']} min)")
