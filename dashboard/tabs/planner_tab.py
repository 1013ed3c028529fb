from datetime import date, time

import streamlit as st

from dashboard.constants import EVENT_STATUS_LABELS, EVENT_TYPES
from dashboard.data import repositories


def render_planner_tab(ctx):
    st.subheader("Daily Planner")
    selected_day = st.date_input("Day", value=date.fromisoformat(ctx.today), key="planner.day")

    with st.form("planner.add_form", clear_on_submit=True):
        title = st.text_input("What's planned?", placeholder="Several items? Separate them with commas or semicolons")
        cols = st.columns(3)
        start = cols[0].time_input("Start", value=time(9, 0), step=900)
        duration = cols[1].number_input("Minutes", min_value=5, max_value=720, value=60, step=5)
        event_type = cols[2].selectbox("Type", EVENT_TYPES, index=1)
        location = st.text_input("Location")
        description = st.text_area("Notes (single item only)", height=70)
        sync = st.checkbox("Add to Google Calendar")
        submitted = st.form_submit_button("Add to plan", type="primary")
    if submitted:
        if not title.strip():
            st.toast("Please enter a title.")
        else:
            try:
                created = repositories.add_events(
                    title,
                    selected_day,
                    start.strftime("%H:%M"),
                    duration_minutes=duration,
                    event_type=event_type,
                    location=location,
                    description=description,
                    sync=sync,
                )
            except RuntimeError as exc:
                st.error(f"Could not add to the plan: {exc}")
            else:
                st.toast(f"Planned {len(created)} item{'s' if len(created) != 1 else ''}.")

    events = repositories.list_events(selected_day)
    if not events:
        st.caption("Nothing planned for this day.")
        return
    done = sum(1 for event in events if event["status"] == "done")
    st.progress(done / len(events), text=f"{done}/{len(events)} done")
    for event in events:
        cols = st.columns([1, 5, 2, 1])
        cols[0].markdown(f"`{event['start_time']}`")
        with cols[1]:
            st.markdown(f"**{event['title']}** · {event['event_type']} · {event['duration_minutes']} min")
            if event.get("location"):
                st.caption(f"📍 {event['location']}")
        if cols[2].button(EVENT_STATUS_LABELS.get(event["status"], event["status"]), key=f"planner.cycle.{event['id']}"):
            repositories.cycle_event_status(event["id"])
            st.rerun(scope="fragment")
        if cols[3].button("🗑️", key=f"planner.delete.{event['id']}"):
            repositories.delete_event(event["id"])
            st.rerun(scope="fragment")
