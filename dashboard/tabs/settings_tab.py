import streamlit as st

from dashboard.auth import sign_out
from dashboard.data import repositories

SETUP_INSTRUCTIONS = """
Google Calendar is not configured on the server yet.

1. Create an OAuth client and an API key in the Google Cloud console.
2. Set `GOOGLE_CLIENT_ID`, `GOOGLE_CLIENT_SECRET`, `GOOGLE_API_KEY` and
   `CALENDAR_REDIRECT_URI` for the API service.
3. Restart the API and come back here to connect.
"""


def _render_notifications():
    st.markdown("#### Task reminders")
    prefs = repositories.notification_preferences()
    with st.form("settings.notifications"):
        enabled = st.toggle("Email me before tasks are due", value=bool(prefs.get("task_reminders_enabled")))
        days = st.number_input(
            "Days before due date",
            min_value=0,
            max_value=30,
            value=int(prefs.get("reminder_days_before") or 0),
        )
        hours = st.number_input(
            "Hours before due time",
            min_value=0,
            max_value=720,
            value=int(prefs.get("reminder_hours_before") or 0),
        )
        if st.form_submit_button("Save preferences"):
            repositories.update_notification_preferences(
                {
                    "task_reminders_enabled": enabled,
                    "reminder_days_before": int(days),
                    "reminder_hours_before": int(hours),
                }
            )
            st.toast("Preferences saved.")

    due = repositories.due_reminders()
    if due:
        st.caption(f"{len(due)} reminder{'s' if len(due) != 1 else ''} pending today.")
        if st.button("Send reminders now", key="settings.send_reminders"):
            try:
                result = repositories.run_reminders()
            except RuntimeError as exc:
                st.error(f"Could not send reminders: {exc}")
            else:
                st.toast(f"Sent {result.get('sent', 0)} reminder(s).")


def _render_calendar():
    st.markdown("#### Google Calendar")
    try:
        repositories.calendar_credentials()
    except RuntimeError:
        st.info(SETUP_INSTRUCTIONS)
        return
    status = repositories.calendar_status()
    if not status.get("connected"):
        if st.button("Connect Google Calendar", key="settings.calendar_connect"):
            try:
                st.link_button("Open Google consent screen", repositories.calendar_connect_url())
            except RuntimeError as exc:
                st.error(str(exc))
        return
    st.success("Connected")
    try:
        events = repositories.upcoming_calendar_events()
    except RuntimeError as exc:
        st.warning(f"Could not load upcoming events: {exc}")
        events = []
    for event in events:
        start = (event.get("start") or {}).get("dateTime") or (event.get("start") or {}).get("date") or ""
        st.markdown(f"`{start[:16].replace('T', ' ')}` {event.get('summary') or '(no title)'}")
    if st.button("Disconnect", key="settings.calendar_disconnect"):
        repositories.calendar_disconnect()
        st.rerun(scope="fragment")


def render_settings_tab(ctx):
    st.subheader("Settings")
    st.caption(f"Signed in as {ctx.user.get('email')}")
    _render_notifications()
    st.divider()
    _render_calendar()
    st.divider()
    cols = st.columns(2)
    if cols[0].button("Sign out on this device", key="settings.sign_out_local"):
        sign_out("local")
        st.rerun()
    if cols[1].button("Sign out everywhere", key="settings.sign_out_global"):
        sign_out("global")
        st.rerun()
