from datetime import date

import streamlit as st

from dashboard.constants import MESSAGE_TYPES, MOOD_EMOJIS, REMINDER_TYPES
from dashboard.data import repositories

DRAFT_KEY = "relationship.draft"


def _generate(message_type, moods):
    context = {}
    if moods:
        context = {"mood": moods[0]["mood"], "recent_mood": moods[0]["mood"]}
    try:
        result = repositories.generate_message(message_type, context)
    except RuntimeError as exc:
        st.error(f"Could not generate a message: {exc}")
        return
    st.session_state[DRAFT_KEY] = result["message"]
    st.session_state["relationship.draft_ai"] = True


def render_relationship_tab(ctx):
    st.subheader("Relationship Care")
    overview = repositories.relationship_overview()
    moods = overview.get("moods") or []

    left, right = st.columns(2)
    with left:
        st.markdown("#### Sweet messages")
        cols = st.columns([3, 2])
        message_type = cols[0].selectbox(
            "AI idea",
            list(MESSAGE_TYPES),
            format_func=MESSAGE_TYPES.get,
            key="relationship.message_type",
        )
        if cols[1].button("✨ Generate", key="relationship.generate"):
            _generate(message_type, moods)
        draft = st.text_area("Message", key=DRAFT_KEY, height=110)
        if st.button("Save message", type="primary", key="relationship.save_message"):
            if not draft.strip():
                st.toast("Write or generate a message first.")
            else:
                repositories.add_sweet_message(draft, st.session_state.pop("relationship.draft_ai", False))
                st.session_state.pop(DRAFT_KEY, None)
                st.rerun(scope="fragment")
        for message in (overview.get("messages") or [])[:10]:
            badge = " ✨" if message.get("is_ai_generated") else ""
            st.info(f"{message['content']}{badge}")

    with right:
        st.markdown("#### Reminders")
        with st.form("relationship.reminder_form", clear_on_submit=True):
            title = st.text_input("Reminder")
            cols = st.columns(2)
            day = cols[0].date_input("Date", value=date.fromisoformat(ctx.today))
            reminder_type = cols[1].selectbox("Type", REMINDER_TYPES)
            submitted = st.form_submit_button("Add reminder")
        if submitted:
            if not title.strip():
                st.toast("Reminder title cannot be empty.")
            else:
                repositories.add_reminder(title, day, reminder_type)
                st.rerun(scope="fragment")
        for reminder in overview.get("reminders") or []:
            st.markdown(f"`{reminder['date']}` **{reminder['title']}** · {reminder['type']}")

        if moods:
            st.markdown("#### Recent moods")
            for item in moods[:5]:
                st.caption(f"{item['date']} {MOOD_EMOJIS.get(item['mood'], '')} {item['mood']}")
