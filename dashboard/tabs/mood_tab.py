from datetime import date, timedelta

import streamlit as st

from dashboard.constants import CHECKIN_MOODS, JOURNAL_MOODS, MOOD_EMOJIS
from dashboard.data import repositories


def _mood_label(mood):
    return f"{MOOD_EMOJIS.get(mood, '')} {mood.title()}"


def _save(mood, note):
    try:
        repositories.add_mood(mood, note)
    except RuntimeError as exc:
        st.error(f"Could not save: {exc}")
        return
    st.toast("Saved.")


def render_mood_tab(ctx):
    st.subheader("Mood & Journal")
    checkin_col, journal_col = st.columns(2)

    with checkin_col:
        st.markdown("#### Quick check-in")
        mood = st.radio("How are you feeling?", CHECKIN_MOODS, format_func=_mood_label, key="mood.checkin")
        note = st.text_input("Anything on your mind?", key="mood.checkin_note")
        if st.button("Check in", type="primary", key="mood.checkin_save"):
            _save(mood, note)

    with journal_col:
        st.markdown("#### Micro journal")
        journal_mood = st.selectbox("Tone", JOURNAL_MOODS, format_func=_mood_label, key="mood.journal_mood")
        entry = st.text_area("Today I...", key="mood.journal_entry", height=110)
        if st.button("Save entry", key="mood.journal_save"):
            if not entry.strip():
                st.toast("Write a few words first.")
            else:
                _save(journal_mood, entry)

    st.divider()
    end = date.fromisoformat(ctx.today)
    items = repositories.list_moods(end - timedelta(days=14), end)
    if not items:
        st.caption("No check-ins in the last two weeks.")
        return
    for item in items:
        note = f" · {item['note']}" if item.get("note") else ""
        st.markdown(f"`{item['date']}` {_mood_label(item['mood'])}{note}")
