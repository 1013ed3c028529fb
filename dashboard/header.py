import logging

import numpy as np
import streamlit as st

from dashboard.constants import (
    TIMER_REFRESH_SECONDS,
    TONE_FREQUENCY_HZ,
    TONE_SAMPLE_RATE,
    TONE_SECONDS,
)
from dashboard.data import repositories

logger = logging.getLogger(__name__)

SEEN_NOTIFICATION_KEY = "cache.pomodoro.seen_seq"


def format_clock(seconds):
    seconds = max(0, int(seconds or 0))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def completion_tone():
    samples = np.arange(int(TONE_SAMPLE_RATE * TONE_SECONDS)) / TONE_SAMPLE_RATE
    wave = 0.3 * np.sin(2 * np.pi * TONE_FREQUENCY_HZ * samples)
    fade = np.minimum(1.0, (len(samples) - np.arange(len(samples))) / (TONE_SAMPLE_RATE * 0.05))
    return (wave * fade).astype(np.float32)


def play_tone():
    try:
        st.audio(completion_tone(), sample_rate=TONE_SAMPLE_RATE, autoplay=True)
    except Exception as exc:
        logger.debug("Could not play completion tone: %s", exc)


def announce_completion(state):
    """Toast and tone once per interval completion, whichever surface sees it first."""
    notification = (state or {}).get("last_notification")
    if not notification:
        return
    seen = st.session_state.get(SEEN_NOTIFICATION_KEY)
    if seen is None:
        st.session_state[SEEN_NOTIFICATION_KEY] = notification["seq"]
        return
    if notification["seq"] <= seen:
        return
    st.session_state[SEEN_NOTIFICATION_KEY] = notification["seq"]
    st.toast(f"{notification['title']}: {notification['message']}", icon="⏰")
    if notification.get("play_sound"):
        play_tone()


def load_timer_state():
    try:
        return repositories.timer_state()
    except RuntimeError as exc:
        logger.warning("Timer state unavailable: %s", exc)
        return None


@st.fragment(run_every=TIMER_REFRESH_SECONDS)
def render_floating_timer():
    state = load_timer_state()
    if not state:
        st.caption("Focus timer unavailable.")
        return
    announce_completion(state)
    if not state["running"] and state["sessions_completed"] == 0 and state["phase"] == "focus":
        st.caption(f"🍅 Focus {format_clock(state['remaining_seconds'])} · ready")
        return
    label = "Focus" if state["phase"] == "focus" else "Break"
    suffix = " · paused" if state["paused"] else ("" if state["running"] else " · stopped")
    st.markdown(f"**🍅 {label} {format_clock(state['remaining_seconds'])}**{suffix}")
    st.progress(min(100, max(0, int(state["progress_percent"]))) / 100)
    if state.get("selected_task"):
        st.caption(state["selected_task"])
    cols = st.columns(2)
    if state["running"]:
        if cols[0].button("Resume" if state["paused"] else "Pause", key="widget.pause", use_container_width=True):
            repositories.timer_action("pause")
            st.rerun(scope="fragment")
        if cols[1].button("Stop", key="widget.stop", use_container_width=True):
            repositories.timer_action("stop")
            st.rerun(scope="fragment")
    elif cols[0].button("Start", key="widget.start", use_container_width=True):
        try:
            repositories.timer_action("start")
        except RuntimeError as exc:
            st.toast(str(exc).split(": ", 1)[-1])
        st.rerun(scope="fragment")


def render_global_header(ctx):
    with st.sidebar:
        st.markdown(f"### Hi, {ctx.display_name}")
        st.caption(ctx.today)
        render_floating_timer()
