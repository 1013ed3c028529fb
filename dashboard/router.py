import logging

import streamlit as st

from dashboard.auth import handle_expired_session
from dashboard.data.api_client import AuthExpired
from dashboard.tabs.analytics_tab import render_analytics_tab
from dashboard.tabs.expenses_tab import render_expenses_tab
from dashboard.tabs.focus_tab import render_focus_tab
from dashboard.tabs.mood_tab import render_mood_tab
from dashboard.tabs.overview_tab import render_overview_tab
from dashboard.tabs.planner_tab import render_planner_tab
from dashboard.tabs.relationship_tab import render_relationship_tab
from dashboard.tabs.settings_tab import render_settings_tab
from dashboard.tabs.tasks_tab import render_tasks_tab


TAB_RENDERERS = {
    "Overview": render_overview_tab,
    "Tasks": render_tasks_tab,
    "Daily Planner": render_planner_tab,
    "Focus": render_focus_tab,
    "Mood & Journal": render_mood_tab,
    "Expenses": render_expenses_tab,
    "Relationship Care": render_relationship_tab,
    "Analytics": render_analytics_tab,
    "Settings": render_settings_tab,
}
TAB_OPTIONS = list(TAB_RENDERERS)

logger = logging.getLogger(__name__)


def render_router(ctx):
    active = st.session_state.get("ui.active_tab") or TAB_OPTIONS[0]
    active = st.segmented_control(
        "Workspace",
        TAB_OPTIONS,
        key="ui.active_tab",
        default=active,
    ) or TAB_OPTIONS[0]
    _render_tab(active, ctx)


@st.fragment
def _render_tab(active, ctx):
    try:
        TAB_RENDERERS[active](ctx)
    except AuthExpired as exc:
        handle_expired_session(exc)
    except RuntimeError as exc:
        logger.warning("%s tab failed: %s", active, exc)
        st.error(str(exc))
