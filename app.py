import logging
from datetime import date

import streamlit as st

from dashboard.auth import (
    configure_api_client,
    current_user,
    handle_expired_session,
    is_signed_in,
    load_local_env,
    render_auth_screen,
)
from dashboard.constants import APP_NAME
from dashboard.context import DashboardContext
from dashboard.data import repositories
from dashboard.data.api_client import AuthExpired
from dashboard.header import render_global_header
from dashboard.logging_config import configure_logging
from dashboard.router import render_router

configure_logging()
load_local_env()
configure_api_client()

logger = logging.getLogger("dashboard")

st.set_page_config(page_title=APP_NAME, page_icon="🌱", layout="wide")

if not is_signed_in():
    render_auth_screen()
    st.stop()

try:
    overview = repositories.today_overview()
except AuthExpired as exc:
    handle_expired_session(exc)
except RuntimeError as exc:
    logger.warning("Backend unavailable: %s", exc)
    st.error("The LifeSync API is not reachable right now. Please try again in a moment.")
    st.stop()

context = DashboardContext(
    user=overview.get("user") or current_user(),
    today=overview.get("date") or date.today().isoformat(),
    payload={"overview": overview},
)

render_global_header(context)
render_router(context)
