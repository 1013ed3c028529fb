import logging
import os

import streamlit as st

from dashboard.constants import APP_NAME, AUTH_STATE_PREFIXES, AUTH_TOKEN_KEY, AUTH_USER_KEY
from dashboard.data import api_client, repositories

logger = logging.getLogger(__name__)

ENV_PATH = os.path.join(os.path.dirname(__file__), "..", ".env")

ENV_FALLBACK_KEYS = {
    ("app", "API_BASE_URL"): "API_BASE_URL",
    ("API_BASE_URL",): "API_BASE_URL",
}


def load_local_env():
    if not os.path.exists(ENV_PATH):
        return
    with open(ENV_PATH, "r", encoding="utf-8") as env_file:
        for raw_line in env_file:
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def get_secret(path, default=None):
    env_key = ENV_FALLBACK_KEYS.get(tuple(path))
    if env_key:
        env_value = os.getenv(env_key)
        if env_value:
            return env_value
    try:
        current = st.secrets
        for key in path:
            if key not in current:
                return default
            current = current[key]
    except (FileNotFoundError, KeyError):
        return default
    return current


def current_token():
    return st.session_state.get(AUTH_TOKEN_KEY)


def current_user():
    return st.session_state.get(AUTH_USER_KEY)


def is_signed_in():
    return bool(current_token() and current_user())


def _store_session(session):
    st.session_state[AUTH_TOKEN_KEY] = session["token"]
    st.session_state[AUTH_USER_KEY] = session["user"]


def clear_auth_state():
    for key in list(st.session_state.keys()):
        if str(key).startswith(AUTH_STATE_PREFIXES):
            del st.session_state[key]


def sign_out(scope="global"):
    try:
        if current_token():
            repositories.sign_out(scope)
    except RuntimeError as exc:
        logger.warning("Sign-out request failed: %s", exc)
    finally:
        clear_auth_state()


def render_auth_screen():
    st.title(APP_NAME)
    st.caption("Tasks, focus, mood, money and the people you care about, in one place.")
    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Create account"])

    with sign_in_tab:
        with st.form("auth.sign_in_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")
        if submitted:
            try:
                _store_session(repositories.sign_in(email.strip(), password))
            except RuntimeError as exc:
                logger.info("Sign-in failed for %s: %s", email, exc)
                st.error("Invalid email or password.")
            else:
                st.rerun()

    with sign_up_tab:
        with st.form("auth.sign_up_form"):
            display_name = st.text_input("Display name")
            email = st.text_input("Email", key="auth.sign_up_email")
            password = st.text_input("Password", type="password", key="auth.sign_up_password")
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            if not password:
                st.error("Password cannot be empty.")
                return
            try:
                _store_session(repositories.sign_up(email.strip(), password, display_name.strip() or None))
            except RuntimeError as exc:
                st.error(str(exc))
            else:
                st.rerun()


def handle_expired_session(exc):
    logger.info("Session expired: %s", exc)
    clear_auth_state()
    st.warning(str(exc))
    st.rerun()


def configure_api_client():
    api_client.configure(get_secret, current_token)
