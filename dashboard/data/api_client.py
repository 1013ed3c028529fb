import logging
import os
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

_SECRET_GETTER = None
_TOKEN_GETTER = None


def _build_session():
    session = requests.Session()
    # Failed calls surface to the user immediately; nothing is retried.
    retry = Retry(total=0, connect=0, read=0, raise_on_status=False)
    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_SESSION = _build_session()


class AuthExpired(RuntimeError):
    pass


def configure(secret_getter, token_getter):
    global _SECRET_GETTER, _TOKEN_GETTER
    _SECRET_GETTER = secret_getter
    _TOKEN_GETTER = token_getter


def _get_secret(path, default=None):
    if _SECRET_GETTER is None:
        return default
    return _SECRET_GETTER(path, default)


def api_base_url():
    return (
        _get_secret(("app", "API_BASE_URL"))
        or _get_secret(("API_BASE_URL",))
        or os.getenv("API_BASE_URL")
        or "http://localhost:8000"
    )


def _detail(response):
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        return payload.get("detail") or payload.get("error") or payload
    return payload


def request(
    method: str,
    path: str,
    params: dict | None = None,
    json: dict | None = None,
    timeout: int = 10,
    authenticated: bool = True,
) -> Any:
    base = api_base_url().rstrip("/")
    headers = {}
    if authenticated:
        token = _TOKEN_GETTER() if _TOKEN_GETTER else None
        if not token:
            raise AuthExpired("Please sign in again.")
        headers["Authorization"] = f"Bearer {token}"
    url = f"{base}{path}"
    try:
        response = _SESSION.request(method, url, params=params, json=json, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("API %s %s unreachable: %s", method, path, exc)
        raise RuntimeError(f"API unreachable: {exc}") from exc
    if response.status_code == 401 and authenticated:
        raise AuthExpired("Your session has expired. Please sign in again.")
    if not response.ok:
        detail = _detail(response)
        logger.warning("API %s %s failed (%s): %s", method, path, response.status_code, detail)
        raise RuntimeError(f"API error {response.status_code} {response.reason}: {detail}")
    if response.status_code == 204 or not response.content:
        return None
    return response.json()


def get(path, params=None, **kwargs):
    return request("GET", path, params=params, **kwargs)


def post(path, json=None, params=None, **kwargs):
    return request("POST", path, params=params, json=json, **kwargs)
